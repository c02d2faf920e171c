"""Configuration management using python-dotenv."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from project root
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)


class FinnhubConfig:
    """Upstream market data API configuration."""
    BASE_URL: str = os.getenv("FINNHUB_BASE_URL", "https://finnhub.io/api/v1")
    # Build-time default credential; the user may override it at runtime.
    API_KEY: str = os.getenv("FINNHUB_API_KEY", "")
    TIMEOUT: float = float(os.getenv("FINNHUB_TIMEOUT", "10"))


class SimulationConfig:
    """Defaults for growth simulation and synthetic fallback data."""
    FALLBACK_ANCHOR_PRICE: float = 150.0
    RANDOM_WALK_STEP: float = 2.5
    MIN_PRICE: float = 1.0
    DEFAULT_INITIAL_AMOUNT: float = 10000.0
    DEFAULT_GROWTH_DAYS: int = 30
    DEFAULT_HEATMAP_DAYS: int = 1


class AppConfig:
    """Application configuration."""
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS: list = os.getenv("CORS_ORIGINS", "*").split(",")


# Singleton instances
finnhub_config = FinnhubConfig()
simulation_config = SimulationConfig()
app_config = AppConfig()
