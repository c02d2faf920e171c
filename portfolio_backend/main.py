"""FastAPI application - minimal setup with dependency injection."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portfolio_backend.api.dependencies import (
    get_growth_session,
    get_heatmap_session,
    init_services,
)
from portfolio_backend.api.routes import health, portfolio, stocks, valuation
from portfolio_backend.api.websocket.charts import router as ws_router, broadcaster
from portfolio_backend.config import app_config
from portfolio_backend.infrastructure.finnhub_client import FinnhubClient

logging.basicConfig(
    level=app_config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logger.info("Starting application...")

    client = FinnhubClient()
    client.connect()

    # Initialize services with DI
    init_services(client)

    # Push every published chart view to WebSocket clients
    get_growth_session().register_callback(broadcaster.publish)
    get_heatmap_session().register_callback(broadcaster.publish)

    logger.info("Application started")
    yield

    # Shutdown
    logger.info("Shutting down...")
    await client.disconnect()
    logger.info("Shutdown complete")


# Create app
app = FastAPI(
    title="Portfolio Visualizer API",
    description="Portfolio valuation and market data aggregation",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=app_config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routes
app.include_router(health.router)
app.include_router(portfolio.router)
app.include_router(stocks.router)
app.include_router(valuation.router)
app.include_router(ws_router)
