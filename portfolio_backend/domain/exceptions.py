"""Market data errors.

``quote`` raises these to its caller. ``history`` and ``change_over_window``
catch them and report a ``FailureReason`` instead.
"""
from typing import Optional


class MarketDataError(Exception):
    """Base class for all upstream market data failures."""

    def __init__(
        self,
        message: str,
        symbol: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.symbol = symbol
        self.status_code = status_code


class AuthError(MarketDataError):
    """No API credential is configured, or upstream rejected it."""
    pass


class NotFoundError(MarketDataError):
    """Upstream does not know the requested symbol."""
    pass


class UpstreamError(MarketDataError):
    """Transport failure, unexpected status, or malformed payload."""
    pass


class QuotaError(UpstreamError):
    """403-class response: the endpoint is gated behind a paid plan.

    Triggers the synthetic data path rather than surfacing to the UI.
    """
    pass
