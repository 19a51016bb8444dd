"""Error taxonomy for the analytics core."""

from __future__ import annotations


class AnalyticsError(Exception):
    """Base class for every error raised by the analytics core."""


class MarketNotFoundError(AnalyticsError, LookupError):
    def __init__(self, market: object) -> None:
        super().__init__(f"Market not found: {market}")
        self.market = market


class InvalidInputError(AnalyticsError, ValueError):
    pass
