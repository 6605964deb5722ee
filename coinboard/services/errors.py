"""Errors raised while talking to the market data provider."""


class MarketDataError(Exception):
    """Base class for market data failures."""

    kind = "market_data_error"


class TransportError(MarketDataError):
    """Network or HTTP failure, or a payload that could not be parsed."""

    kind = "transport_error"

    def __init__(self, message: str, url: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class DataUnavailable(MarketDataError):
    """The provider answered, but had no price points for the asset."""

    kind = "data_unavailable"

    def __init__(self, asset_id: str):
        super().__init__(f"No price history available for {asset_id}")
        self.asset_id = asset_id
