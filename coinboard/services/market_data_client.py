"""CoinGecko client for ranked market snapshots and daily price history."""

import requests

from coinboard.models.market_data import AssetSnapshot, HistorySeries, SortOrder
from coinboard.services.errors import TransportError
from coinboard.utils.config import config
from coinboard.utils.logger import StructuredLogger
from coinboard.utils.trace_context import trace_fields


class MarketDataClient:
    """Fetches market data from the CoinGecko REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        vs_currency: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API root, defaults to the configured CoinGecko URL
            vs_currency: Quote currency for prices
            timeout: Per-request timeout in seconds
            session: Optional requests session to reuse connections
        """
        self.base_url = (base_url or config.market_data.base_url).rstrip("/")
        self.vs_currency = vs_currency or config.market_data.vs_currency
        self.timeout = timeout or config.market_data.request_timeout
        self.session = session or requests.Session()
        self.logger = StructuredLogger.from_config("MarketDataClient")

    def _get_json(self, url: str, params: dict):
        """
        Issue one GET and decode the JSON body.

        Raises:
            TransportError: On connection failure, timeout, HTTP error or bad JSON
        """
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            raise TransportError(
                f"HTTP {status_code} from {url}", url=url, status_code=status_code
            ) from e
        except requests.RequestException as e:
            raise TransportError(f"Request to {url} failed: {e}", url=url) from e

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Malformed JSON from {url}", url=url) from e

    def fetch_snapshot(self, order: SortOrder, page_size: int) -> list[AssetSnapshot]:
        """
        Fetch the top ``page_size`` assets ranked by ``order``.

        Args:
            order: Ranking metric
            page_size: Number of assets to request

        Returns:
            Snapshots in provider rank order

        Raises:
            TransportError: If the request fails or the payload is malformed
        """
        url = f"{self.base_url}/coins/markets"
        params = {
            "vs_currency": self.vs_currency,
            "order": SortOrder(order).value,
            "per_page": page_size,
            "page": 1,
            "sparkline": "true",
            "price_change_percentage": "24h",
        }

        self.logger.debug(
            "Fetching market snapshot",
            context={
                **trace_fields(),
                "source": "CoinGecko",
                "order": params["order"],
                "page_size": page_size,
            },
        )

        data = self._get_json(url, params)
        if not isinstance(data, list):
            raise TransportError(
                f"Expected a list of assets from {url}, got {type(data).__name__}", url=url
            )

        try:
            snapshots = [AssetSnapshot.from_payload(item) for item in data[:page_size]]
        except (ValueError, TypeError) as e:
            raise TransportError(f"Malformed asset entry from {url}: {e}", url=url) from e

        self.logger.info(
            "Fetched market snapshot",
            context={
                **trace_fields(),
                "source": "CoinGecko",
                "order": params["order"],
                "assets": len(snapshots),
            },
        )
        return snapshots

    def fetch_history(self, asset_id: str, lookback_days: int) -> HistorySeries:
        """
        Fetch daily closing prices for one asset.

        Args:
            asset_id: CoinGecko asset id
            lookback_days: Number of days of history to request

        Returns:
            Prices oldest first; empty if the provider has no data points

        Raises:
            TransportError: If the request fails or the payload is malformed
        """
        url = f"{self.base_url}/coins/{asset_id}/market_chart"
        params = {
            "vs_currency": self.vs_currency,
            "days": lookback_days,
            "interval": "daily",
        }

        data = self._get_json(url, params)
        if not isinstance(data, dict):
            raise TransportError(f"Expected an object from {url}", url=url)

        raw_points = data.get("prices") or []
        try:
            points = sorted((float(ts), float(price)) for ts, price in raw_points)
        except (TypeError, ValueError) as e:
            raise TransportError(f"Malformed price points from {url}: {e}", url=url) from e

        self.logger.debug(
            "Fetched price history",
            context={**trace_fields(), "asset_id": asset_id, "points": len(points)},
        )

        return HistorySeries(
            asset_id=asset_id,
            prices=tuple(price for _, price in points),
            timestamps=tuple(ts / 1000 for ts, _ in points),  # Milliseconds to seconds
        )
