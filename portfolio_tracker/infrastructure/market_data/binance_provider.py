"""
Binance Market Data Provider
Daily candles and 24h tickers for crypto pairs (public API, no key).
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, List, Tuple

from portfolio_tracker.domain.exceptions import DataUnavailable
from portfolio_tracker.domain.models import AssetType, PricePoint
from portfolio_tracker.domain.strategy.asset_universe import (
    PRICE_SOURCE_BINANCE,
    price_source,
    upstream_symbol,
)
from portfolio_tracker.infrastructure.market_data.http import UpstreamError, fetch_json
from portfolio_tracker.utils.time import utc_date_from_millis

logger = logging.getLogger(__name__)

# Kline row layout: [open_time, open, high, low, close, volume, ...]
_KLINE_OPEN_TIME = 0
_KLINE_CLOSE = 4


class BinanceProvider:
    def __init__(self, api_base_url: str = "https://api.binance.com", timeout_seconds: float = 10.0):
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def _pair(self, asset: AssetType) -> str:
        symbol = upstream_symbol(asset)
        if price_source(asset) != PRICE_SOURCE_BINANCE or not symbol:
            raise DataUnavailable(asset.value, "not listed on Binance")
        return symbol

    async def _request_json(self, asset: AssetType, path: str, params: dict) -> Any:
        try:
            return await fetch_json(
                f"{self.api_base_url}{path}",
                params=params,
                timeout=self.timeout_seconds,
            )
        except UpstreamError as exc:
            logger.error(f"Binance request for {asset.value} failed: {exc}")
            raise DataUnavailable(asset.value, f"Binance API error: {exc}") from exc

    # ------------------------------------------------------------------
    # HISTORICAL PRICES
    # ------------------------------------------------------------------

    async def fetch(self, asset: AssetType, days: int) -> List[PricePoint]:
        """
        Daily closes for the last ``days`` UTC days (today's candle included).
        A listing younger than the window is reported, never padded.
        """
        pair = self._pair(asset)
        data = await self._request_json(
            asset,
            "/api/v3/klines",
            {"symbol": pair, "interval": "1d", "limit": days},
        )

        if not isinstance(data, list) or not data:
            raise DataUnavailable(asset.value, f"no historical data for {pair}")
        if len(data) < days:
            raise DataUnavailable(asset.value, f"only {len(data)} of {days} daily candles available")

        points: List[PricePoint] = []
        for candle in data[-days:]:
            try:
                points.append(
                    PricePoint(
                        date=utc_date_from_millis(int(candle[_KLINE_OPEN_TIME])),
                        price=Decimal(str(candle[_KLINE_CLOSE])),
                    )
                )
            except (IndexError, TypeError, ValueError, InvalidOperation) as exc:
                raise DataUnavailable(asset.value, f"malformed candle: {candle!r}") from exc

        points.sort(key=lambda p: p.date)
        return points

    # ------------------------------------------------------------------
    # CURRENT PRICES
    # ------------------------------------------------------------------

    async def get_quote(self, asset: AssetType) -> Tuple[Decimal, Decimal]:
        pair = self._pair(asset)
        data = await self._request_json(asset, "/api/v3/ticker/24hr", {"symbol": pair})

        raw_price = data.get("lastPrice") if isinstance(data, dict) else None
        if not raw_price:
            raise DataUnavailable(asset.value, f"no price data available for {pair}")

        try:
            price = Decimal(str(raw_price))
        except InvalidOperation as exc:
            raise DataUnavailable(asset.value, f"bad lastPrice {raw_price!r}") from exc
        if price <= 0:
            raise DataUnavailable(asset.value, f"no price data available for {pair}")

        try:
            change = Decimal(str(data.get("priceChangePercent") or "0"))
        except InvalidOperation:
            change = Decimal("0")
        return price, change
