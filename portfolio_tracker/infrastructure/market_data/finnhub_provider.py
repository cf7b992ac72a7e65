"""
Finnhub Market Data Provider
Current quotes for US-listed ETFs plus a synthetic daily history.
"""

from __future__ import annotations

import logging
import random
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Callable, List, Optional, Tuple

from portfolio_tracker.domain.exceptions import DataUnavailable
from portfolio_tracker.domain.models import AssetType, PricePoint
from portfolio_tracker.domain.strategy.asset_universe import (
    PRICE_SOURCE_FINNHUB,
    price_source,
    upstream_symbol,
)
from portfolio_tracker.infrastructure.market_data.http import UpstreamError, fetch_json
from portfolio_tracker.infrastructure.market_data.types import QuoteProvider
from portfolio_tracker.utils.time import today_utc, trailing_days

logger = logging.getLogger(__name__)


class FinnhubProvider:
    def __init__(
        self,
        api_base_url: str = "https://finnhub.io",
        api_key: Optional[str] = None,
        timeout_seconds: float = 10.0,
    ):
        self.api_base_url = api_base_url.rstrip("/")
        self.api_key = (api_key or "").strip() or None
        self.timeout_seconds = timeout_seconds

    async def get_quote(self, asset: AssetType) -> Tuple[Decimal, Decimal]:
        """
        Returns (price, change percent) from ``/api/v1/quote``.
        ``c`` is the current price, ``dp`` the daily change percentage.
        """
        symbol = upstream_symbol(asset)
        if price_source(asset) != PRICE_SOURCE_FINNHUB or not symbol:
            raise DataUnavailable(asset.value, "not quoted on Finnhub")
        if not self.api_key:
            raise DataUnavailable(asset.value, "FINNHUB_API_KEY is not configured")

        try:
            data = await fetch_json(
                f"{self.api_base_url}/api/v1/quote",
                params={"symbol": symbol, "token": self.api_key},
                timeout=self.timeout_seconds,
            )
        except UpstreamError as exc:
            logger.error(f"Finnhub quote for {symbol} failed: {exc}")
            raise DataUnavailable(asset.value, f"Finnhub API error: {exc}") from exc

        raw_price = data.get("c") if isinstance(data, dict) else None
        try:
            price = Decimal(str(raw_price)) if raw_price is not None else Decimal("0")
        except InvalidOperation:
            price = Decimal("0")
        if price <= 0:
            raise DataUnavailable(asset.value, f"no price data available for {symbol}")

        try:
            change = Decimal(str(data.get("dp") or "0"))
        except InvalidOperation:
            change = Decimal("0")
        return price, change


class SyntheticGrowthHistoryProvider:
    """
    Daily history extrapolated backwards from one current quote.

    Assumes steady compound growth: the price ``i`` days ago is
    ``current / (1 + growth) ** (i / 365)``, times a jitter factor in
    ``[1 - jitter_pct / 2, 1 + jitter_pct / 2)`` drawn from ``rng``.
    With ``jitter_pct=0`` the series is fully deterministic.
    """

    def __init__(
        self,
        quote_provider: QuoteProvider,
        annual_growth_rate: float = 0.10,
        jitter_pct: float = 0.01,
        rng: Optional[random.Random] = None,
        clock: Callable[[], date] = today_utc,
    ):
        self.quote_provider = quote_provider
        self.annual_growth_rate = annual_growth_rate
        self.jitter_pct = jitter_pct
        self.rng = rng or random.Random()
        self.clock = clock

    def _jitter(self) -> float:
        if not self.jitter_pct:
            return 1.0
        return 1.0 + (self.rng.random() - 0.5) * self.jitter_pct

    async def fetch(self, asset: AssetType, days: int) -> List[PricePoint]:
        current_price, _ = await self.quote_provider.get_quote(asset)
        current = float(current_price)

        history: List[PricePoint] = []
        dates = trailing_days(days, self.clock())
        for days_ago, day in zip(range(days - 1, -1, -1), dates):
            years_ago = days_ago / 365
            price = current / ((1 + self.annual_growth_rate) ** years_ago) * self._jitter()
            history.append(
                PricePoint(
                    date=day,
                    price=Decimal(str(price)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
                )
            )
        return history
