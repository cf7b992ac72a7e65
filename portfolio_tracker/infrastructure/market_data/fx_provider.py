"""
USD -> ILS exchange rate provider (open.er-api.com, no key required).
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from portfolio_tracker.domain.exceptions import RateUnavailable
from portfolio_tracker.infrastructure.market_data.http import UpstreamError, fetch_json

logger = logging.getLogger(__name__)


class ExchangeRateProvider:
    def __init__(
        self,
        api_url: str = "https://open.er-api.com/v6/latest/USD",
        currency: str = "ILS",
        timeout_seconds: float = 10.0,
    ):
        self.api_url = api_url
        self.currency = currency
        self.timeout_seconds = timeout_seconds

    async def fetch(self) -> Decimal:
        """Current units of ``currency`` per USD."""
        try:
            data = await fetch_json(self.api_url, timeout=self.timeout_seconds)
        except UpstreamError as exc:
            logger.error(f"Exchange rate request failed: {exc}")
            raise RateUnavailable(str(exc)) from exc

        rates = data.get("rates") if isinstance(data, dict) else None
        raw = rates.get(self.currency) if isinstance(rates, dict) else None
        if raw is None:
            raise RateUnavailable(f"{self.currency} rate not found in exchange rate API response")

        try:
            rate = Decimal(str(raw))
        except InvalidOperation as exc:
            raise RateUnavailable(f"bad {self.currency} rate {raw!r}") from exc
        if rate <= 0:
            raise RateUnavailable(f"non-positive {self.currency} rate {raw!r}")
        return rate
