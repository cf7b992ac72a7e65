"""
Fixed-value price source for ILS-denominated holdings.
Every unit is worth exactly 1 ILS on every day; no network access.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Callable, List, Tuple

from portfolio_tracker.domain.exceptions import DataUnavailable
from portfolio_tracker.domain.models import AssetType, PricePoint
from portfolio_tracker.domain.strategy.asset_universe import is_fixed_ils
from portfolio_tracker.utils.time import today_utc, trailing_days

UNIT_PRICE_ILS = Decimal("1")


class FixedIlsPriceProvider:
    def __init__(self, clock: Callable[[], date] = today_utc):
        self.clock = clock

    async def fetch(self, asset: AssetType, days: int) -> List[PricePoint]:
        if not is_fixed_ils(asset):
            raise DataUnavailable(asset.value, "not a fixed-ILS asset")
        return [PricePoint(date=day, price=UNIT_PRICE_ILS) for day in trailing_days(days, self.clock())]

    async def get_quote(self, asset: AssetType) -> Tuple[Decimal, Decimal]:
        if not is_fixed_ils(asset):
            raise DataUnavailable(asset.value, "not a fixed-ILS asset")
        return UNIT_PRICE_ILS, Decimal("0")
