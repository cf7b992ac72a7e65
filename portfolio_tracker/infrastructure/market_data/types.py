"""
Market data provider protocols for type hints.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Protocol, Tuple

from portfolio_tracker.domain.models import AssetType, PricePoint


class PriceHistoryProvider(Protocol):
    async def fetch(self, asset: AssetType, days: int) -> List[PricePoint]:
        """``days`` daily points ending today, ascending by date."""
        ...


class FxRateProvider(Protocol):
    async def fetch(self) -> Decimal:
        """Current ILS per USD."""
        ...


class QuoteProvider(Protocol):
    async def get_quote(self, asset: AssetType) -> Tuple[Decimal, Decimal]:
        """Current (USD price, 24h change percent)."""
        ...
