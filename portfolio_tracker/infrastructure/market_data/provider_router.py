"""
Provider router - dispatch each asset to the provider for its price source.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Tuple

from portfolio_tracker.domain.exceptions import DataUnavailable
from portfolio_tracker.domain.models import AssetType, PricePoint
from portfolio_tracker.domain.strategy.asset_universe import price_source
from portfolio_tracker.infrastructure.market_data.types import PriceHistoryProvider, QuoteProvider


@dataclass(frozen=True)
class NamedProvider:
    name: str
    provider: object


class _Router:
    def __init__(self, providers: List[NamedProvider]):
        self.providers: Dict[str, object] = {named.name: named.provider for named in providers}
        self.last_sources: Dict[str, str] = {}

    def _resolve(self, asset: AssetType):
        source = price_source(asset)
        provider = self.providers.get(source)
        if provider is None:
            raise DataUnavailable(asset.value, f"no provider registered for source '{source}'")
        self.last_sources[asset.value] = source
        return provider

    def get_last_sources(self) -> Dict[str, str]:
        return dict(self.last_sources)


class RoutedPriceHistoryProvider(_Router):
    async def fetch(self, asset: AssetType, days: int) -> List[PricePoint]:
        provider: PriceHistoryProvider = self._resolve(asset)
        return await provider.fetch(asset, days)


class RoutedQuoteProvider(_Router):
    async def get_quote(self, asset: AssetType) -> Tuple[Decimal, Decimal]:
        provider: QuoteProvider = self._resolve(asset)
        return await provider.get_quote(asset)
