import logging
import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, Iterable, Optional

from portfolio_tracker.domain.models import AssetQuote, AssetType
from portfolio_tracker.domain.strategy.asset_universe import is_fixed_ils
from portfolio_tracker.infrastructure.market_data.types import FxRateProvider, QuoteProvider
from portfolio_tracker.utils.concurrency import gather_or_cancel

logger = logging.getLogger(__name__)

_FX_CACHE_KEY = "fx:USDILS"


class QuoteService:
    """
    Current (non-historical) asset quotes in USD and ILS.
    Fixed-ILS assets never hit the network; upstream quotes and the FX
    rate are cached for a short fixed TTL.
    """

    def __init__(
        self,
        quote_provider: QuoteProvider,
        fx_provider: FxRateProvider,
        cache_ttl_seconds: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        self.quote_provider = quote_provider
        self.fx_provider = fx_provider
        self.cache_ttl_seconds = cache_ttl_seconds
        self._clock = clock
        self._cache: Dict[str, tuple[float, object]] = {}

    def _cache_get(self, key: str) -> Optional[object]:
        cached = self._cache.get(key)
        if not cached:
            return None
        ts, value = cached
        if self._clock() - ts > self.cache_ttl_seconds:
            return None
        return value

    def _cache_set(self, key: str, value: object) -> None:
        self._cache[key] = (self._clock(), value)

    def clear_cache(self) -> None:
        self._cache.clear()

    async def get_fx_rate(self) -> Decimal:
        cached = self._cache_get(_FX_CACHE_KEY)
        if cached is not None:
            return cached  # type: ignore[return-value]
        rate = await self.fx_provider.fetch()
        self._cache_set(_FX_CACHE_KEY, rate)
        return rate

    async def _get_usd_quote(self, asset: AssetType) -> tuple:
        key = f"quote:{asset.value}"
        cached = self._cache_get(key)
        if cached is not None:
            return cached  # type: ignore[return-value]
        quote = await self.quote_provider.get_quote(asset)
        self._cache_set(key, quote)
        return quote

    async def get_quotes(self, assets: Iterable[AssetType]) -> Dict[AssetType, AssetQuote]:
        """
        Quote every requested asset. Any upstream failure propagates;
        there is no partial result.
        """
        requested = list(dict.fromkeys(assets))
        quotes: Dict[AssetType, AssetQuote] = {}

        for asset in requested:
            if is_fixed_ils(asset):
                quotes[asset] = AssetQuote(
                    asset=asset,
                    usd=Decimal("1"),
                    ils=Decimal("1"),
                    change_24h=Decimal("0"),
                )

        market_assets = [asset for asset in requested if not is_fixed_ils(asset)]
        if not market_assets:
            return quotes

        logger.info("Fetching quotes for %s", [asset.value for asset in market_assets])
        rate, *results = await gather_or_cancel(
            self.get_fx_rate(),
            *(self._get_usd_quote(asset) for asset in market_assets),
        )

        for asset, (usd, change) in zip(market_assets, results):
            quotes[asset] = AssetQuote(
                asset=asset,
                usd=usd,
                ils=(usd * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP),
                change_24h=Decimal(change).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
            )
        return quotes

    async def get_quote(self, asset: AssetType) -> AssetQuote:
        quotes = await self.get_quotes([asset])
        return quotes[asset]
