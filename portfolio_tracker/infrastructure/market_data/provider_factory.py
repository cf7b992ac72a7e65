"""
Market data provider factory (settings-driven).
"""

from __future__ import annotations

import logging
from typing import Optional

from portfolio_tracker.config import Settings, settings as default_settings
from portfolio_tracker.domain.models import GapFillPolicy
from portfolio_tracker.domain.services.valuation_engine import ValuationEngine
from portfolio_tracker.domain.strategy.asset_universe import (
    PRICE_SOURCE_BINANCE,
    PRICE_SOURCE_FINNHUB,
    PRICE_SOURCE_FIXED,
)
from portfolio_tracker.infrastructure.market_data.binance_provider import BinanceProvider
from portfolio_tracker.infrastructure.market_data.finnhub_provider import (
    FinnhubProvider,
    SyntheticGrowthHistoryProvider,
)
from portfolio_tracker.infrastructure.market_data.fixed_price_provider import FixedIlsPriceProvider
from portfolio_tracker.infrastructure.market_data.fx_provider import ExchangeRateProvider
from portfolio_tracker.infrastructure.market_data.provider_router import (
    NamedProvider,
    RoutedPriceHistoryProvider,
    RoutedQuoteProvider,
)
from portfolio_tracker.services.quote_service import QuoteService

logger = logging.getLogger(__name__)


def _binance(cfg: Settings) -> BinanceProvider:
    return BinanceProvider(
        api_base_url=cfg.BINANCE_API_URL,
        timeout_seconds=cfg.HTTP_TIMEOUT_SECONDS,
    )


def _finnhub(cfg: Settings) -> FinnhubProvider:
    if not (cfg.FINNHUB_API_KEY or "").strip():
        logger.warning("⚠️ FINNHUB_API_KEY not set, SPY quotes will be unavailable")
    return FinnhubProvider(
        api_base_url=cfg.FINNHUB_API_URL,
        api_key=cfg.FINNHUB_API_KEY,
        timeout_seconds=cfg.HTTP_TIMEOUT_SECONDS,
    )


def build_fx_provider(cfg: Optional[Settings] = None) -> ExchangeRateProvider:
    cfg = cfg or default_settings
    return ExchangeRateProvider(api_url=cfg.FX_API_URL, timeout_seconds=cfg.HTTP_TIMEOUT_SECONDS)


def build_quote_provider(cfg: Optional[Settings] = None) -> RoutedQuoteProvider:
    cfg = cfg or default_settings
    return RoutedQuoteProvider([
        NamedProvider(PRICE_SOURCE_BINANCE, _binance(cfg)),
        NamedProvider(PRICE_SOURCE_FINNHUB, _finnhub(cfg)),
        NamedProvider(PRICE_SOURCE_FIXED, FixedIlsPriceProvider()),
    ])


def build_history_provider(cfg: Optional[Settings] = None) -> RoutedPriceHistoryProvider:
    cfg = cfg or default_settings
    synthetic = SyntheticGrowthHistoryProvider(
        quote_provider=_finnhub(cfg),
        annual_growth_rate=cfg.ETF_ANNUAL_GROWTH_RATE,
        jitter_pct=cfg.ETF_DAILY_JITTER_PCT,
    )
    return RoutedPriceHistoryProvider([
        NamedProvider(PRICE_SOURCE_BINANCE, _binance(cfg)),
        NamedProvider(PRICE_SOURCE_FINNHUB, synthetic),
        NamedProvider(PRICE_SOURCE_FIXED, FixedIlsPriceProvider()),
    ])


def build_quote_service(cfg: Optional[Settings] = None) -> QuoteService:
    cfg = cfg or default_settings
    return QuoteService(
        quote_provider=build_quote_provider(cfg),
        fx_provider=build_fx_provider(cfg),
        cache_ttl_seconds=cfg.QUOTE_CACHE_TTL_SECONDS,
    )


def build_valuation_engine(cfg: Optional[Settings] = None) -> ValuationEngine:
    cfg = cfg or default_settings
    return ValuationEngine(
        history_provider=build_history_provider(cfg),
        fx_provider=build_fx_provider(cfg),
        min_days=cfg.MIN_HISTORY_DAYS,
        max_days=cfg.MAX_HISTORY_DAYS,
        gap_fill=GapFillPolicy(cfg.HISTORY_GAP_FILL.lower()),
    )
