"""
ASSET UNIVERSE

Defines the fixed set of instruments a portfolio may hold and how each
one is priced. It specifies WHAT instruments are permitted and where their
prices come from, not how holdings are computed.

Rules:
- Read-only definition
- No database imports
- No API imports
"""

from typing import Dict, List, Optional, Union

from portfolio_tracker.domain.models import AssetType, ValuationClass

# -------------------------------------------------------------------
# Price Sources
# -------------------------------------------------------------------

PRICE_SOURCE_BINANCE = "binance"
PRICE_SOURCE_FINNHUB = "finnhub"
PRICE_SOURCE_FIXED = "fixed"

# -------------------------------------------------------------------
# Asset Registry
# -------------------------------------------------------------------

ASSET_UNIVERSE: Dict[AssetType, dict] = {
    AssetType.BTC: {
        "display_name": "Bitcoin (BTC)",
        "description": "Bitcoin - Leading cryptocurrency",
        "valuation_class": ValuationClass.MARKET,
        "price_source": PRICE_SOURCE_BINANCE,
        "upstream_symbol": "BTCUSDT",
    },
    AssetType.ETH: {
        "display_name": "Ethereum (ETH)",
        "description": "Ethereum - Smart contract platform",
        "valuation_class": ValuationClass.MARKET,
        "price_source": PRICE_SOURCE_BINANCE,
        "upstream_symbol": "ETHUSDT",
    },
    AssetType.SPY: {
        "display_name": "S&P 500 (SPY)",
        "description": "SPDR S&P 500 ETF Trust - Tracks S&P 500 index",
        "valuation_class": ValuationClass.MARKET,
        "price_source": PRICE_SOURCE_FINNHUB,
        "upstream_symbol": "SPY",
    },
    AssetType.NADLAN: {
        "display_name": "Nadlan",
        "description": "Nadlan - locked in haifa apartment",
        "valuation_class": ValuationClass.FIXED_ILS,
        "price_source": PRICE_SOURCE_FIXED,
        "upstream_symbol": None,
    },
    AssetType.PENSION: {
        "display_name": "Pension",
        "description": "Pension - Israeli pension fund",
        "valuation_class": ValuationClass.FIXED_ILS,
        "price_source": PRICE_SOURCE_FIXED,
        "upstream_symbol": None,
    },
    AssetType.HISHTALMUT: {
        "display_name": "Hishtalmut",
        "description": "Hishtalmut - Israeli keren hishtalmut fund",
        "valuation_class": ValuationClass.FIXED_ILS,
        "price_source": PRICE_SOURCE_FIXED,
        "upstream_symbol": None,
    },
}

FIXED_ILS_ASSETS = tuple(
    asset for asset, meta in ASSET_UNIVERSE.items()
    if meta["valuation_class"] == ValuationClass.FIXED_ILS
)
MARKET_ASSETS = tuple(
    asset for asset, meta in ASSET_UNIVERSE.items()
    if meta["valuation_class"] == ValuationClass.MARKET
)

# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------

def is_fixed_ils(asset: AssetType) -> bool:
    return ASSET_UNIVERSE[asset]["valuation_class"] == ValuationClass.FIXED_ILS


def price_source(asset: AssetType) -> str:
    return ASSET_UNIVERSE[asset]["price_source"]


def upstream_symbol(asset: AssetType) -> Optional[str]:
    return ASSET_UNIVERSE[asset]["upstream_symbol"]


def parse_asset(value: Union[str, AssetType, None]) -> Optional[AssetType]:
    """
    Resolve a user supplied asset name (case-insensitive) to an AssetType.
    Returns None when the name is not part of the universe.
    """
    if isinstance(value, AssetType):
        return value
    if not isinstance(value, str):
        return None
    wanted = value.strip().upper()
    for asset in AssetType:
        if asset.value.upper() == wanted:
            return asset
    return None


def list_assets() -> List[dict]:
    return [
        {
            "asset": asset.value,
            "display_name": meta["display_name"],
            "description": meta["description"],
            "valuation_class": meta["valuation_class"].value,
        }
        for asset, meta in ASSET_UNIVERSE.items()
    ]
