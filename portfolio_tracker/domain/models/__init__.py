"""
Domain Models Package
Export all domain entities
"""

from .entities import (
    # Constants
    QUANTITY_DECIMAL_PLACES,
    SENTINEL_DATE,
    TOTAL_ILS_DECIMAL_PLACES,

    # Enums
    AssetType,
    GapFillPolicy,
    TransactionType,
    ValuationClass,

    # Entities
    AssetHolding,
    AssetQuote,
    HoldingSnapshot,
    PortfolioValuePoint,
    PricePoint,
    Transaction,

    # Helpers
    fits_decimal_places,
)

__all__ = [
    # Constants
    "QUANTITY_DECIMAL_PLACES",
    "SENTINEL_DATE",
    "TOTAL_ILS_DECIMAL_PLACES",

    # Enums
    "AssetType",
    "GapFillPolicy",
    "TransactionType",
    "ValuationClass",

    # Entities
    "AssetHolding",
    "AssetQuote",
    "HoldingSnapshot",
    "PortfolioValuePoint",
    "PricePoint",
    "Transaction",

    # Helpers
    "fits_decimal_places",
]
