"""
Domain Models - Entities
Pure domain objects with no infrastructure dependencies
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


# Placeholder transaction date meaning "today" on the wire and in storage.
# Inside the domain it is carried as ``Transaction.date is None``.
SENTINEL_DATE = "0"

# Stored precision of transaction amounts
QUANTITY_DECIMAL_PLACES = 8
TOTAL_ILS_DECIMAL_PLACES = 2

_MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def fits_decimal_places(value: Decimal, places: int) -> bool:
    """True if ``value`` is representable with at most ``places`` fractional digits"""
    return value.is_finite() and -value.normalize().as_tuple().exponent <= places


class AssetType(str, Enum):
    """Tracked instruments"""
    BTC = "BTC"
    ETH = "ETH"
    SPY = "SPY"
    NADLAN = "Nadlan"
    PENSION = "Pension"
    HISHTALMUT = "Hishtalmut"


class TransactionType(str, Enum):
    """Direction of a transaction"""
    BUY = "buy"
    SELL = "sell"


class ValuationClass(str, Enum):
    """How an asset is priced"""
    MARKET = "market"  # external USD quote
    FIXED_ILS = "fixed_ils"  # exactly 1 ILS per unit


class GapFillPolicy(str, Enum):
    """How a price series is aligned onto the reference date axis"""
    NONE = "none"
    FORWARD_FILL = "forward_fill"


@dataclass(frozen=True)
class Transaction:
    """Buy/sell record - Immutable"""
    asset: AssetType
    type: TransactionType
    quantity: Decimal
    total_ils: Decimal
    date: Optional[date] = None  # None == sentinel, resolves to today
    id: Optional[str] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.quantity <= Decimal('0'):
            raise ValueError("Quantity must be positive")
        if self.total_ils <= Decimal('0'):
            raise ValueError("Total ILS must be positive")

    def effective_date(self, today: date) -> date:
        """Transaction date with the sentinel resolved to ``today``"""
        return self.date if self.date is not None else today

    @property
    def signed_quantity(self) -> Decimal:
        return self.quantity if self.type == TransactionType.BUY else -self.quantity

    @property
    def signed_total_ils(self) -> Decimal:
        return self.total_ils if self.type == TransactionType.BUY else -self.total_ils


@dataclass(frozen=True)
class PricePoint:
    """Daily price of one asset - Immutable"""
    date: date
    price: Decimal

    def __post_init__(self):
        if self.price < Decimal('0'):
            raise ValueError("Price cannot be negative")


@dataclass(frozen=True)
class HoldingSnapshot:
    """Net quantity of an asset as of a date"""
    asset: AssetType
    quantity: Decimal


@dataclass(frozen=True)
class PortfolioValuePoint:
    """Total portfolio value in ILS for one day"""
    date: date
    total_ils: int

    @property
    def label(self) -> str:
        """Short chart label, e.g. 'Jan 5'"""
        return f"{_MONTH_ABBR[self.date.month - 1]} {self.date.day}"


@dataclass(frozen=True)
class AssetQuote:
    """Current quote for an asset"""
    asset: AssetType
    usd: Decimal
    ils: Decimal
    change_24h: Decimal


@dataclass(frozen=True)
class AssetHolding:
    """Current position in one asset, valued in ILS"""
    asset: AssetType
    quantity: Decimal
    avg_price: Decimal
    current_price: Decimal
    value_ils: Decimal
    change_24h: Decimal
