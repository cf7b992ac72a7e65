"""
HOLDINGS ENGINE

RESPONSIBILITIES:
- Fold a transaction log into per-asset quantities as of a date
- Derive current positions with average cost and ILS value

RULES:
- Buys add, sells subtract; quantity may go negative on inconsistent logs
- Non-positive positions are never valued
- No I/O, quotes are passed in
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping

from portfolio_tracker.domain.models import (
    AssetHolding,
    AssetQuote,
    AssetType,
    HoldingSnapshot,
    Transaction,
)


def fold_quantities(
    transactions: Iterable[Transaction],
    as_of: date,
    today: date,
) -> Dict[AssetType, Decimal]:
    """
    Signed quantity per asset over every transaction dated on or before
    ``as_of``. Sentinel-dated transactions count from ``today``.
    """
    quantities: Dict[AssetType, Decimal] = defaultdict(lambda: Decimal("0"))
    for tx in transactions:
        if tx.effective_date(today) <= as_of:
            quantities[tx.asset] += tx.signed_quantity
    return dict(quantities)


def snapshot_at(
    transactions: Iterable[Transaction],
    as_of: date,
    today: date,
) -> List[HoldingSnapshot]:
    quantities = fold_quantities(transactions, as_of, today)
    return [HoldingSnapshot(asset=asset, quantity=qty) for asset, qty in quantities.items()]


def current_holdings(
    transactions: Iterable[Transaction],
    quotes: Mapping[AssetType, AssetQuote],
) -> List[AssetHolding]:
    """
    Current positions, valued with ``quotes`` (ILS per unit).

    Cost basis is the running sum of ``total_ils`` (buys add, sells
    subtract), so ``avg_price`` is net ILS paid per unit still held.
    Assets with non-positive quantity or without a quote are skipped.
    """
    positions: Dict[AssetType, Dict[str, Decimal]] = defaultdict(
        lambda: {"quantity": Decimal("0"), "cost": Decimal("0")}
    )
    for tx in transactions:
        positions[tx.asset]["quantity"] += tx.signed_quantity
        positions[tx.asset]["cost"] += tx.signed_total_ils

    holdings: List[AssetHolding] = []
    for asset, data in positions.items():
        quantity = data["quantity"]
        if quantity <= 0:
            continue
        quote = quotes.get(asset)
        if quote is None:
            continue
        holdings.append(
            AssetHolding(
                asset=asset,
                quantity=quantity,
                avg_price=data["cost"] / quantity,
                current_price=quote.ils,
                value_ils=quantity * quote.ils,
                change_24h=quote.change_24h,
            )
        )
    return holdings


def held_assets(transactions: Iterable[Transaction]) -> List[AssetType]:
    """Assets whose net quantity over the whole log is positive."""
    quantities: Dict[AssetType, Decimal] = defaultdict(lambda: Decimal("0"))
    for tx in transactions:
        quantities[tx.asset] += tx.signed_quantity
    return [asset for asset, qty in quantities.items() if qty > 0]


def total_value(holdings: Iterable[AssetHolding]) -> Decimal:
    return sum((h.value_ils for h in holdings), Decimal("0"))


def average_change(holdings: List[AssetHolding]) -> Decimal:
    """Unweighted mean of the 24h change across holdings."""
    if not holdings:
        return Decimal("0")
    return sum((h.change_24h for h in holdings), Decimal("0")) / len(holdings)
