"""
CSV transaction import.

Columns are matched by substring of the lower-cased header:
date, asset, type, quantity, and total/ils/amount for the ILS total.
Rows that do not yield a complete, valid transaction are dropped, including
amounts with more decimal places than are stored.
"""

import csv
import io
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from portfolio_tracker.domain.models import (
    QUANTITY_DECIMAL_PLACES,
    SENTINEL_DATE,
    TOTAL_ILS_DECIMAL_PLACES,
    AssetType,
    TransactionType,
    fits_decimal_places,
)
from portfolio_tracker.domain.strategy.asset_universe import parse_asset

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class ImportedRow:
    date: Optional[date]
    asset: AssetType
    type: TransactionType
    quantity: Decimal
    total_ils: Decimal


def parse_date(value: str) -> Optional[date]:
    """
    Parse ``YYYY-MM-DD`` or the sentinel. Returns None for the sentinel.

    Raises:
        ValueError: for anything else
    """
    value = (value or "").strip()
    if value == SENTINEL_DATE:
        return None
    if not _ISO_DATE.match(value):
        raise ValueError(f"Date must be in YYYY-MM-DD format: {value!r}")
    return datetime.strptime(value, "%Y-%m-%d").date()


def _map_columns(header: List[str]) -> Dict[str, int]:
    columns: Dict[str, int] = {}
    for index, name in enumerate(h.strip().lower() for h in header):
        if "date" in name:
            columns["date"] = index
        if "asset" in name:
            columns["asset"] = index
        if "type" in name:
            columns["type"] = index
        if "quantity" in name:
            columns["quantity"] = index
        if "total" in name or "ils" in name or "amount" in name:
            columns["total"] = index
    return columns


def _positive_decimal(value: Optional[str], places: int) -> Optional[Decimal]:
    try:
        number = Decimal((value or "").strip())
    except InvalidOperation:
        return None
    # Finer than the stored precision
    if not fits_decimal_places(number, places) or number <= 0:
        return None
    return number


def _parse_row(row: List[str], columns: Dict[str, int]) -> Optional[ImportedRow]:
    def cell(key: str) -> Optional[str]:
        index = columns.get(key)
        if index is None or index >= len(row):
            return None
        return row[index].strip()

    raw_date = cell("date")
    asset = parse_asset(cell("asset"))
    raw_type = (cell("type") or "").lower()
    quantity = _positive_decimal(cell("quantity"), QUANTITY_DECIMAL_PLACES)
    total = _positive_decimal(cell("total"), TOTAL_ILS_DECIMAL_PLACES)

    if not raw_date or asset is None or quantity is None or total is None:
        return None
    if raw_type not in (TransactionType.BUY.value, TransactionType.SELL.value):
        return None
    try:
        tx_date = parse_date(raw_date)
    except ValueError:
        return None

    return ImportedRow(
        date=tx_date,
        asset=asset,
        type=TransactionType(raw_type),
        quantity=quantity,
        total_ils=total,
    )


def parse_transactions_csv(csv_text: str) -> List[ImportedRow]:
    """Parse CSV text into valid rows, silently skipping malformed ones."""
    reader = csv.reader(io.StringIO((csv_text or "").strip()))
    header = next(reader, None)
    if not header:
        return []

    columns = _map_columns(header)
    rows: List[ImportedRow] = []
    for line_no, row in enumerate(reader, start=2):
        if not any(cell.strip() for cell in row):
            continue
        parsed = _parse_row(row, columns)
        if parsed is None:
            logger.debug("Skipping malformed CSV row %d: %r", line_no, row)
            continue
        rows.append(parsed)
    return rows
