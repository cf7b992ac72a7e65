"""
Transaction API Routes
Record, edit and import the caller's buy/sell transactions

Dates are YYYY-MM-DD, or "0" for "today" (resolved at valuation time).
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field

from portfolio_tracker.api.dependencies import get_transaction_repository
from portfolio_tracker.domain.models import (
    QUANTITY_DECIMAL_PLACES,
    TOTAL_ILS_DECIMAL_PLACES,
    AssetType,
    Transaction,
    TransactionType,
)
from portfolio_tracker.domain.services.transaction_import import parse_date, parse_transactions_csv
from portfolio_tracker.domain.strategy.asset_universe import parse_asset
from portfolio_tracker.infrastructure.db.repositories.transaction_repository import (
    TransactionRepository,
    date_to_db,
)
from portfolio_tracker.utils.time import to_utc_iso

logger = logging.getLogger(__name__)
router = APIRouter()


# -------------------------------------------------------------------
# Request / response models
# -------------------------------------------------------------------

def _validate_date(value: str) -> str:
    # Raises ValueError -> 422
    parse_date(value)
    return value.strip()


def _validate_asset(value):
    if isinstance(value, AssetType):
        return value
    asset = parse_asset(value)
    if asset is None:
        raise ValueError(f"Unknown asset: {value!r}")
    return asset


def _validate_type(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


TxDate = Annotated[str, AfterValidator(_validate_date)]
TxAsset = Annotated[AssetType, BeforeValidator(_validate_asset)]
TxType = Annotated[TransactionType, BeforeValidator(_validate_type)]


class TransactionCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: TxDate
    asset: TxAsset
    type: TxType
    quantity: Decimal = Field(gt=0, decimal_places=QUANTITY_DECIMAL_PLACES)
    total_ils: Decimal = Field(gt=0, decimal_places=TOTAL_ILS_DECIMAL_PLACES, alias="totalILS")


class TransactionUpdate(BaseModel):
    """Partial update; only the fields sent are changed"""
    model_config = ConfigDict(populate_by_name=True)

    date: Optional[TxDate] = None
    asset: Optional[TxAsset] = None
    type: Optional[TxType] = None
    quantity: Optional[Decimal] = Field(default=None, gt=0, decimal_places=QUANTITY_DECIMAL_PLACES)
    total_ils: Optional[Decimal] = Field(
        default=None, gt=0, decimal_places=TOTAL_ILS_DECIMAL_PLACES, alias="totalILS"
    )


class TransactionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    date: str
    asset: str
    type: str
    quantity: float
    total_ils: float = Field(alias="totalILS")
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return to_utc_iso(value) if value else None


def to_response(tx: Transaction) -> TransactionResponse:
    return TransactionResponse(
        id=tx.id,
        date=date_to_db(tx.date),
        asset=tx.asset.value,
        type=tx.type.value,
        quantity=float(tx.quantity),
        total_ils=float(tx.total_ils),
        created_at=_iso(tx.created_at),
        updated_at=_iso(tx.updated_at),
    )


# -------------------------------------------------------------------
# Routes
# -------------------------------------------------------------------

@router.get("", response_model=List[TransactionResponse])
async def list_transactions(repo: TransactionRepository = Depends(get_transaction_repository)):
    """All of the caller's transactions, newest first"""
    transactions = await repo.get_all()
    return [to_response(tx) for tx in transactions]


@router.post("", response_model=TransactionResponse, status_code=201)
async def create_transaction(
    request: TransactionCreate,
    repo: TransactionRepository = Depends(get_transaction_repository),
):
    try:
        tx = await repo.create(
            asset=request.asset,
            type=request.type,
            quantity=request.quantity,
            total_ils=request.total_ils,
            tx_date=parse_date(request.date),
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    logger.info(f"✅ Recorded {tx.type.value} {tx.quantity} {tx.asset.value} for ₪{tx.total_ils}")
    return to_response(tx)


@router.post("/import", response_model=List[TransactionResponse], status_code=201)
async def import_transactions(
    request: Request,
    repo: TransactionRepository = Depends(get_transaction_repository),
):
    """
    Import transactions from a CSV request body.

    The header row is matched loosely (e.g. "Total ILS", "Amount").
    Malformed rows are skipped; the created transactions are returned.
    """
    body = await request.body()
    try:
        csv_text = body.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV body must be UTF-8 text")

    rows = parse_transactions_csv(csv_text)
    created: List[Transaction] = []
    for row in rows:
        created.append(
            await repo.create(
                asset=row.asset,
                type=row.type,
                quantity=row.quantity,
                total_ils=row.total_ils,
                tx_date=row.date,
            )
        )
    logger.info(f"📥 Imported {len(created)} transactions from CSV")
    return [to_response(tx) for tx in created]


async def _update(transaction_id: str, request: TransactionUpdate, repo: TransactionRepository):
    # Explicit nulls are not a change
    changes = request.model_dump(exclude_unset=True, exclude_none=True)
    if "date" in changes:
        changes["date"] = parse_date(changes["date"])

    try:
        tx = await repo.update(transaction_id, changes)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if tx is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return to_response(tx)


@router.put("/{transaction_id}", response_model=TransactionResponse)
async def replace_transaction(
    transaction_id: str,
    request: TransactionUpdate,
    repo: TransactionRepository = Depends(get_transaction_repository),
):
    return await _update(transaction_id, request, repo)


@router.patch("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: str,
    request: TransactionUpdate,
    repo: TransactionRepository = Depends(get_transaction_repository),
):
    return await _update(transaction_id, request, repo)


@router.delete("/{transaction_id}")
async def delete_transaction(
    transaction_id: str,
    repo: TransactionRepository = Depends(get_transaction_repository),
):
    deleted = await repo.delete(transaction_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return {"status": "deleted", "id": transaction_id}
