"""
Transaction Repository
CRUD operations for a single user's transactions
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_tracker.domain.models import (
    QUANTITY_DECIMAL_PLACES,
    SENTINEL_DATE,
    TOTAL_ILS_DECIMAL_PLACES,
    AssetType,
    Transaction,
    TransactionType,
    fits_decimal_places,
)
from portfolio_tracker.infrastructure.db.models import TransactionModel, TransactionTypeEnum
from portfolio_tracker.utils.time import now_utc_naive

_UPDATABLE_FIELDS = ("date", "asset", "type", "quantity", "total_ils")


def date_to_db(value: Optional[date]) -> str:
    return value.isoformat() if value is not None else SENTINEL_DATE


def date_from_db(value: str) -> Optional[date]:
    if value == SENTINEL_DATE:
        return None
    return date.fromisoformat(value)


def _check_precision(quantity: Decimal, total_ils: Decimal) -> None:
    """Reject amounts the Numeric columns would silently round"""
    if not fits_decimal_places(Decimal(quantity), QUANTITY_DECIMAL_PLACES):
        raise ValueError(f"Quantity allows at most {QUANTITY_DECIMAL_PLACES} decimal places")
    if not fits_decimal_places(Decimal(total_ils), TOTAL_ILS_DECIMAL_PLACES):
        raise ValueError(f"Total ILS allows at most {TOTAL_ILS_DECIMAL_PLACES} decimal places")


class TransactionRepository:
    """Repository for transactions, scoped to one user"""

    def __init__(self, session: AsyncSession, user_id: str):
        """Initialize with database session and owning user"""
        self.session = session
        self.user_id = user_id

    async def _get_model(self, transaction_id: str) -> Optional[TransactionModel]:
        result = await self.session.execute(
            select(TransactionModel).where(
                TransactionModel.id == transaction_id,
                TransactionModel.user_id == self.user_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_all(self) -> List[Transaction]:
        """All of the user's transactions, newest date first"""
        result = await self.session.execute(
            select(TransactionModel)
            .where(TransactionModel.user_id == self.user_id)
            .order_by(TransactionModel.date.desc(), TransactionModel.created_at.desc())
        )
        return [self._to_domain(model) for model in result.scalars().all()]

    async def get(self, transaction_id: str) -> Optional[Transaction]:
        model = await self._get_model(transaction_id)
        return self._to_domain(model) if model else None

    async def create(
        self,
        asset: AssetType,
        type: TransactionType,
        quantity: Decimal,
        total_ils: Decimal,
        tx_date: Optional[date],
    ) -> Transaction:
        """
        Create new transaction

        Args:
            asset: Asset bought or sold
            type: buy or sell
            quantity: Units, positive
            total_ils: ILS paid/received, positive
            tx_date: Calendar day, or None for "today"

        Returns:
            Created Transaction

        Raises:
            ValueError: if an amount is finer than its stored precision
        """
        _check_precision(quantity, total_ils)
        now = now_utc_naive()
        model = TransactionModel(
            user_id=self.user_id,
            date=date_to_db(tx_date),
            asset=AssetType(asset).value,
            type=TransactionTypeEnum(TransactionType(type).value),
            quantity=quantity,
            total_ils=total_ils,
            created_at=now,
            updated_at=now,
        )
        self.session.add(model)
        await self.session.flush()
        return self._to_domain(model)

    async def update(self, transaction_id: str, changes: Dict[str, Any]) -> Optional[Transaction]:
        """
        Apply a partial update. Keys outside the mutable fields are ignored.

        Returns:
            Updated Transaction, or None if it does not exist for this user
        """
        model = await self._get_model(transaction_id)
        if model is None:
            return None

        for field in _UPDATABLE_FIELDS:
            if field not in changes:
                continue
            value = changes[field]
            if field == "date":
                model.date = date_to_db(value)
            elif field == "asset":
                model.asset = AssetType(value).value
            elif field == "type":
                model.type = TransactionTypeEnum(TransactionType(value).value)
            else:
                setattr(model, field, value)

        model.updated_at = now_utc_naive()
        # Validate the merged record before it is flushed
        updated = self._to_domain(model)
        _check_precision(updated.quantity, updated.total_ils)
        await self.session.flush()
        return updated

    async def delete(self, transaction_id: str) -> bool:
        model = await self._get_model(transaction_id)
        if model is None:
            return False
        await self.session.delete(model)
        await self.session.flush()
        return True

    def _to_domain(self, model: TransactionModel) -> Transaction:
        """Convert ORM model to domain object"""
        return Transaction(
            id=model.id,
            user_id=model.user_id,
            date=date_from_db(model.date),
            asset=AssetType(model.asset),
            type=TransactionType(TransactionTypeEnum(model.type).value),
            quantity=Decimal(str(model.quantity)),
            total_ils=Decimal(str(model.total_ils)),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
