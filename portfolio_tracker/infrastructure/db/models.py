"""
Database Models (SQLAlchemy ORM)
Users and their buy/sell transactions
"""

import uuid

from sqlalchemy import (
    Column, String, Numeric, DateTime, ForeignKey, Enum as SQLEnum, Index
)
from sqlalchemy.orm import relationship
import enum

from portfolio_tracker.domain.models import QUANTITY_DECIMAL_PLACES, TOTAL_ILS_DECIMAL_PLACES
from portfolio_tracker.infrastructure.db.database import Base
from portfolio_tracker.utils.time import now_utc_naive


def _uuid() -> str:
    return str(uuid.uuid4())


# Enums
class TransactionTypeEnum(str, enum.Enum):
    BUY = "buy"
    SELL = "sell"


# Tables

class UserModel(Base):
    """Portfolio owner, keyed by identity provider subject"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    subject = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, default=now_utc_naive)

    # Relationships
    transactions = relationship("TransactionModel", back_populates="user")


class TransactionModel(Base):
    """Buy/sell transaction"""
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)

    # YYYY-MM-DD, or "0" for "today"
    date = Column(String(10), nullable=False)
    asset = Column(String(20), nullable=False, index=True)
    type = Column(
        SQLEnum(TransactionTypeEnum, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    quantity = Column(Numeric(20, QUANTITY_DECIMAL_PLACES), nullable=False)
    total_ils = Column(Numeric(14, TOTAL_ILS_DECIMAL_PLACES), nullable=False)

    created_at = Column(DateTime, nullable=False, default=now_utc_naive)
    updated_at = Column(DateTime, nullable=False, default=now_utc_naive)

    # Relationships
    user = relationship("UserModel", back_populates="transactions")

    # Indexes
    __table_args__ = (
        Index('ix_transactions_user_date', 'user_id', 'date'),
    )
