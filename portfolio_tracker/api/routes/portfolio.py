"""
Portfolio API Routes
Current holdings, current value and value-over-time for the caller
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from portfolio_tracker.api.dependencies import (
    get_quote_service,
    get_transaction_repository,
    get_valuation_engine,
)
from portfolio_tracker.domain.exceptions import PortfolioError
from portfolio_tracker.domain.models import AssetHolding, Transaction
from portfolio_tracker.domain.services.holdings_engine import (
    average_change,
    current_holdings,
    held_assets,
    total_value,
)
from portfolio_tracker.domain.services.valuation_engine import ValuationEngine
from portfolio_tracker.infrastructure.db.repositories.transaction_repository import TransactionRepository
from portfolio_tracker.services.quote_service import QuoteService

logger = logging.getLogger(__name__)
router = APIRouter()


# Response models
class HoldingResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    asset: str
    quantity: float
    avg_price: float = Field(alias="avgPrice")
    current_price: float = Field(alias="currentPrice")
    value_ils: float = Field(alias="valueILS")
    change_24h: float = Field(alias="change24h")


class PortfolioValueResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_ils: float = Field(alias="totalILS")
    change_24h: float = Field(alias="change24h")
    holdings_count: int = Field(alias="holdingsCount")


class ValuePointResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str
    iso_date: str = Field(alias="isoDate")
    total_ils: int = Field(alias="totalILS")


def _round(value: Decimal, places: str = "0.01") -> float:
    return float(value.quantize(Decimal(places), rounding=ROUND_HALF_UP))


async def _load_holdings(
    transactions: List[Transaction],
    quote_service: QuoteService,
) -> List[AssetHolding]:
    assets = held_assets(transactions)
    try:
        quotes = await quote_service.get_quotes(assets)
    except PortfolioError as e:
        logger.error(f"❌ Quotes unavailable: {e}")
        raise HTTPException(status_code=503, detail=f"Price data unavailable: {e}")
    return current_holdings(transactions, quotes)


@router.get("/holdings", response_model=List[HoldingResponse])
async def get_holdings(
    repo: TransactionRepository = Depends(get_transaction_repository),
    quote_service: QuoteService = Depends(get_quote_service),
):
    """Positions with positive quantity, valued at current ILS prices"""
    transactions = await repo.get_all()
    holdings = await _load_holdings(transactions, quote_service)
    return [
        HoldingResponse(
            asset=h.asset.value,
            quantity=float(h.quantity),
            avg_price=_round(h.avg_price),
            current_price=float(h.current_price),
            value_ils=_round(h.value_ils),
            change_24h=float(h.change_24h),
        )
        for h in holdings
    ]


@router.get("/value", response_model=PortfolioValueResponse)
async def get_portfolio_value(
    repo: TransactionRepository = Depends(get_transaction_repository),
    quote_service: QuoteService = Depends(get_quote_service),
):
    """Total current value and the unweighted average 24h change"""
    transactions = await repo.get_all()
    holdings = await _load_holdings(transactions, quote_service)
    return PortfolioValueResponse(
        total_ils=_round(total_value(holdings)),
        change_24h=_round(average_change(holdings)),
        holdings_count=len(holdings),
    )


@router.get("/history", response_model=List[ValuePointResponse])
async def get_portfolio_history(
    repo: TransactionRepository = Depends(get_transaction_repository),
    engine: ValuationEngine = Depends(get_valuation_engine),
):
    """
    Daily portfolio value in ILS, oldest first.

    Fails as a whole with 503 when any price series or the exchange
    rate cannot be fetched; no partial chart is returned.
    """
    transactions = await repo.get_all()
    try:
        history = await engine.calculate_history(transactions)
    except PortfolioError as e:
        raise HTTPException(status_code=503, detail=f"Failed to fetch historical data: {e}")

    return [
        ValuePointResponse(date=point.label, iso_date=point.date.isoformat(), total_ils=point.total_ils)
        for point in history
    ]
