from typing import List

from fastapi import APIRouter
from pydantic import BaseModel

from portfolio_tracker.domain.strategy.asset_universe import list_assets

router = APIRouter()


class AssetResponse(BaseModel):
    asset: str
    display_name: str
    description: str
    valuation_class: str


@router.get("", response_model=List[AssetResponse])
async def get_assets():
    """Instruments a transaction may reference"""
    return [AssetResponse(**meta) for meta in list_assets()]
