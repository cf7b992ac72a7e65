from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Dict

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from portfolio_tracker.api.dependencies import (
    Identity,
    get_identity_resolver,
    get_quote_service,
    get_valuation_engine,
)
from portfolio_tracker.api.routes import assets, health, portfolio, transactions
from portfolio_tracker.domain.exceptions import DataUnavailable
from portfolio_tracker.domain.models import AssetType, PricePoint
from portfolio_tracker.domain.services.valuation_engine import ValuationEngine
from portfolio_tracker.domain.strategy.asset_universe import is_fixed_ils
from portfolio_tracker.infrastructure.db.database import Base, get_db
from portfolio_tracker.services.quote_service import QuoteService
from portfolio_tracker.utils.time import trailing_days

TODAY = date(2026, 3, 15)


class StubMarket:
    """Constant USD prices for history and quotes, plus a fixed FX rate"""

    def __init__(self, prices: Dict[AssetType, Decimal], rate: Decimal = Decimal("3.5")):
        self.prices = dict(prices)
        self.rate = rate
        self.failing: Dict[AssetType, Exception] = {}

    async def fetch(self, asset: AssetType, days: int):
        if asset in self.failing:
            raise self.failing[asset]
        price = Decimal("1") if is_fixed_ils(asset) else self.prices.get(asset)
        if price is None:
            raise DataUnavailable(asset.value, "no stub price")
        return [PricePoint(date=day, price=price) for day in trailing_days(days, TODAY)]

    async def get_quote(self, asset: AssetType):
        if asset in self.failing:
            raise self.failing[asset]
        if asset not in self.prices:
            raise DataUnavailable(asset.value, "no stub price")
        return self.prices[asset], Decimal("2.5")


class StubFx:
    def __init__(self, market: StubMarket):
        self.market = market

    async def fetch(self) -> Decimal:
        return self.market.rate


@pytest.fixture()
async def db_engine(tmp_path):
    db_path = tmp_path / "test.db"
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        future=True,
        echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session


@pytest.fixture()
def stub_market() -> StubMarket:
    return StubMarket({
        AssetType.BTC: Decimal("100"),
        AssetType.ETH: Decimal("10"),
        AssetType.SPY: Decimal("50"),
    })


@pytest.fixture()
async def app(db_session, stub_market) -> FastAPI:
    app = FastAPI()
    app.include_router(health.router, prefix="/api/v1", tags=["Health"])
    app.include_router(assets.router, prefix="/api/v1/assets", tags=["Assets"])
    app.include_router(transactions.router, prefix="/api/v1/transactions", tags=["Transactions"])
    app.include_router(portfolio.router, prefix="/api/v1/portfolio", tags=["Portfolio"])

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    fx = StubFx(stub_market)
    quote_service = QuoteService(quote_provider=stub_market, fx_provider=fx)
    engine = ValuationEngine(
        history_provider=stub_market,
        fx_provider=fx,
        clock=lambda: TODAY,
    )

    # Bearer token is the subject itself
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_resolver] = lambda: (lambda token: Identity(subject=token))
    app.dependency_overrides[get_quote_service] = lambda: quote_service
    app.dependency_overrides[get_valuation_engine] = lambda: engine

    return app


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": "Bearer user-1"},
    ) as ac:
        yield ac


@pytest.fixture()
def today() -> date:
    return TODAY
