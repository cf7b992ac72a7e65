"""
FastAPI Main Application
Wires settings, logging, database and market data into the API
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from portfolio_tracker.config import settings
from portfolio_tracker.infrastructure.db.database import init_db, close_db
from portfolio_tracker.infrastructure.market_data.provider_factory import build_quote_service
from portfolio_tracker.utils.logging_redaction import install_redaction_filter

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)
install_redaction_filter()

# Reduce noisy loggers in production
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Handles startup and shutdown of database and shared services
    """
    # ===================
    # STARTUP
    # ===================
    logger.info("="*60)
    logger.info("🚀 Starting Portfolio Tracker")
    logger.info("="*60)

    logger.info("📊 Initializing database...")
    await init_db()
    logger.info(f"✅ Database initialized (auto-create: {settings.AUTO_CREATE_TABLES})")

    app.state.quote_service = build_quote_service()
    logger.info(f"✅ Quote service ready (cache TTL {settings.QUOTE_CACHE_TTL_SECONDS}s)")

    logger.info(f"   ✅ API Server: http://{settings.API_HOST}:{settings.API_PORT}")
    logger.info(f"   ✅ API Docs: http://{settings.API_HOST}:{settings.API_PORT}/docs")
    logger.info(
        f"   📈 History window: {settings.MIN_HISTORY_DAYS}-{settings.MAX_HISTORY_DAYS} days, "
        f"gap fill: {settings.HISTORY_GAP_FILL}"
    )

    yield

    # ===================
    # SHUTDOWN
    # ===================
    logger.info("🛑 Shutting down Portfolio Tracker...")
    await close_db()
    logger.info("✅ Database connections closed")


# Create FastAPI app
app = FastAPI(
    title="Portfolio Tracker",
    description="Personal portfolio tracking with historical ILS valuation",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Portfolio Tracker",
        "version": "1.0.0",
        "docs": "/docs"
    }


# Import and include routers
from portfolio_tracker.api.routes import assets, health, portfolio, transactions  # noqa: E402

app.include_router(health.router, prefix="/api/v1", tags=["Health"])
app.include_router(assets.router, prefix="/api/v1/assets", tags=["Assets"])
app.include_router(transactions.router, prefix="/api/v1/transactions", tags=["Transactions"])
app.include_router(portfolio.router, prefix="/api/v1/portfolio", tags=["Portfolio"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("portfolio_tracker.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.DEBUG)
