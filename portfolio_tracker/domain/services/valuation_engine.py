"""
VALUATION ENGINE
Historical portfolio value in ILS, one point per day.

RESPONSIBILITIES:
- Size the valuation window from the transaction log
- Fetch one daily price series per held asset and one USD/ILS rate
- Replay the log day by day and value each day's holdings

RULES:
- Empty log: empty series, no provider calls
- Any fetch failure aborts the whole valuation (ValuationFailed) and
  cancels the fetches still in flight
- Fixed-ILS assets are summed in ILS and never converted
- Market assets are summed in USD and converted with one rate for all days
- Non-positive holdings contribute nothing
- Rounding only on each day's final total
"""

import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, Iterable, List, Sequence

from portfolio_tracker.domain.exceptions import PortfolioError, ValuationFailed
from portfolio_tracker.domain.models import (
    AssetType,
    GapFillPolicy,
    PortfolioValuePoint,
    PricePoint,
    Transaction,
)
from portfolio_tracker.domain.strategy.asset_universe import is_fixed_ils
from portfolio_tracker.infrastructure.market_data.types import FxRateProvider, PriceHistoryProvider
from portfolio_tracker.utils.concurrency import gather_or_cancel
from portfolio_tracker.utils.time import today_utc

logger = logging.getLogger(__name__)


def align_series(
    series: Sequence[PricePoint],
    axis: Sequence[date],
    gap_fill: GapFillPolicy = GapFillPolicy.NONE,
) -> Dict[date, Decimal]:
    """
    Map a price series onto ``axis``.

    NONE keeps exact date matches only; dates the series lacks are left
    out. FORWARD_FILL carries the latest earlier price forward.
    """
    by_date = {point.date: point.price for point in series}
    if gap_fill == GapFillPolicy.NONE:
        return {day: by_date[day] for day in axis if day in by_date}

    ordered = sorted(series, key=lambda p: p.date)
    aligned: Dict[date, Decimal] = {}
    idx = 0
    last_price = None
    for day in axis:
        while idx < len(ordered) and ordered[idx].date <= day:
            last_price = ordered[idx].price
            idx += 1
        if last_price is not None:
            aligned[day] = last_price
    return aligned


class ValuationEngine:
    """
    Reconstructs the value-over-time series of a portfolio.

    Collaborators are injected so tests can run against fake providers.
    """

    def __init__(
        self,
        history_provider: PriceHistoryProvider,
        fx_provider: FxRateProvider,
        clock: Callable[[], date] = today_utc,
        min_days: int = 30,
        max_days: int = 365,
        gap_fill: GapFillPolicy = GapFillPolicy.NONE,
    ):
        if min_days < 1 or max_days < min_days:
            raise ValueError("Invalid valuation window bounds")
        self.history_provider = history_provider
        self.fx_provider = fx_provider
        self.clock = clock
        self.min_days = min_days
        self.max_days = max_days
        self.gap_fill = GapFillPolicy(gap_fill)

    def window_days(self, transactions: Iterable[Transaction], today: date) -> int:
        """
        Days to reconstruct: span from the earliest transaction to today,
        inclusive, clamped to [min_days, max_days].
        """
        earliest = min(tx.effective_date(today) for tx in transactions)
        span = (today - earliest).days + 1
        return max(self.min_days, min(span, self.max_days))

    async def _fetch_inputs(self, assets: List[AssetType], days: int):
        try:
            rate, *series = await gather_or_cancel(
                self.fx_provider.fetch(),
                *(self.history_provider.fetch(asset, days) for asset in assets),
            )
        except PortfolioError as exc:
            logger.error(f"❌ Valuation inputs unavailable: {exc}")
            raise ValuationFailed(exc) from exc
        return rate, dict(zip(assets, series))

    async def calculate_history(self, transactions: Iterable[Transaction]) -> List[PortfolioValuePoint]:
        """
        Value of the portfolio on every day of the window, ascending.
        """
        transactions = list(transactions)
        if not transactions:
            logger.info("ℹ️ No transactions, empty history")
            return []

        today = self.clock()
        days = self.window_days(transactions, today)
        assets = list(dict.fromkeys(tx.asset for tx in transactions))
        logger.info(f"📊 Valuing {len(transactions)} transactions over {days} days for {[a.value for a in assets]}")

        rate, series_by_asset = await self._fetch_inputs(assets, days)

        # Reference axis: the first asset's calendar
        axis = sorted(point.date for point in series_by_asset[assets[0]])
        prices = {
            asset: align_series(series, axis, self.gap_fill)
            for asset, series in series_by_asset.items()
        }

        ordered = sorted(transactions, key=lambda tx: tx.effective_date(today))
        holdings: Dict[AssetType, Decimal] = {}
        cursor = 0

        history: List[PortfolioValuePoint] = []
        for day in axis:
            while cursor < len(ordered) and ordered[cursor].effective_date(today) <= day:
                tx = ordered[cursor]
                holdings[tx.asset] = holdings.get(tx.asset, Decimal("0")) + tx.signed_quantity
                cursor += 1

            total_ils = Decimal("0")
            total_usd = Decimal("0")
            for asset, quantity in holdings.items():
                if quantity <= 0:
                    continue
                price = prices[asset].get(day)
                if price is None:
                    continue
                if is_fixed_ils(asset):
                    total_ils += quantity * price
                else:
                    total_usd += quantity * price

            total = (total_ils + total_usd * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
            history.append(PortfolioValuePoint(date=day, total_ils=int(total)))

        logger.info(f"✅ Generated {len(history)} history points (USD/ILS {rate})")
        return history
