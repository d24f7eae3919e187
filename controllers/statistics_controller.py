import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import NamedTuple, Optional

from controllers.base import Dispatch, ViewController
from database.errors import StoreError
from database.live_query import Subscription, combine_latest
from models.category import Category
from models.summary import CategoryStatistic, MonthlyStats, MonthlySummary
from models.transaction import Transaction
from services import statistics
from services.report_service import ReportService
from utils.constants import DEFAULT_TREND_MONTHS, EXPENSE, TRANSACTION_TYPES
from utils.date_helpers import current_month_str, next_month, parse_month, prev_month, trailing_months

logger = logging.getLogger(__name__)

MAX_TREND_WORKERS = 6


@dataclass(frozen=True)
class StatisticsState:
    trend_loading: bool = True
    breakdown_loading: bool = True
    error: str | None = None
    selected_month: str = ""
    breakdown_type: str = EXPENSE
    monthly_stats: list[MonthlyStats] = field(default_factory=list)
    category_stats: list[CategoryStatistic] = field(default_factory=list)
    month_summary: MonthlySummary = field(default_factory=MonthlySummary)
    daily_buckets: dict[date, dict[str, Decimal]] = field(default_factory=dict)

    @property
    def is_loading(self) -> bool:
        return self.trend_loading or self.breakdown_loading

    @property
    def available_months(self) -> list[str]:
        return [m.month for m in self.monthly_stats]


class TrendResult(NamedTuple):
    stats: list[MonthlyStats]
    error: Optional[Exception] = None


class StatisticsController(ViewController[StatisticsState]):
    """Trend across months plus a per-category breakdown of one selected month.

    The trend reloads on every transaction change. Changing the selected month
    or the breakdown type only resubscribes the breakdown.
    """

    def __init__(self, report_svc: ReportService, executor: Executor | None = None,
                 dispatch: Dispatch | None = None, initial_month: str | None = None):
        month = initial_month or current_month_str(report_svc.tz)
        super().__init__(StatisticsState(selected_month=month), executor, dispatch)
        self._report_svc = report_svc
        self._breakdown_sub: Subscription | None = None

    def _on_start(self):
        self._update(trend_loading=True, breakdown_loading=True)
        trend = self._report_svc.observe_transaction_changes(self.load_trend, "trend")
        self._hold(trend.subscribe(
            self._on_trend,
            lambda e: self._fail(e, trend_loading=False),
            self._executor,
        ))
        self._subscribe_breakdown()

    def _on_stop(self):
        self._dispose_breakdown()

    # ── Trend ────────────────────────────────────────────────────────────────

    def load_trend(self) -> TrendResult:
        """Fetch every trend month concurrently and merge once all have finished.

        A month that fails counts as zero; the first failure is kept for the
        error state.
        """
        first_error = None
        try:
            months = self._report_svc.trend_months()
        except (StoreError, ValueError) as e:
            logger.warning("Could not compute trend window: %s", e)
            first_error = e
            months = trailing_months(current_month_str(self._report_svc.tz), DEFAULT_TREND_MONTHS)

        monthly_sets: list[tuple[str, list[Transaction]]] = []
        workers = max(1, min(len(months), MAX_TREND_WORKERS))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="trend") as pool:
            futures = [(m, pool.submit(self._report_svc.get_month_transactions, m)) for m in months]
            for month, future in futures:
                try:
                    monthly_sets.append((month, future.result()))
                except Exception as e:
                    logger.warning("Trend month %s failed, using zero: %s", month, e)
                    if first_error is None:
                        first_error = e
                    monthly_sets.append((month, []))
        return TrendResult(statistics.monthly_series(monthly_sets), first_error)

    def _on_trend(self, result: TrendResult):
        self._update(trend_loading=False, monthly_stats=result.stats)
        if result.error is not None:
            self._fail(result.error, trend_loading=False)

    # ── Breakdown ────────────────────────────────────────────────────────────

    def _subscribe_breakdown(self):
        self._dispose_breakdown()
        month = self.state.selected_month
        type_ = self.state.breakdown_type
        tz = self._report_svc.tz

        def combine(transactions: list[Transaction], categories: list[Category]) -> dict:
            lookup = self._report_svc.category_lookup(categories)
            return {
                "month_summary": statistics.summarize(transactions),
                "category_stats": statistics.category_breakdown(transactions, lookup, type_),
                "daily_buckets": statistics.daily_buckets(transactions, tz),
            }

        def on_next(view: dict):
            current = self.state
            if current.selected_month != month or current.breakdown_type != type_:
                return
            self._update(breakdown_loading=False, **view)

        query = combine_latest(
            self._report_svc.observe_month(month), self._report_svc.observe_categories(), combine,
        )
        self._breakdown_sub = query.subscribe(
            on_next, lambda e: self._fail(e, breakdown_loading=False), self._executor,
        )

    def _dispose_breakdown(self):
        if self._breakdown_sub is not None:
            self._breakdown_sub.dispose()
            self._breakdown_sub = None

    def _reselect(self, **changes):
        self._update(breakdown_loading=True, **changes)
        if self.is_active:
            self._subscribe_breakdown()

    def select_month(self, month: str):
        if parse_month(month) is None:
            raise ValueError(f"Invalid month: {month}")
        if month == self.state.selected_month:
            return
        logger.debug("Statistics month -> %s", month)
        self._reselect(selected_month=month)

    def select_type(self, type_: str):
        if type_ not in TRANSACTION_TYPES:
            raise ValueError(f"Invalid type: {type_}")
        if type_ == self.state.breakdown_type:
            return
        self._reselect(breakdown_type=type_)

    def next_month(self):
        self.select_month(next_month(self.state.selected_month))

    def prev_month(self):
        self.select_month(prev_month(self.state.selected_month))
