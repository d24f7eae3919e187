import logging
from datetime import date, tzinfo, timezone

from database.category_dao import CategoryDAO
from database.live_query import LiveQuery
from database.transaction_dao import TransactionDAO
from models.category import Category
from models.summary import CategoryStatistic, MonthlySummary
from models.transaction import Transaction
from services import statistics
from utils.constants import DEFAULT_TREND_MONTHS, MAX_TREND_MONTHS
from utils.date_helpers import (
    current_month_str, day_bounds, month_bounds, month_of, months_between,
    trailing_months, year_bounds, format_month,
)

logger = logging.getLogger(__name__)


class ReportService:
    """Range queries against the store fed through the statistics engine.

    All day/month/year windows are built in `tz`, the same zone the engine
    uses for bucketing.
    """

    def __init__(self, tx_dao: TransactionDAO, category_dao: CategoryDAO,
                 tz: tzinfo = timezone.utc):
        self._tx_dao = tx_dao
        self._category_dao = category_dao
        self.tz = tz

    # ── Raw windows ──────────────────────────────────────────────────────────

    def get_month_transactions(self, month: str) -> list[Transaction]:
        return self._tx_dao.get_in_range(*month_bounds(month, self.tz))

    def observe_month(self, month: str) -> LiveQuery[list[Transaction]]:
        return self._tx_dao.observe_in_range(*month_bounds(month, self.tz))

    def observe_categories(self) -> LiveQuery[list[Category]]:
        return self._category_dao.observe_all()

    def observe_transaction_changes(self, fetch, label: str = "") -> LiveQuery:
        return self._tx_dao.observe(fetch, label)

    # ── Summaries ────────────────────────────────────────────────────────────

    def get_month_summary(self, month: str | None = None) -> MonthlySummary:
        m = month or current_month_str(self.tz)
        return statistics.summarize(self.get_month_transactions(m))

    def get_year_summary(self, year: int) -> MonthlySummary:
        return statistics.summarize(self._tx_dao.get_in_range(*year_bounds(year, self.tz)))

    def get_category_statistics(
        self, type_: str, month: str | None = None
    ) -> list[CategoryStatistic]:
        m = month or current_month_str(self.tz)
        lookup = self.category_lookup(self._category_dao.get_all())
        return statistics.category_breakdown(self.get_month_transactions(m), lookup, type_)

    def category_lookup(self, categories: list[Category]):
        """Resolve ids from `categories`, falling back to a store read for ids it lacks."""
        by_id = {c.id: c for c in categories}

        def lookup(category_id: int) -> Category | None:
            return by_id.get(category_id) or self._category_dao.get_by_id(category_id)

        return lookup

    def get_daily_statistics(self, start_date: date, end_date: date) -> dict:
        transactions = self._tx_dao.get_in_range(*day_bounds(start_date, end_date, self.tz))
        return statistics.daily_buckets(transactions, self.tz)

    # ── Trend window ─────────────────────────────────────────────────────────

    def trend_months(self, today: date | None = None) -> list[str]:
        """Months from the earliest transaction through the current month, newest first.

        With no transactions, the trailing DEFAULT_TREND_MONTHS months.
        A future-dated earliest transaction yields the current month only.
        The window never reaches back more than MAX_TREND_MONTHS months.
        """
        current = format_month(today) if today else current_month_str(self.tz)
        earliest = self._tx_dao.get_earliest()
        if earliest is None:
            return trailing_months(current, DEFAULT_TREND_MONTHS)
        first = min(month_of(earliest.date, self.tz), current)
        oldest = trailing_months(current, MAX_TREND_MONTHS)[-1]
        if first < oldest:
            logger.warning("Earliest transaction month %s is outside the trend window; starting at %s",
                           first, oldest)
            first = oldest
        return list(reversed(months_between(first, current)))
