import logging
from concurrent.futures import Executor
from dataclasses import dataclass, field

from controllers.base import Dispatch, ViewController
from database.live_query import CombinedQuery, combine_latest
from models.category import Category
from models.summary import DailyGroup, MonthlySummary
from models.transaction import Transaction
from services import statistics
from services.report_service import ReportService
from services.transaction_service import TransactionService
from utils.constants import RECENT_TRANSACTION_LIMIT, UNKNOWN_CATEGORY_NAME
from utils.date_helpers import current_month_str

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HomeState:
    is_loading: bool = True
    error: str | None = None
    month: str = ""
    month_summary: MonthlySummary = field(default_factory=MonthlySummary)
    recent_transactions: list[Transaction] = field(default_factory=list)
    day_groups: list[DailyGroup] = field(default_factory=list)
    categories: dict[int, Category] = field(default_factory=dict)


def month_view(report_svc: ReportService, month: str) -> CombinedQuery[dict]:
    """Month transactions joined with categories into the home screen's fields."""
    tz = report_svc.tz

    def combine(transactions: list[Transaction], categories: list[Category]) -> dict:
        return {
            "month_summary": statistics.summarize(transactions),
            "day_groups": statistics.group_by_day(transactions, tz),
            "categories": {c.id: c for c in categories},
        }

    return combine_latest(report_svc.observe_month(month), report_svc.observe_categories(), combine)


class HomeController(ViewController[HomeState]):
    """Current month at a glance: totals, transactions grouped by day, recent entries."""

    def __init__(self, report_svc: ReportService, tx_svc: TransactionService,
                 executor: Executor | None = None, dispatch: Dispatch | None = None):
        super().__init__(HomeState(), executor, dispatch)
        self._report_svc = report_svc
        self._tx_svc = tx_svc

    def _on_start(self):
        month = current_month_str(self._report_svc.tz)
        self._update(is_loading=True, month=month)

        self._hold(month_view(self._report_svc, month).subscribe(
            self._on_month_view, self._fail, self._executor,
        ))
        self._hold(self._tx_svc.observe_recent(RECENT_TRANSACTION_LIMIT).subscribe(
            lambda txs: self._update(recent_transactions=txs), self._fail, self._executor,
        ))

    def _on_month_view(self, view: dict):
        self._update(is_loading=False, **view)

    def category_name(self, category_id: int) -> str:
        category = self.state.categories.get(category_id)
        return category.name if category else UNKNOWN_CATEGORY_NAME

    def category_for(self, category_id: int) -> Category | None:
        return self.state.categories.get(category_id)

    def delete_transaction(self, tx_id: int):
        logger.info("Deleting transaction %s", tx_id)
        self._run_in_background(lambda: self._tx_svc.delete(tx_id))
