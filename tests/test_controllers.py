from datetime import datetime, timezone
from decimal import Decimal

import pytest

from controllers.home_controller import HomeController
from controllers.statistics_controller import StatisticsController
from database.errors import StoreUnavailableError
from database.events import CATEGORIES_CHANGED, TRANSACTIONS_CHANGED
from utils.constants import EXPENSE, INCOME, MAX_TREND_MONTHS, UNKNOWN_CATEGORY_NAME
from utils.date_helpers import current_month_str, trailing_months

UTC = timezone.utc


def at(*args):
    return datetime(*args, tzinfo=UTC)


def fail_with(message):
    def raiser(*_args, **_kwargs):
        raise StoreUnavailableError(message)
    return raiser


@pytest.fixture()
def home(report_service, tx_service, inline_executor):
    controller = HomeController(report_service, tx_service, executor=inline_executor)
    yield controller
    controller.stop()


@pytest.fixture()
def fixed_trend(monkeypatch, report_service):
    """Pin the trend window to Jan-Mar 2024 and count how often it is computed."""
    calls = []

    def trend_months(today=None):
        calls.append(1)
        return ["2024-03", "2024-02", "2024-01"]

    monkeypatch.setattr(report_service, "trend_months", trend_months)
    return calls


@pytest.fixture()
def stats(report_service, inline_executor):
    controller = StatisticsController(
        report_service, executor=inline_executor, initial_month="2024-03",
    )
    yield controller
    controller.stop()


# ── HomeController ───────────────────────────────────────────────────────────

def test_home_loads_current_month(home, tx_service, dining, salary):
    now = datetime.now(UTC)
    tx_service.create("12.50", dining.id, EXPENSE, now)
    tx_service.create("100", salary.id, INCOME, now)

    home.start()
    state = home.state
    assert not state.is_loading
    assert state.error is None
    assert state.month == current_month_str(UTC)
    assert state.month_summary.total_expense == Decimal("12.50")
    assert state.month_summary.total_income == Decimal("100")
    assert len(state.day_groups) == 1
    assert len(state.recent_transactions) == 2


def test_home_follows_writes_and_deletes(home, tx_service, dining):
    home.start()
    tx = tx_service.create("5", dining.id, EXPENSE, datetime.now(UTC))
    assert home.state.month_summary.transaction_count == 1

    home.delete_transaction(tx.id)
    assert home.state.month_summary.transaction_count == 0
    assert home.state.recent_transactions == []


def test_home_notifies_listeners(home, tx_service, dining):
    seen = []
    home.observe(seen.append)
    home.start()
    tx_service.create("5", dining.id, EXPENSE, datetime.now(UTC))
    assert seen[-1].month_summary.total_expense == Decimal("5")


def test_home_category_name_falls_back_to_unknown(home, dining):
    home.start()
    assert home.category_name(dining.id) == "Dining"
    assert home.category_name(123456) == UNKNOWN_CATEGORY_NAME


def test_home_start_is_idempotent_and_stop_unsubscribes(home, db):
    baseline = db.bus.subscriber_count(TRANSACTIONS_CHANGED)
    home.start()
    subscribed = db.bus.subscriber_count(TRANSACTIONS_CHANGED)
    home.start()
    assert db.bus.subscriber_count(TRANSACTIONS_CHANGED) == subscribed > baseline

    home.stop()
    assert db.bus.subscriber_count(TRANSACTIONS_CHANGED) == baseline


def test_home_ignores_writes_after_stop(home, tx_service, dining):
    home.start()
    home.stop()
    tx_service.create("5", dining.id, EXPENSE, datetime.now(UTC))
    assert home.state.month_summary.transaction_count == 0


def test_home_store_failure_becomes_error_state(monkeypatch, home, tx_dao):
    monkeypatch.setattr(tx_dao, "get_in_range", fail_with("month unavailable"))
    monkeypatch.setattr(tx_dao, "get_recent", fail_with("recent unavailable"))

    home.start()
    assert not home.state.is_loading
    assert "month unavailable" in home.state.error


def test_home_clear_error_and_retry(monkeypatch, home, tx_dao):
    monkeypatch.setattr(tx_dao, "get_recent", fail_with("recent unavailable"))
    home.start()
    assert "recent unavailable" in home.state.error

    home.clear_error()
    assert home.state.error is None

    monkeypatch.undo()
    home.retry()
    assert home.state.error is None
    assert home.is_active


def test_home_delete_failure_is_reported(monkeypatch, home, tx_dao):
    home.start()
    monkeypatch.setattr(tx_dao, "delete", fail_with("read-only"))
    home.delete_transaction(1)
    assert "read-only" in home.state.error


# ── StatisticsController ─────────────────────────────────────────────────────

def test_stats_empty_store_has_six_zero_months(report_service, inline_executor):
    controller = StatisticsController(report_service, executor=inline_executor)
    controller.start()
    try:
        months = controller.state.monthly_stats
        assert [m.month for m in months] == trailing_months(current_month_str(UTC), 6)
        assert all(m.income == 0 and m.expense == 0 for m in months)
        assert not controller.state.is_loading
    finally:
        controller.stop()


def test_stats_breakdown_for_selected_month(stats, fixed_trend, tx_service, dining, transport, salary):
    tx_service.create("100", dining.id, EXPENSE, at(2024, 3, 3))
    tx_service.create("50", transport.id, EXPENSE, at(2024, 3, 4))
    tx_service.create("200", salary.id, INCOME, at(2024, 3, 5))

    stats.start()
    state = stats.state
    assert state.month_summary.transaction_count == 3
    assert [s.category.name for s in state.category_stats] == ["Dining", "Transport"]
    assert state.category_stats[0].percentage == pytest.approx(66.67, abs=0.01)
    assert sum(state.daily_buckets[d][EXPENSE] for d in state.daily_buckets
               if EXPENSE in state.daily_buckets[d]) == Decimal("150")
    assert [m.month for m in state.monthly_stats] == ["2024-03", "2024-02", "2024-01"]


def test_stats_failed_month_becomes_zero_and_surfaces_error(
        monkeypatch, stats, fixed_trend, report_service, tx_service, dining):
    tx_service.create("10", dining.id, EXPENSE, at(2024, 1, 10))
    tx_service.create("30", dining.id, EXPENSE, at(2024, 3, 10))
    original = report_service.get_month_transactions

    def flaky(month):
        if month == "2024-02":
            raise StoreUnavailableError("february unavailable")
        return original(month)

    monkeypatch.setattr(report_service, "get_month_transactions", flaky)
    stats.start()

    by_month = {m.month: m for m in stats.state.monthly_stats}
    assert list(by_month) == ["2024-03", "2024-02", "2024-01"]
    assert by_month["2024-03"].expense == Decimal("30")
    assert by_month["2024-02"].expense == 0
    assert by_month["2024-01"].expense == Decimal("10")
    assert "february unavailable" in stats.state.error
    assert not stats.state.is_loading


def test_stats_first_error_wins(monkeypatch, stats, fixed_trend, report_service, tx_dao):
    monkeypatch.setattr(report_service, "get_month_transactions", fail_with("trend failed"))
    monkeypatch.setattr(tx_dao, "get_in_range", fail_with("breakdown failed"))
    stats.start()
    assert "trend failed" in stats.state.error


def test_stats_selection_only_resubscribes_breakdown(
        stats, fixed_trend, db, tx_service, dining, salary):
    tx_service.create("40", dining.id, EXPENSE, at(2024, 1, 5))
    tx_service.create("60", salary.id, INCOME, at(2024, 1, 6))
    stats.start()
    trend_runs = len(fixed_trend)
    subscribers = db.bus.subscriber_count(TRANSACTIONS_CHANGED)

    stats.select_month("2024-01")
    assert stats.state.selected_month == "2024-01"
    assert stats.state.category_stats[0].total_amount == Decimal("40")

    stats.select_type(INCOME)
    assert stats.state.breakdown_type == INCOME
    assert [s.category.name for s in stats.state.category_stats] == ["Salary"]

    assert len(fixed_trend) == trend_runs
    assert db.bus.subscriber_count(TRANSACTIONS_CHANGED) == subscribers


def test_stats_trend_reruns_on_transaction_change(stats, fixed_trend, tx_service, dining):
    stats.start()
    runs = len(fixed_trend)
    tx_service.create("7", dining.id, EXPENSE, at(2024, 2, 2))
    assert len(fixed_trend) == runs + 1
    assert stats.state.monthly_stats[1].expense == Decimal("7")


def test_stats_month_navigation(stats, fixed_trend):
    stats.start()
    stats.prev_month()
    assert stats.state.selected_month == "2024-02"
    stats.next_month()
    stats.next_month()
    assert stats.state.selected_month == "2024-04"
    with pytest.raises(ValueError):
        stats.select_month("April")
    with pytest.raises(ValueError):
        stats.select_type("transfer")


def test_stats_stop_disposes_everything(stats, fixed_trend, db):
    tx_before = db.bus.subscriber_count(TRANSACTIONS_CHANGED)
    cat_before = db.bus.subscriber_count(CATEGORIES_CHANGED)
    stats.start()
    stats.select_month("2024-02")
    stats.stop()
    assert db.bus.subscriber_count(TRANSACTIONS_CHANGED) == tx_before
    assert db.bus.subscriber_count(CATEGORIES_CHANGED) == cat_before


def test_stats_trend_survives_very_old_transaction(report_service, tx_dao, dining, inline_executor):
    tx_dao.create(Decimal("5"), dining.id, EXPENSE, at(202, 3, 1))
    controller = StatisticsController(report_service, executor=inline_executor)
    controller.start()
    try:
        assert controller.state.error is None
        months = controller.state.available_months
        assert len(months) == MAX_TREND_MONTHS
        assert months[0] == current_month_str(UTC)
    finally:
        controller.stop()


def test_stats_breakdown_resolves_categories_missing_from_list(
        monkeypatch, stats, fixed_trend, tx_service, category_dao, dining):
    tx_service.create("40", dining.id, EXPENSE, at(2024, 3, 3))
    monkeypatch.setattr(category_dao, "get_all", lambda: [])
    stats.start()
    assert [s.category.name for s in stats.state.category_stats] == ["Dining"]


def test_home_restart_catches_up_on_writes_made_while_stopped(home, tx_service, dining, db):
    home.start()
    home.stop()
    tx_service.create("7", dining.id, EXPENSE, datetime.now(UTC))
    assert home.state.month_summary.transaction_count == 0
    assert db.bus.subscriber_count(TRANSACTIONS_CHANGED) == 0

    home.start()
    assert home.state.month_summary.transaction_count == 1
