import random
from datetime import date, datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from models.summary import MonthlySummary
from services import statistics
from utils.constants import EXPENSE, INCOME, UNKNOWN_CATEGORY_NAME

from conftest import make_category, make_tx

CAT1 = make_category(1, "Dining", color_hex="#FF6B6B")
CAT2 = make_category(2, "Transport", color_hex="#4ECDC4")
SALARY = make_category(3, "Salary", INCOME)
CATEGORIES = {c.id: c for c in (CAT1, CAT2, SALARY)}


def scenario():
    return [
        make_tx(1, "100", EXPENSE, CAT1.id),
        make_tx(2, "50", EXPENSE, CAT2.id),
        make_tx(3, "200", INCOME, SALARY.id),
    ]


def test_summarize_empty_is_all_zero():
    assert statistics.summarize([]) == MonthlySummary(Decimal(0), Decimal(0), 0)


def test_summarize_scenario():
    summary = statistics.summarize(scenario())
    assert summary.total_income == Decimal("200")
    assert summary.total_expense == Decimal("150")
    assert summary.transaction_count == 3
    assert summary.balance == Decimal("50")


def test_summarize_is_order_independent():
    txs = [make_tx(i, f"{i}.25", EXPENSE if i % 3 else INCOME) for i in range(1, 40)]
    expected = statistics.summarize(txs)
    shuffled = txs[:]
    random.Random(7).shuffle(shuffled)
    assert statistics.summarize(shuffled) == expected
    assert expected.total_income + expected.total_expense == sum(t.amount for t in txs)


def test_summarize_keeps_decimal_precision():
    txs = [make_tx(i, "0.10") for i in range(10)]
    assert statistics.summarize(txs).total_expense == Decimal("1.00")


def test_summarize_counts_unknown_categories():
    txs = scenario() + [make_tx(4, "25", EXPENSE, category_id=999)]
    assert statistics.summarize(txs).total_expense == Decimal("175")


def test_summarize_treats_non_finite_amount_as_zero():
    txs = [make_tx(1, "10"), make_tx(2, "NaN")]
    summary = statistics.summarize(txs)
    assert summary.total_expense == Decimal("10")
    assert summary.transaction_count == 2


def test_category_breakdown_scenario():
    stats = statistics.category_breakdown(scenario(), CATEGORIES, EXPENSE)
    assert [s.category.name for s in stats] == ["Dining", "Transport"]
    assert [s.total_amount for s in stats] == [Decimal("100"), Decimal("50")]
    assert [s.transaction_count for s in stats] == [1, 1]
    assert stats[0].percentage == pytest.approx(66.666, abs=0.01)
    assert stats[1].percentage == pytest.approx(33.333, abs=0.01)


def test_category_breakdown_percentages_sum_to_100():
    txs = [make_tx(i, str(i * 3.7), EXPENSE, category_id=i % 5 + 1) for i in range(1, 30)]
    stats = statistics.category_breakdown(txs, {}, EXPENSE)
    assert sum(s.percentage for s in stats) == pytest.approx(100.0, abs=0.01)


def test_category_breakdown_no_matching_type_is_empty():
    txs = [make_tx(1, "10", INCOME, SALARY.id)]
    assert statistics.category_breakdown(txs, CATEGORIES, EXPENSE) == []


def test_category_breakdown_unknown_category_gets_placeholder():
    txs = [make_tx(1, "30", EXPENSE, CAT1.id), make_tx(2, "70", EXPENSE, 42)]
    stats = statistics.category_breakdown(txs, CATEGORIES, EXPENSE)
    assert stats[0].category.name == UNKNOWN_CATEGORY_NAME
    assert stats[0].category.id == 42
    assert stats[0].percentage == pytest.approx(70.0)


def test_category_breakdown_accepts_callable_lookup():
    stats = statistics.category_breakdown(scenario(), CATEGORIES.get, EXPENSE)
    assert stats[0].category is CAT1


def test_category_breakdown_ties_ordered_by_category_id():
    txs = [make_tx(1, "10", EXPENSE, 2), make_tx(2, "10", EXPENSE, 1)]
    stats = statistics.category_breakdown(txs, CATEGORIES, EXPENSE)
    assert [s.category.id for s in stats] == [1, 2]


def test_monthly_series_includes_empty_months_newest_first():
    series = statistics.monthly_series([
        ("2024-01", [make_tx(1, "5", INCOME)]),
        ("2024-03", []),
        ("2024-02", [make_tx(2, "8", EXPENSE)]),
    ])
    assert [m.month for m in series] == ["2024-03", "2024-02", "2024-01"]
    assert series[0].income == 0 and series[0].expense == 0
    assert series[1].expense == Decimal("8")
    assert series[2].income == Decimal("5")


def test_daily_buckets_sum_per_day_and_type():
    d1 = datetime(2024, 3, 1, 9, tzinfo=timezone.utc)
    d2 = datetime(2024, 3, 2, 18, tzinfo=timezone.utc)
    txs = [
        make_tx(1, "4", EXPENSE, when=d2),
        make_tx(2, "6", EXPENSE, when=d1),
        make_tx(3, "1", EXPENSE, when=d1),
        make_tx(4, "9", INCOME, when=d1),
    ]
    buckets = statistics.daily_buckets(txs, timezone.utc)
    assert list(buckets) == [date(2024, 3, 1), date(2024, 3, 2)]
    assert buckets[date(2024, 3, 1)] == {EXPENSE: Decimal("7"), INCOME: Decimal("9")}
    assert buckets[date(2024, 3, 2)] == {EXPENSE: Decimal("4")}


def test_daily_buckets_use_reference_zone():
    # 02:00 UTC on the 2nd is still the 1st in New York
    when = datetime(2024, 3, 2, 2, 0, tzinfo=timezone.utc)
    buckets = statistics.daily_buckets([make_tx(1, "5", when=when)], ZoneInfo("America/New_York"))
    assert list(buckets) == [date(2024, 3, 1)]


def test_group_by_day_newest_first():
    early = datetime(2024, 3, 1, 8, tzinfo=timezone.utc)
    late = datetime(2024, 3, 1, 20, tzinfo=timezone.utc)
    next_day = datetime(2024, 3, 3, 12, tzinfo=timezone.utc)
    txs = [
        make_tx(1, "3", EXPENSE, when=early),
        make_tx(2, "5", INCOME, when=late),
        make_tx(3, "2", EXPENSE, when=next_day),
    ]
    groups = statistics.group_by_day(txs, timezone.utc)
    assert [g.day for g in groups] == [date(2024, 3, 3), date(2024, 3, 1)]
    assert [t.id for t in groups[1].transactions] == [2, 1]
    assert groups[1].total_income == Decimal("5")
    assert groups[1].total_expense == Decimal("3")
