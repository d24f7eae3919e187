"""Aggregation engine: pure transformations of transaction lists into summaries.

Nothing here performs I/O or keeps state between calls, so every function is
safe to run on any worker thread. Inputs are assumed to be already filtered to
the window of interest; the engine never raises for empty or partially
inconsistent input (bad amounts count as zero, unknown categories get a
placeholder).
"""
import logging
from collections import defaultdict
from collections.abc import Mapping
from datetime import date, tzinfo
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, Optional, Sequence, Union

from models.category import Category
from models.summary import CategoryStatistic, DailyGroup, MonthlyStats, MonthlySummary, ZERO
from models.transaction import Transaction
from utils.constants import (
    EXPENSE,
    INCOME,
    UNKNOWN_CATEGORY_COLOR,
    UNKNOWN_CATEGORY_ICON,
    UNKNOWN_CATEGORY_NAME,
)
from utils.date_helpers import local_day

__all__ = [
    "summarize",
    "category_breakdown",
    "monthly_series",
    "daily_buckets",
    "group_by_day",
    "placeholder_category",
]

logger = logging.getLogger(__name__)

CategoryLookup = Union[Mapping[int, Category], Callable[[int], Optional[Category]]]


def _amount(tx: Transaction) -> Decimal:
    """The transaction's amount as a finite Decimal; anything else counts as zero."""
    value = tx.amount
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        amount = None
    if amount is None or not amount.is_finite():
        logger.warning("Transaction %s has malformed amount %r; counting it as 0",
                       getattr(tx, "id", "?"), value)
        return ZERO
    return amount


def _resolver(category_lookup: CategoryLookup) -> Callable[[int], Optional[Category]]:
    if isinstance(category_lookup, Mapping):
        return category_lookup.get
    return category_lookup


def placeholder_category(category_id: int, type_: str) -> Category:
    """Stand-in for a category id that no longer resolves."""
    return Category(
        id=category_id,
        name=UNKNOWN_CATEGORY_NAME,
        type=type_,
        icon=UNKNOWN_CATEGORY_ICON,
        color_hex=UNKNOWN_CATEGORY_COLOR,
    )


def summarize(transactions: Iterable[Transaction]) -> MonthlySummary:
    income = ZERO
    expense = ZERO
    count = 0
    for tx in transactions:
        count += 1
        if tx.type == INCOME:
            income += _amount(tx)
        elif tx.type == EXPENSE:
            expense += _amount(tx)
        else:
            logger.warning("Transaction %s has unknown type %r", tx.id, tx.type)
    return MonthlySummary(total_income=income, total_expense=expense, transaction_count=count)


def category_breakdown(
    transactions: Iterable[Transaction],
    category_lookup: CategoryLookup,
    type_: str,
) -> list[CategoryStatistic]:
    """Per-category totals for one transaction type.

    Percentages are relative to the total of `type_` within the same input and
    are 0 when that total is 0. Sorted by total descending, then category id.
    """
    totals: dict[int, Decimal] = defaultdict(lambda: ZERO)
    counts: dict[int, int] = defaultdict(int)
    for tx in transactions:
        if tx.type != type_:
            continue
        totals[tx.category_id] += _amount(tx)
        counts[tx.category_id] += 1

    grand_total = sum(totals.values(), ZERO)
    resolve = _resolver(category_lookup)
    stats = []
    for category_id, total in totals.items():
        category = resolve(category_id) or placeholder_category(category_id, type_)
        percentage = float(total / grand_total * 100) if grand_total > 0 else 0.0
        stats.append(CategoryStatistic(
            category=category,
            total_amount=total,
            transaction_count=counts[category_id],
            percentage=percentage,
        ))
    stats.sort(key=lambda s: (-s.total_amount, s.category.id))
    return stats


def monthly_series(
    monthly_transaction_sets: Iterable[tuple[str, Sequence[Transaction]]],
) -> list[MonthlyStats]:
    """One row per requested 'YYYY-MM' month, empty months included, newest first."""
    series = []
    for month, transactions in monthly_transaction_sets:
        summary = summarize(transactions)
        series.append(MonthlyStats(
            month=month,
            income=summary.total_income,
            expense=summary.total_expense,
            transaction_count=summary.transaction_count,
        ))
    series.sort(key=lambda m: m.month, reverse=True)
    return series


def daily_buckets(
    transactions: Iterable[Transaction], tz: tzinfo
) -> dict[date, dict[str, Decimal]]:
    """Sum of amount per (local day, type), days ascending.

    `tz` must be the zone the range query was built with.
    """
    buckets: dict[date, dict[str, Decimal]] = defaultdict(dict)
    for tx in transactions:
        day = local_day(tx.date, tz)
        buckets[day][tx.type] = buckets[day].get(tx.type, ZERO) + _amount(tx)
    return {day: buckets[day] for day in sorted(buckets)}


def group_by_day(transactions: Iterable[Transaction], tz: tzinfo) -> list[DailyGroup]:
    """Transactions grouped by local day, newest day and newest entry first."""
    by_day: dict[date, list[Transaction]] = defaultdict(list)
    for tx in transactions:
        by_day[local_day(tx.date, tz)].append(tx)
    groups = []
    for day in sorted(by_day, reverse=True):
        entries = sorted(by_day[day], key=lambda t: (t.date, t.id), reverse=True)
        summary = summarize(entries)
        groups.append(DailyGroup(
            day=day,
            transactions=entries,
            total_income=summary.total_income,
            total_expense=summary.total_expense,
        ))
    return groups
