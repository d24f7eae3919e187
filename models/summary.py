"""Derived, never-persisted records produced by the statistics engine."""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from models.category import Category
from models.transaction import Transaction

ZERO = Decimal("0")


@dataclass(frozen=True)
class MonthlySummary:
    total_income: Decimal = ZERO
    total_expense: Decimal = ZERO
    transaction_count: int = 0

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expense


@dataclass(frozen=True)
class CategoryStatistic:
    category: Category
    total_amount: Decimal
    transaction_count: int
    percentage: float = 0.0     # share of its own type's total, 0-100


@dataclass(frozen=True)
class MonthlyStats:
    month: str                  # 'YYYY-MM'
    income: Decimal = ZERO
    expense: Decimal = ZERO
    transaction_count: int = 0

    @property
    def balance(self) -> Decimal:
        return self.income - self.expense

    @classmethod
    def empty(cls, month: str) -> "MonthlyStats":
        return cls(month=month)


@dataclass(frozen=True)
class DailyGroup:
    day: date
    transactions: list[Transaction] = field(default_factory=list)
    total_income: Decimal = ZERO
    total_expense: Decimal = ZERO
