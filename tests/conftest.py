"""Shared fixtures: an in-memory database with default categories, the DAOs and
services wired over it, and an executor that runs work inline."""

from concurrent.futures import Executor, Future
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from database.category_dao import CategoryDAO
from database.db_manager import DatabaseManager
from database.transaction_dao import TransactionDAO
from models.category import Category
from models.transaction import Transaction
from services.category_service import CategoryService
from services.report_service import ReportService
from services.transaction_service import TransactionService
from utils.constants import EXPENSE, INCOME


class InlineExecutor(Executor):
    """Runs each submitted call immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


def make_tx(id_, amount, type_=EXPENSE, category_id=1, when=None, note=""):
    """Build a Transaction model without touching the store."""
    return Transaction(
        id=id_,
        amount=Decimal(str(amount)),
        category_id=category_id,
        type=type_,
        date=when or datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc),
        note=note,
    )


def make_category(id_, name, type_=EXPENSE, color_hex="#888888"):
    return Category(id=id_, name=name, type=type_, color_hex=color_hex)


@pytest.fixture()
def inline_executor():
    return InlineExecutor()


@pytest.fixture()
def tz():
    return timezone.utc


@pytest.fixture()
def db():
    manager = DatabaseManager(":memory:")
    manager.initialize()
    yield manager
    manager.close()


@pytest.fixture()
def tx_dao(db):
    return TransactionDAO(db)


@pytest.fixture()
def category_dao(db):
    return CategoryDAO(db)


@pytest.fixture()
def tx_service(tx_dao, category_dao, tz):
    return TransactionService(tx_dao, category_dao, tz)


@pytest.fixture()
def report_service(tx_dao, category_dao, tz):
    return ReportService(tx_dao, category_dao, tz)


@pytest.fixture()
def category_service(category_dao, tx_dao):
    return CategoryService(category_dao, tx_dao)


@pytest.fixture()
def dining(category_dao):
    return next(c for c in category_dao.get_by_type(EXPENSE) if c.name == "Dining")


@pytest.fixture()
def transport(category_dao):
    return next(c for c in category_dao.get_by_type(EXPENSE) if c.name == "Transport")


@pytest.fixture()
def salary(category_dao):
    return next(c for c in category_dao.get_by_type(INCOME) if c.name == "Salary")
