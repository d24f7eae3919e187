from datetime import datetime, timezone, tzinfo
from decimal import Decimal, InvalidOperation

from database.category_dao import CategoryDAO
from database.live_query import LiveQuery
from database.transaction_dao import TransactionDAO
from models.transaction import Transaction
from utils.constants import MAX_TRANSACTION_YEAR, MIN_TRANSACTION_YEAR, TRANSACTION_TYPES


class TransactionService:
    def __init__(self, tx_dao: TransactionDAO, category_dao: CategoryDAO,
                 tz: tzinfo = timezone.utc):
        self._dao = tx_dao
        self._category_dao = category_dao
        self.tz = tz

    def get(self, tx_id: int) -> Transaction | None:
        return self._dao.get_by_id(tx_id)

    def get_recent(self, limit: int = 10) -> list[Transaction]:
        return self._dao.get_recent(limit)

    def observe_recent(self, limit: int = 10) -> LiveQuery[list[Transaction]]:
        return self._dao.observe_recent(limit)

    def search(self, query: str) -> list[Transaction]:
        query = query.strip()
        if not query:
            return []
        return self._dao.search(query)

    def create(
        self,
        amount,
        category_id: int,
        type_: str,
        date: datetime,
        note: str = "",
    ) -> Transaction:
        value = self._validate(amount, category_id, type_, date)
        return self._dao.create(value, category_id, type_, self._localize(date), note.strip())

    def update(
        self,
        tx_id: int,
        amount,
        category_id: int,
        type_: str,
        date: datetime,
        note: str = "",
    ) -> Transaction:
        if self._dao.get_by_id(tx_id) is None:
            raise ValueError(f"Transaction {tx_id} does not exist.")
        value = self._validate(amount, category_id, type_, date)
        return self._dao.update(tx_id, value, category_id, type_, self._localize(date), note.strip())

    def delete(self, tx_id: int):
        self._dao.delete(tx_id)

    def _localize(self, date: datetime) -> datetime:
        """Naive datetimes from the UI are wall-clock times in the reference zone."""
        return date if date.tzinfo else date.replace(tzinfo=self.tz)

    def _validate(self, amount, category_id: int, type_: str, date) -> Decimal:
        if type_ not in TRANSACTION_TYPES:
            raise ValueError(f"Invalid type: {type_}")
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError):
            raise ValueError("Amount must be a number.") from None
        if not value.is_finite() or value <= 0:
            raise ValueError("Amount must be positive.")
        if not isinstance(date, datetime):
            raise ValueError("Invalid date.")
        if not MIN_TRANSACTION_YEAR <= date.year <= MAX_TRANSACTION_YEAR:
            raise ValueError(
                f"Year must be between {MIN_TRANSACTION_YEAR} and {MAX_TRANSACTION_YEAR}."
            )
        category = self._category_dao.get_by_id(category_id)
        if category is None:
            raise ValueError("Please select a category.")
        if category.type != type_:
            raise ValueError(
                f"Category '{category.name}' is for {category.type}, not {type_}."
            )
        return value
