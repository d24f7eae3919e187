import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

from database.db_manager import DatabaseManager
from database.errors import MalformedRecordError
from database.events import TRANSACTIONS_CHANGED
from database.live_query import LiveQuery
from models.transaction import Transaction
from utils.date_helpers import from_epoch_ms, to_epoch_ms

logger = logging.getLogger(__name__)

_PAGE = 50


class TransactionDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Transaction:
        try:
            amount = Decimal(str(row["amount"]))
        except (InvalidOperation, ValueError) as e:
            raise MalformedRecordError("transactions", row["id"], f"amount {row['amount']!r}") from e
        if not amount.is_finite():
            raise MalformedRecordError("transactions", row["id"], f"amount {row['amount']!r}")
        try:
            date = from_epoch_ms(row["date"])
            created_at = from_epoch_ms(row["created_at"])
        except (TypeError, ValueError, OverflowError) as e:
            raise MalformedRecordError("transactions", row["id"], f"date {row['date']!r}") from e
        return Transaction(
            id=row["id"],
            amount=amount,
            category_id=row["category_id"],
            type=row["type"],
            note=row["note"] or "",
            date=date,
            created_at=created_at,
        )

    def _rows_to_models(self, rows) -> list[Transaction]:
        """Convert rows, skipping (and logging) any that violate the data model."""
        result = []
        for row in rows:
            try:
                result.append(self._row_to_model(row))
            except MalformedRecordError as e:
                logger.warning("Skipping %s", e)
        return result

    def get_all(self) -> list[Transaction]:
        rows = self._db.query("SELECT * FROM transactions ORDER BY date DESC, id DESC")
        return self._rows_to_models(rows)

    def get_in_range(self, start_ms: int, end_ms: int) -> list[Transaction]:
        """Transactions with start_ms <= date <= end_ms, newest first."""
        rows = self._db.query(
            """SELECT * FROM transactions
               WHERE date BETWEEN ? AND ?
               ORDER BY date DESC, id DESC""",
            (start_ms, end_ms),
        )
        return self._rows_to_models(rows)

    def observe_in_range(self, start_ms: int, end_ms: int) -> LiveQuery[list[Transaction]]:
        return LiveQuery(
            self._db.bus, [TRANSACTIONS_CHANGED],
            lambda: self.get_in_range(start_ms, end_ms),
            f"transactions[{start_ms}..{end_ms}]",
        )

    def get_recent(self, limit: int = 10) -> list[Transaction]:
        rows = self._db.query(
            "SELECT * FROM transactions ORDER BY date DESC, id DESC LIMIT ?", (limit,)
        )
        return self._rows_to_models(rows)

    def observe_recent(self, limit: int = 10) -> LiveQuery[list[Transaction]]:
        return LiveQuery(
            self._db.bus, [TRANSACTIONS_CHANGED],
            lambda: self.get_recent(limit), f"recent[{limit}]",
        )

    def observe(self, fetch, label: str = "") -> LiveQuery:
        """Re-run an arbitrary read whenever transactions change."""
        return LiveQuery(self._db.bus, [TRANSACTIONS_CHANGED], fetch, label)

    def get_earliest(self) -> Optional[Transaction]:
        """The transaction with the oldest date, ignoring malformed rows."""
        offset = 0
        while True:
            rows = self._db.query(
                "SELECT * FROM transactions ORDER BY date ASC, id ASC LIMIT ? OFFSET ?",
                (_PAGE, offset),
            )
            if not rows:
                return None
            parsed = self._rows_to_models(rows)
            if parsed:
                return parsed[0]
            offset += _PAGE

    def get_by_id(self, tx_id: int) -> Optional[Transaction]:
        row = self._db.query_one("SELECT * FROM transactions WHERE id = ?", (tx_id,))
        return self._row_to_model(row) if row else None

    def get_by_category(self, category_id: int) -> list[Transaction]:
        rows = self._db.query(
            "SELECT * FROM transactions WHERE category_id = ? ORDER BY date DESC, id DESC",
            (category_id,),
        )
        return self._rows_to_models(rows)

    def count_by_category(self, category_id: int) -> int:
        row = self._db.query_one(
            "SELECT COUNT(*) AS n FROM transactions WHERE category_id = ?", (category_id,)
        )
        return row["n"]

    def search(self, query: str) -> list[Transaction]:
        rows = self._db.query(
            "SELECT * FROM transactions WHERE note LIKE ? ORDER BY date DESC, id DESC",
            (f"%{query}%",),
        )
        return self._rows_to_models(rows)

    def create(
        self,
        amount: Decimal,
        category_id: int,
        type_: str,
        date: datetime,
        note: str = "",
    ) -> Transaction:
        cursor = self._db.execute(
            """INSERT INTO transactions(amount, category_id, type, note, date, created_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                str(amount), category_id, type_, note,
                to_epoch_ms(date), to_epoch_ms(datetime.now(timezone.utc)),
            ),
        )
        self._db.bus.publish(TRANSACTIONS_CHANGED)
        return self.get_by_id(cursor.lastrowid)

    def update(
        self,
        tx_id: int,
        amount: Decimal,
        category_id: int,
        type_: str,
        date: datetime,
        note: str = "",
    ) -> Transaction:
        """Full replacement of the editable fields; created_at is preserved."""
        self._db.execute(
            """UPDATE transactions
               SET amount=?, category_id=?, type=?, note=?, date=?
               WHERE id=?""",
            (str(amount), category_id, type_, note, to_epoch_ms(date), tx_id),
        )
        self._db.bus.publish(TRANSACTIONS_CHANGED)
        return self.get_by_id(tx_id)

    def delete(self, tx_id: int):
        self._db.execute("DELETE FROM transactions WHERE id = ?", (tx_id,))
        self._db.bus.publish(TRANSACTIONS_CHANGED)
