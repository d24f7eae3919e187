import threading
from datetime import datetime, timezone
from typing import Optional

from database.db_manager import DatabaseManager
from database.events import CATEGORIES_CHANGED
from database.live_query import LiveQuery
from models.category import Category
from utils.date_helpers import from_epoch_ms, to_epoch_ms


class CategoryDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db
        self._all_cache: list | None = None
        self._cache_gen = 0
        self._cache_lock = threading.Lock()
        db.bus.subscribe(CATEGORIES_CHANGED, self._invalidate_cache)

    def _invalidate_cache(self):
        with self._cache_lock:
            self._cache_gen += 1
            self._all_cache = None

    def _row_to_model(self, row) -> Category:
        return Category(
            id=row["id"],
            name=row["name"],
            icon=row["icon"],
            type=row["type"],
            color_hex=row["color_hex"],
            is_default=bool(row["is_default"]),
            created_at=from_epoch_ms(row["created_at"]),
        )

    def get_all(self) -> list[Category]:
        with self._cache_lock:
            cached = self._all_cache
            gen = self._cache_gen
        if cached is None:
            rows = self._db.query("SELECT * FROM categories ORDER BY type, name, id")
            cached = [self._row_to_model(r) for r in rows]
            with self._cache_lock:
                # A write since the SELECT makes this list stale; return it but don't keep it.
                if gen == self._cache_gen:
                    self._all_cache = cached
        return list(cached)

    def observe_all(self) -> LiveQuery[list[Category]]:
        return LiveQuery(self._db.bus, [CATEGORIES_CHANGED], self.get_all, "categories")

    def get_by_id(self, category_id: int) -> Optional[Category]:
        row = self._db.query_one(
            "SELECT * FROM categories WHERE id = ?", (category_id,)
        )
        return self._row_to_model(row) if row else None

    def get_by_type(self, type_: str) -> list[Category]:
        """type_: 'income' or 'expense'."""
        rows = self._db.query(
            "SELECT * FROM categories WHERE type = ? ORDER BY name, id", (type_,)
        )
        return [self._row_to_model(r) for r in rows]

    def search(self, query: str) -> list[Category]:
        rows = self._db.query(
            "SELECT * FROM categories WHERE name LIKE ? ORDER BY name, id",
            (f"%{query}%",),
        )
        return [self._row_to_model(r) for r in rows]

    def count_defaults(self) -> int:
        row = self._db.query_one("SELECT COUNT(*) AS n FROM categories WHERE is_default = 1")
        return row["n"]

    def create(
        self, name: str, type_: str, icon: str = "more_horiz", color_hex: str = "#888888"
    ) -> Category:
        cursor = self._db.execute(
            """INSERT INTO categories(name, icon, type, color_hex, is_default, created_at)
               VALUES (?, ?, ?, ?, 0, ?)""",
            (name, icon, type_, color_hex, to_epoch_ms(datetime.now(timezone.utc))),
        )
        self._invalidate_cache()
        self._db.bus.publish(CATEGORIES_CHANGED)
        return self.get_by_id(cursor.lastrowid)

    def update(self, category_id: int, name: str, icon: str, color_hex: str) -> Category:
        """Type is fixed at creation and is not updatable."""
        self._db.execute(
            "UPDATE categories SET name=?, icon=?, color_hex=? WHERE id=?",
            (name, icon, color_hex, category_id),
        )
        self._invalidate_cache()
        self._db.bus.publish(CATEGORIES_CHANGED)
        return self.get_by_id(category_id)

    def delete(self, category_id: int):
        self._db.execute("DELETE FROM categories WHERE id = ?", (category_id,))
        self._invalidate_cache()
        self._db.bus.publish(CATEGORIES_CHANGED)
