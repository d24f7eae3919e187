import logging
import os
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Any, Sequence

from database.errors import StoreUnavailableError
from database.events import EventBus, CATEGORIES_CHANGED
from utils.constants import DB_FILE, DEFAULT_CATEGORIES
from utils.date_helpers import to_epoch_ms

logger = logging.getLogger(__name__)


class DatabaseManager:
    def __init__(self, db_path: str | None = None, bus: EventBus | None = None):
        self.db_path = db_path or DB_FILE
        self.bus = bus or EventBus()
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    def get_connection(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is None:
                try:
                    self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
                except sqlite3.Error as e:
                    raise StoreUnavailableError(f"Cannot open database {self.db_path}: {e}") from e
                self._conn.row_factory = sqlite3.Row
                self._conn.execute("PRAGMA foreign_keys = ON")
                if self.db_path != ":memory:":
                    self._conn.execute("PRAGMA journal_mode = WAL")
            return self._conn

    # ── Query helpers: every sqlite3 failure surfaces as StoreUnavailableError ──

    def query(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return self.get_connection().execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StoreUnavailableError(f"Read failed: {e}") from e

    def query_one(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Row | None:
        with self._lock:
            try:
                return self.get_connection().execute(sql, params).fetchone()
            except sqlite3.Error as e:
                raise StoreUnavailableError(f"Read failed: {e}") from e

    def execute(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        """Run one write statement and commit it."""
        with self._lock:
            conn = self.get_connection()
            try:
                cursor = conn.execute(sql, params)
                conn.commit()
                return cursor
            except sqlite3.IntegrityError:
                conn.rollback()
                raise
            except sqlite3.Error as e:
                conn.rollback()
                raise StoreUnavailableError(f"Write failed: {e}") from e

    # ── Schema & seeding ─────────────────────────────────────────────────────

    def initialize(self):
        """Create schema and seed defaults."""
        with self._lock:
            conn = self.get_connection()
            try:
                self._create_schema(conn)
                self._seed_settings(conn)
                conn.commit()
            except sqlite3.Error as e:
                raise StoreUnavailableError(f"Cannot initialize database: {e}") from e
        self.ensure_default_categories()

    def _create_schema(self, conn: sqlite3.Connection):
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS categories (
                id         INTEGER PRIMARY KEY AUTOINCREMENT,
                name       TEXT    NOT NULL,
                icon       TEXT    NOT NULL DEFAULT 'more_horiz',
                type       TEXT    NOT NULL CHECK(type IN ('income','expense')),
                color_hex  TEXT    NOT NULL DEFAULT '#888888',
                is_default INTEGER NOT NULL DEFAULT 0,
                created_at INTEGER NOT NULL,
                UNIQUE(name, type)
            );

            CREATE TABLE IF NOT EXISTS transactions (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                amount      TEXT    NOT NULL,
                category_id INTEGER NOT NULL REFERENCES categories(id) ON DELETE RESTRICT,
                type        TEXT    NOT NULL CHECK(type IN ('income','expense')),
                note        TEXT    NOT NULL DEFAULT '',
                date        INTEGER NOT NULL,
                created_at  INTEGER NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_transactions_date        ON transactions(date);
            CREATE INDEX IF NOT EXISTS idx_transactions_category_id ON transactions(category_id);

            CREATE TABLE IF NOT EXISTS app_settings (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
        """)

    def _seed_settings(self, conn: sqlite3.Connection):
        defaults = [
            ("appearance_mode", "system"),
            ("currency_symbol", "$"),
            ("date_format", "MM/DD/YYYY"),
        ]
        for key, value in defaults:
            conn.execute(
                "INSERT OR IGNORE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )

    def ensure_default_categories(self) -> int:
        """Insert the default category set unless one is already present.

        The only place defaults are seeded. Idempotent: returns the number of
        categories inserted, 0 on every call after the first.
        """
        with self._lock:
            conn = self.get_connection()
            try:
                existing = conn.execute(
                    "SELECT COUNT(*) FROM categories WHERE is_default = 1"
                ).fetchone()[0]
                if existing:
                    return 0
                now_ms = to_epoch_ms(datetime.now(timezone.utc))
                inserted = 0
                for cat in DEFAULT_CATEGORIES:
                    inserted += conn.execute(
                        """INSERT OR IGNORE INTO categories
                           (name, icon, type, color_hex, is_default, created_at)
                           VALUES (?, ?, ?, ?, 1, ?)""",
                        (cat["name"], cat["icon"], cat["type"], cat["color_hex"], now_ms),
                    ).rowcount
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise StoreUnavailableError(f"Cannot seed default categories: {e}") from e
        logger.debug("Seeded %d default categories", inserted)
        self.bus.publish(CATEGORIES_CHANGED)
        return inserted

    # ── Settings ─────────────────────────────────────────────────────────────

    def get_setting(self, key: str, default: str = "") -> str:
        row = self.query_one("SELECT value FROM app_settings WHERE key = ?", (key,))
        return row["value"] if row else default

    def set_setting(self, key: str, value: str):
        self.execute(
            "INSERT OR REPLACE INTO app_settings(key, value) VALUES (?, ?)",
            (key, value),
        )

    @staticmethod
    def open_in_folder(db_folder: str | None = None) -> "DatabaseManager":
        """Startup factory: open (creating if needed) the database file."""
        if db_folder:
            os.makedirs(db_folder, exist_ok=True)
            path = os.path.join(db_folder, DB_FILE)
        else:
            path = DB_FILE
        db = DatabaseManager(path)
        db.initialize()
        return db

    def close(self):
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None
