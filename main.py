import logging
import os
import sys

import customtkinter as ctk

# Ensure project root is on sys.path when run directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from database.db_manager import DatabaseManager
from database.transaction_dao import TransactionDAO
from database.category_dao import CategoryDAO

from services.transaction_service import TransactionService
from services.report_service import ReportService
from services.category_service import CategoryService

from ui.app_window import AppWindow
from utils.app_config import get_db_folder, get_log_level, get_time_zone, load_config
from utils.log import configure_logging

logger = logging.getLogger("expense_tracker")


def main():
    # ── Bootstrap: read pre-DB config ─────────────────────────────────────────
    config = load_config()
    configure_logging(get_log_level(config))
    tz = get_time_zone(config)
    logger.info("Starting with reference time zone %s", tz)

    # ── Database ─────────────────────────────────────────────────────────────
    db = DatabaseManager.open_in_folder(get_db_folder(config))

    # ── DAOs ─────────────────────────────────────────────────────────────────
    tx_dao = TransactionDAO(db)
    category_dao = CategoryDAO(db)

    # ── Services ─────────────────────────────────────────────────────────────
    tx_svc = TransactionService(tx_dao, category_dao, tz)
    report_svc = ReportService(tx_dao, category_dao, tz)
    category_svc = CategoryService(category_dao, tx_dao)

    # ── Appearance ───────────────────────────────────────────────────────────
    appearance = db.get_setting("appearance_mode", "system")
    date_format = db.get_setting("date_format", "MM/DD/YYYY")
    ctk.set_appearance_mode(appearance)
    ctk.set_default_color_theme("blue")

    # ── Launch UI ────────────────────────────────────────────────────────────
    app = AppWindow(
        tx_service=tx_svc,
        report_service=report_svc,
        category_service=category_svc,
        date_format=date_format,
    )

    def on_close():
        app.shutdown()
        db.close()
        app.destroy()

    app.protocol("WM_DELETE_WINDOW", on_close)
    app.mainloop()


if __name__ == "__main__":
    main()
