import logging
from concurrent.futures import ThreadPoolExecutor

import customtkinter as ctk

from controllers.home_controller import HomeController
from controllers.statistics_controller import StatisticsController
from services.category_service import CategoryService
from services.report_service import ReportService
from services.transaction_service import TransactionService
from ui.tabs.home_tab import HomeTab
from ui.tabs.statistics_tab import StatisticsTab
from utils.constants import APP_NAME, APP_WIDTH, APP_HEIGHT

logger = logging.getLogger(__name__)


class AppWindow(ctk.CTk):
    def __init__(
        self,
        tx_service: TransactionService,
        report_service: ReportService,
        category_service: CategoryService,
        date_format: str = "MM/DD/YYYY",
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._tx_svc = tx_service
        self._report_svc = report_service
        self._cat_svc = category_service
        self._date_format = date_format

        # Store reads for every view run here; results hop back via after().
        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="store")

        self.title(APP_NAME)
        self.minsize(APP_WIDTH, APP_HEIGHT)
        self.geometry(f"{APP_WIDTH}x{APP_HEIGHT}")

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(0, weight=1)

        self._build_tabs()

    def _dispatch(self, fn):
        self.after(0, fn)

    def _build_tabs(self):
        self._tabview = ctk.CTkTabview(self, command=self._on_tab_changed)
        self._tabview.grid(row=0, column=0, sticky="nsew", padx=8, pady=8)

        for tab_name in ("Home", "Statistics"):
            self._tabview.add(tab_name)
            self._tabview.tab(tab_name).grid_columnconfigure(0, weight=1)
            self._tabview.tab(tab_name).grid_rowconfigure(0, weight=1)

        self._home_ctrl = HomeController(
            self._report_svc, self._tx_svc,
            executor=self._executor, dispatch=self._dispatch,
        )
        self._home_tab = HomeTab(
            self._tabview.tab("Home"),
            controller=self._home_ctrl,
            tx_service=self._tx_svc,
            category_service=self._cat_svc,
            date_format=self._date_format,
        )
        self._home_tab.grid(row=0, column=0, sticky="nsew")

        self._stats_ctrl = StatisticsController(
            self._report_svc, executor=self._executor, dispatch=self._dispatch,
        )
        self._stats_tab = StatisticsTab(self._tabview.tab("Statistics"), controller=self._stats_ctrl)
        self._stats_tab.grid(row=0, column=0, sticky="nsew")

        self._tabs = {"Home": self._home_tab, "Statistics": self._stats_tab}
        self._on_tab_changed()

    def _on_tab_changed(self):
        current = self._tabview.get()
        for name, tab in self._tabs.items():
            tab.set_visible(name == current)

    def shutdown(self):
        """Stop every view's subscriptions and the store worker pool."""
        self._home_ctrl.close()
        self._stats_ctrl.close()
        self._executor.shutdown(wait=False, cancel_futures=True)
        logger.info("UI shut down")
