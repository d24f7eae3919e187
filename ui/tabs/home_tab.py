import customtkinter as ctk

from controllers.home_controller import HomeController, HomeState
from models.summary import DailyGroup
from models.transaction import Transaction
from services.category_service import CategoryService
from services.transaction_service import TransactionService
from ui.components.alert_banner import AlertBanner
from ui.components.delete_transaction_dialog import DeleteTransactionDialog
from ui.components.transaction_form import TransactionForm
from utils.constants import EXPENSE, INCOME, TYPE_COLORS
from utils.currency import format_currency, format_signed, format_transaction_amount
from utils.date_helpers import format_display_date, friendly_day, friendly_month, local_day, today


class HomeTab(ctk.CTkFrame):
    def __init__(
        self,
        master,
        controller: HomeController,
        tx_service: TransactionService,
        category_service: CategoryService,
        date_format: str = "MM/DD/YYYY",
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._ctrl = controller
        self._tx_svc = tx_service
        self._cat_svc = category_service
        self._date_format = date_format
        self._tz = tx_service.tz
        self._banner: AlertBanner | None = None
        self._rendered: HomeState | None = None

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(3, weight=1)

        self._build_header()
        self._build_banner_area()
        self._build_summary_cards()
        self._build_bottom_section()

        self._state_sub = self._ctrl.observe(self._render)
        self.bind("<Destroy>", self._on_destroy, add="+")

    def set_visible(self, visible: bool):
        """Live updates run only while the tab is showing."""
        if visible:
            self._ctrl.start()
        else:
            self._ctrl.stop()

    def _on_destroy(self, event):
        if event.widget is self:
            self._state_sub.dispose()
            self._ctrl.stop()

    # ── Layout ───────────────────────────────────────────────────────────────

    def _build_header(self):
        bar = ctk.CTkFrame(self, fg_color="transparent")
        bar.grid(row=0, column=0, sticky="ew", padx=16, pady=(12, 0))
        self._month_label = ctk.CTkLabel(
            bar, text="", font=ctk.CTkFont(size=15, weight="bold"), anchor="w",
        )
        self._month_label.pack(side="left")
        self._loading_label = ctk.CTkLabel(bar, text="", text_color="gray60")
        self._loading_label.pack(side="left", padx=12)
        ctk.CTkButton(
            bar, text="+ Expense", width=100,
            fg_color=TYPE_COLORS[EXPENSE], hover_color="#D32F2F",
            command=lambda: self._open_form(EXPENSE),
        ).pack(side="right", padx=(6, 0))
        ctk.CTkButton(
            bar, text="+ Income", width=100,
            fg_color=TYPE_COLORS[INCOME], hover_color="#388E3C",
            command=lambda: self._open_form(INCOME),
        ).pack(side="right")

    def _build_banner_area(self):
        self._banner_frame = ctk.CTkFrame(self, fg_color="transparent", height=0)
        self._banner_frame.grid(row=1, column=0, sticky="ew", padx=16)

    def _build_summary_cards(self):
        self._card_frame = ctk.CTkFrame(self, fg_color="transparent")
        self._card_frame.grid(row=2, column=0, sticky="ew", padx=16, pady=12)
        self._card_frame.grid_columnconfigure((0, 1, 2), weight=1)
        self._cards = {
            key: self._make_card(self._card_frame, i, label)
            for i, (key, label) in enumerate(
                [("income", "Income"), ("expense", "Expenses"), ("balance", "Balance")]
            )
        }

    def _build_bottom_section(self):
        bottom = ctk.CTkFrame(self, fg_color="transparent")
        bottom.grid(row=3, column=0, sticky="nsew", padx=16, pady=(0, 12))
        bottom.grid_columnconfigure(0, weight=3)
        bottom.grid_columnconfigure(1, weight=2)
        bottom.grid_rowconfigure(0, weight=1)

        self._days_frame = ctk.CTkScrollableFrame(bottom, label_text="This Month")
        self._days_frame.grid(row=0, column=0, sticky="nsew", padx=(0, 8))
        self._days_frame.grid_columnconfigure(0, weight=1)

        self._recent_frame = ctk.CTkScrollableFrame(bottom, label_text="Recent Transactions")
        self._recent_frame.grid(row=0, column=1, sticky="nsew", padx=(8, 0))
        self._recent_frame.grid_columnconfigure(1, weight=1)

    def _make_card(self, parent, col, label) -> ctk.CTkLabel:
        card = ctk.CTkFrame(parent, fg_color=("gray90", "gray20"), corner_radius=10)
        card.grid(row=0, column=col, padx=6, sticky="ew")
        card.grid_columnconfigure(0, weight=1)
        ctk.CTkLabel(
            card, text=label, font=ctk.CTkFont(size=12), text_color="gray60",
        ).grid(row=0, column=0, pady=(12, 0), padx=16)
        value = ctk.CTkLabel(card, text="", font=ctk.CTkFont(size=20, weight="bold"))
        value.grid(row=1, column=0, pady=(4, 12), padx=16)
        return value

    # ── Rendering ────────────────────────────────────────────────────────────

    def _render(self, state: HomeState):
        previous, self._rendered = self._rendered, state
        if not self.winfo_exists():
            return

        self._month_label.configure(text=friendly_month(state.month) if state.month else "")
        self._loading_label.configure(text="Loading…" if state.is_loading else "")
        self._render_error(state.error)

        summary = state.month_summary
        self._cards["income"].configure(
            text=format_currency(summary.total_income), text_color=TYPE_COLORS[INCOME])
        self._cards["expense"].configure(
            text=format_currency(summary.total_expense), text_color=TYPE_COLORS[EXPENSE])
        self._cards["balance"].configure(
            text=format_signed(summary.balance),
            text_color="#2196F3" if summary.balance >= 0 else "#FF9800",
        )

        if previous is None or previous.day_groups is not state.day_groups \
                or previous.categories is not state.categories:
            self._render_days(state)
        if previous is None or previous.recent_transactions is not state.recent_transactions \
                or previous.categories is not state.categories:
            self._render_recent(state)

    def _render_error(self, error: str | None):
        if error is None:
            if self._banner is not None:
                self._banner.destroy()
                self._banner = None
            return
        if self._banner is not None:
            return
        self._banner = AlertBanner(
            self._banner_frame,
            message=error,
            action_text="Retry",
            action_cmd=self._on_retry,
            on_dismiss=self._on_dismiss_error,
        )
        self._banner.pack(fill="x", pady=2)

    def _on_retry(self):
        self._clear_banner()
        self._ctrl.retry()

    def _on_dismiss_error(self):
        self._banner = None
        self._ctrl.clear_error()

    def _clear_banner(self):
        if self._banner is not None:
            self._banner.destroy()
            self._banner = None

    def _render_days(self, state: HomeState):
        for w in self._days_frame.winfo_children():
            w.destroy()
        if not state.day_groups:
            if not state.is_loading:
                ctk.CTkLabel(
                    self._days_frame, text="No transactions this month.",
                    text_color="gray60",
                ).pack(pady=20)
            return
        reference = today(self._tz)
        for group in state.day_groups:
            self._make_day_card(group, reference)

    def _make_day_card(self, group: DailyGroup, reference):
        card = ctk.CTkFrame(self._days_frame, fg_color=("gray90", "gray20"), corner_radius=8)
        card.pack(fill="x", pady=4)
        card.grid_columnconfigure(1, weight=1)

        ctk.CTkLabel(
            card, text=friendly_day(group.day, reference),
            font=ctk.CTkFont(size=13, weight="bold"), anchor="w",
        ).grid(row=0, column=0, columnspan=2, padx=10, pady=(8, 2), sticky="w")
        totals = []
        if group.total_income:
            totals.append(f"Income {format_currency(group.total_income)}")
        if group.total_expense:
            totals.append(f"Expense {format_currency(group.total_expense)}")
        ctk.CTkLabel(
            card, text="   ".join(totals), text_color="gray60", anchor="e",
        ).grid(row=0, column=2, columnspan=2, padx=10, pady=(8, 2), sticky="e")

        for i, tx in enumerate(group.transactions, start=1):
            self._make_tx_row(card, i, tx)

    def _make_tx_row(self, parent, row: int, tx: Transaction):
        category = self._ctrl.category_for(tx.category_id)
        color = category.color_hex if category else "#666666"
        ctk.CTkLabel(parent, text="●", text_color=color, width=16).grid(
            row=row, column=0, padx=(10, 4), sticky="w")
        label = self._ctrl.category_name(tx.category_id)
        if tx.note:
            label = f"{label}  ·  {tx.note}"
        name = ctk.CTkLabel(parent, text=label, anchor="w", cursor="hand2")
        name.grid(row=row, column=1, padx=4, sticky="ew")
        name.bind("<Double-Button-1>", lambda _e, t=tx: self._open_form(t.type, t))
        ctk.CTkLabel(
            parent, text=format_transaction_amount(tx.type, tx.amount),
            text_color=TYPE_COLORS.get(tx.type, "gray60"), anchor="e", width=100,
        ).grid(row=row, column=2, padx=4)
        ctk.CTkButton(
            parent, text="✕", width=26, height=22,
            fg_color="transparent", text_color=("gray40", "gray60"),
            hover_color=("gray80", "gray30"),
            command=lambda t=tx: self._confirm_delete(t),
        ).grid(row=row, column=3, padx=(0, 8), pady=1)

    def _render_recent(self, state: HomeState):
        for w in self._recent_frame.winfo_children():
            w.destroy()
        for idx, tx in enumerate(state.recent_transactions):
            bg = ("gray90", "gray20") if idx % 2 == 0 else ("gray86", "gray24")
            f = ctk.CTkFrame(self._recent_frame, fg_color=bg, corner_radius=4)
            f.pack(fill="x", pady=1)
            f.grid_columnconfigure(1, weight=1)
            ctk.CTkLabel(
                f, text=format_display_date(local_day(tx.date, self._tz), self._date_format),
                width=85, anchor="w",
            ).grid(row=0, column=0, padx=6, pady=3)
            ctk.CTkLabel(
                f, text=tx.note or self._ctrl.category_name(tx.category_id), anchor="w",
            ).grid(row=0, column=1, padx=4, sticky="ew")
            ctk.CTkLabel(
                f, text=format_transaction_amount(tx.type, tx.amount),
                text_color=TYPE_COLORS.get(tx.type, "gray60"), anchor="e", width=100,
            ).grid(row=0, column=2, padx=6)

    # ── Actions ──────────────────────────────────────────────────────────────

    def _open_form(self, type_: str, transaction: Transaction | None = None):
        form = TransactionForm(
            self.winfo_toplevel(), self._tx_svc, self._cat_svc,
            tz=self._tz, initial_type=type_, transaction=transaction,
            date_format=self._date_format,
        )
        self.wait_window(form)

    def _confirm_delete(self, tx: Transaction):
        dialog = DeleteTransactionDialog(
            self.winfo_toplevel(), tx,
            category_name=self._ctrl.category_name(tx.category_id),
            tz=self._tz,
            date_format=self._date_format,
        )
        if dialog.confirmed:
            self._ctrl.delete_transaction(tx.id)
