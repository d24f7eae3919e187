from datetime import datetime, tzinfo, timezone

import customtkinter as ctk

from database.errors import StoreError
from models.category import Category
from models.transaction import Transaction
from services.category_service import CategoryService
from services.transaction_service import TransactionService
from ui.components.date_picker import DatePickerWidget
from utils.amount_expr import evaluate_amount
from utils.constants import EXPENSE, INCOME
from utils.currency import format_currency
from utils.date_helpers import local_day, today


class TransactionForm(ctk.CTkToplevel):
    """Add or edit an income or expense.

    The amount field accepts arithmetic such as ``12.5+3*2``; the evaluated
    total is previewed under it.
    """

    def __init__(
        self,
        master,
        tx_service: TransactionService,
        category_service: CategoryService,
        tz: tzinfo = timezone.utc,
        initial_type: str = EXPENSE,
        transaction: Transaction | None = None,
        date_format: str = "MM/DD/YYYY",
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._tx_svc = tx_service
        self._cat_svc = category_service
        self._tz = tz
        self._transaction = transaction
        self._date_format = date_format
        self._cats: list[Category] = []
        self.saved = False

        if transaction:
            initial_type = transaction.type

        self.title(f"{'Edit' if transaction else 'Add'} Transaction")
        self.resizable(False, False)
        self.grid_columnconfigure(1, weight=1)

        self._build_form(initial_type, transaction)

        self.transient(master)
        self.grab_set()
        self._center()

    def _label(self, text, row):
        ctk.CTkLabel(self, text=text).grid(
            row=row, column=0, padx=(16, 8), pady=4, sticky="e"
        )

    def _build_form(self, type_: str, tx: Transaction | None):
        r = 0

        self._label("Type:", r)
        self._type_var = ctk.StringVar(value=type_)
        self._type_switch = ctk.CTkSegmentedButton(
            self, values=[EXPENSE.title(), INCOME.title()],
            command=self._on_type_change,
        )
        self._type_switch.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="w")
        self._type_switch.set(type_.title())
        r += 1

        self._label("Amount:", r)
        self._amount_var = ctk.StringVar(value=f"{tx.amount:.2f}" if tx else "")
        self._amount_var.trace_add("write", lambda *_: self._preview_amount())
        ctk.CTkEntry(self, textvariable=self._amount_var, width=200).grid(
            row=r, column=1, padx=(0, 16), pady=4, sticky="ew"
        )
        r += 1
        self._preview_var = ctk.StringVar()
        ctk.CTkLabel(
            self, textvariable=self._preview_var, text_color="gray60", anchor="w",
        ).grid(row=r, column=1, padx=(0, 16), sticky="w")
        r += 1

        self._label("Category:", r)
        self._cat_var = ctk.StringVar()
        self._cat_combo = ctk.CTkComboBox(
            self, values=[], variable=self._cat_var, width=200, state="readonly"
        )
        self._cat_combo.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        self._load_categories(type_, selected_id=tx.category_id if tx else None)
        r += 1

        self._label("Date:", r)
        self._date_picker = DatePickerWidget(
            self,
            initial_date=local_day(tx.date, self._tz) if tx else today(self._tz),
            date_format=self._date_format,
        )
        self._date_picker.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="w")
        r += 1

        self._label("Note:", r)
        self._note_var = ctk.StringVar(value=tx.note if tx else "")
        ctk.CTkEntry(self, textvariable=self._note_var, width=200).grid(
            row=r, column=1, padx=(0, 16), pady=4, sticky="ew"
        )
        r += 1

        self._build_footer(r)

    def _build_footer(self, r):
        self._error_var = ctk.StringVar()
        ctk.CTkLabel(
            self, textvariable=self._error_var,
            text_color="#F44336", wraplength=280, anchor="w"
        ).grid(row=r, column=0, columnspan=2, padx=16, pady=(0, 4), sticky="ew")
        r += 1

        btn_frame = ctk.CTkFrame(self, fg_color="transparent")
        btn_frame.grid(row=r, column=0, columnspan=2, padx=16, pady=(4, 16), sticky="ew")
        ctk.CTkButton(
            btn_frame, text="Cancel", width=90,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self.destroy,
        ).pack(side="left")
        ctk.CTkButton(
            btn_frame, text="Save", width=110, command=self._on_save,
        ).pack(side="right")

    def _load_categories(self, type_: str, selected_id: int | None = None):
        self._cats = self._cat_svc.get_by_type(type_)
        names = [c.name for c in self._cats]
        self._cat_combo.configure(values=names)
        selected = next((c.name for c in self._cats if c.id == selected_id), None)
        current = selected or (names[0] if names else "")
        self._cat_var.set(current)
        self._cat_combo.set(current)

    def _on_type_change(self, label: str):
        type_ = label.lower()
        self._type_var.set(type_)
        self._load_categories(type_)

    def _preview_amount(self):
        text = self._amount_var.get()
        if not any(op in text for op in "+-*/×÷"):
            self._preview_var.set("")
            return
        try:
            self._preview_var.set(f"= {format_currency(evaluate_amount(text))}")
        except ValueError:
            self._preview_var.set("")

    def _when(self) -> datetime | None:
        """Picked day at the original time of day (edits) or the current time."""
        d = self._date_picker.get_date()
        if d is None:
            return None
        if self._transaction:
            clock = self._transaction.date.astimezone(self._tz).timetz()
        else:
            clock = datetime.now(self._tz).timetz()
        return datetime.combine(d, clock)

    def _on_save(self):
        try:
            amount = evaluate_amount(self._amount_var.get())
        except ValueError as e:
            self._error_var.set(str(e))
            return

        when = self._when()
        if when is None:
            self._error_var.set("Invalid date.")
            return

        cat = next((c for c in self._cats if c.name == self._cat_var.get()), None)
        if not cat:
            self._error_var.set("Please select a category.")
            return

        type_ = self._type_var.get()
        note = self._note_var.get()
        try:
            if self._transaction:
                self._tx_svc.update(self._transaction.id, amount, cat.id, type_, when, note)
            else:
                self._tx_svc.create(amount, cat.id, type_, when, note)
            self.saved = True
            self.destroy()
        except (ValueError, StoreError) as e:
            self._error_var.set(str(e))

    def _center(self):
        self.update_idletasks()
        mw = self.master.winfo_x() + self.master.winfo_width() // 2
        mh = self.master.winfo_y() + self.master.winfo_height() // 2
        w, h = self.winfo_reqwidth(), self.winfo_reqheight()
        self.geometry(f"+{mw - w//2}+{mh - h//2}")
