import customtkinter as ctk

from models.transaction import Transaction
from utils.constants import TYPE_COLORS
from utils.currency import format_transaction_amount
from utils.date_helpers import format_display_date, local_day


class DeleteTransactionDialog(ctk.CTkToplevel):
    """Asks before a transaction is deleted, showing what will be removed.

    Blocks until closed. `.confirmed` is True only when Delete was pressed;
    closing the window or pressing Escape counts as cancel.
    """

    def __init__(self, master, tx: Transaction, category_name: str, tz,
                 date_format: str = "MM/DD/YYYY", **kwargs):
        super().__init__(master, **kwargs)
        self.title("Delete Transaction")
        self.confirmed = False
        self.resizable(False, False)
        self.protocol("WM_DELETE_WINDOW", self.destroy)
        self.bind("<Escape>", lambda _e: self.destroy())
        self.bind("<Return>", lambda _e: self._delete())

        self.grid_columnconfigure(1, weight=1)

        rows = [
            ("Category", category_name, None),
            ("Amount", format_transaction_amount(tx.type, tx.amount), TYPE_COLORS.get(tx.type)),
            ("Date", format_display_date(local_day(tx.date, tz), date_format), None),
        ]
        if tx.note:
            rows.append(("Note", tx.note, None))

        for r, (label, value, color) in enumerate(rows):
            ctk.CTkLabel(self, text=f"{label}:", anchor="w", text_color="gray60").grid(
                row=r, column=0, sticky="w", padx=(20, 8), pady=(16 if r == 0 else 2, 2)
            )
            value_lbl = ctk.CTkLabel(self, text=value, anchor="w", wraplength=260, justify="left")
            if color:
                value_lbl.configure(text_color=color)
            value_lbl.grid(row=r, column=1, sticky="w", padx=(0, 20),
                           pady=(16 if r == 0 else 2, 2))

        ctk.CTkLabel(
            self, text="This cannot be undone.", text_color="gray60",
            font=ctk.CTkFont(size=11, slant="italic"),
        ).grid(row=len(rows), column=0, columnspan=2, sticky="w", padx=20, pady=(8, 12))

        buttons = ctk.CTkFrame(self, fg_color="transparent")
        buttons.grid(row=len(rows) + 1, column=0, columnspan=2, sticky="e", padx=20, pady=(0, 16))
        ctk.CTkButton(
            buttons, text="Keep", width=90, fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"), command=self.destroy,
        ).pack(side="left", padx=(0, 8))
        ctk.CTkButton(
            buttons, text="Delete", width=90,
            fg_color="#F44336", hover_color="#D32F2F", command=self._delete,
        ).pack(side="left")

        self.transient(master)
        self.grab_set()
        self._place_over(master)
        self.wait_window()

    def _place_over(self, master):
        self.update_idletasks()
        x = master.winfo_rootx() + (master.winfo_width() - self.winfo_width()) // 2
        y = master.winfo_rooty() + (master.winfo_height() - self.winfo_height()) // 3
        self.geometry(f"+{max(x, 0)}+{max(y, 0)}")

    def _delete(self):
        self.confirmed = True
        self.destroy()
