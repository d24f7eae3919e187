import tkinter as tk

import customtkinter as ctk
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg
from matplotlib.figure import Figure

from controllers.statistics_controller import StatisticsController, StatisticsState
from ui.components.alert_banner import AlertBanner
from utils.constants import EXPENSE, INCOME, TYPE_COLORS
from utils.currency import format_currency, format_percentage, format_signed
from utils.date_helpers import friendly_month, month_range

_LEGEND_ROWS = 8


class StatisticsTab(ctk.CTkFrame):
    def __init__(self, master, controller: StatisticsController, **kwargs):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._ctrl = controller
        self._banner: AlertBanner | None = None
        self._rendered: StatisticsState | None = None
        self._trend_months: list[str] = []

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(3, weight=1)

        self._build_toolbar()
        self._build_banner_area()
        self._build_summary()
        self._build_charts()

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

    def _build_toolbar(self):
        bar = ctk.CTkFrame(self, fg_color=("gray88", "gray18"), corner_radius=8)
        bar.grid(row=0, column=0, sticky="ew", padx=8, pady=(8, 0))

        ctk.CTkLabel(bar, text="Month:").pack(side="left", padx=(12, 4), pady=8)
        ctk.CTkButton(bar, text="◀", width=28, command=self._ctrl.prev_month).pack(side="left")
        self._month_label = ctk.CTkLabel(bar, text="", width=130, anchor="center")
        self._month_label.pack(side="left", padx=4)
        ctk.CTkButton(bar, text="▶", width=28, command=self._ctrl.next_month).pack(side="left")

        self._type_switch = ctk.CTkSegmentedButton(
            bar, values=[EXPENSE.title(), INCOME.title()],
            command=lambda label: self._ctrl.select_type(label.lower()),
        )
        self._type_switch.pack(side="left", padx=16)

        self._loading_label = ctk.CTkLabel(bar, text="", text_color="gray60")
        self._loading_label.pack(side="right", padx=12)

    def _build_banner_area(self):
        self._banner_frame = ctk.CTkFrame(self, fg_color="transparent", height=0)
        self._banner_frame.grid(row=1, column=0, sticky="ew", padx=16)

    def _build_summary(self):
        frame = ctk.CTkFrame(self, fg_color="transparent")
        frame.grid(row=2, column=0, sticky="ew", padx=16, pady=10)
        frame.grid_columnconfigure((0, 1, 2), weight=1)
        self._summary_labels = {}
        for i, (key, label) in enumerate(
            [("income", "Income"), ("expense", "Expenses"), ("balance", "Balance")]
        ):
            card = ctk.CTkFrame(frame, fg_color=("gray90", "gray20"), corner_radius=10)
            card.grid(row=0, column=i, padx=6, sticky="ew")
            ctk.CTkLabel(card, text=label, text_color="gray60").pack(pady=(10, 0), padx=16)
            value = ctk.CTkLabel(card, text="", font=ctk.CTkFont(size=18, weight="bold"))
            value.pack(pady=(4, 10), padx=16)
            self._summary_labels[key] = value

    def _chart_panel(self, parent, title: str, figsize) -> tuple:
        outer = ctk.CTkFrame(parent, fg_color=("gray90", "gray20"), corner_radius=8)
        title_label = ctk.CTkLabel(outer, text=title, font=ctk.CTkFont(size=13, weight="bold"))
        title_label.pack(pady=(10, 0))
        fig = Figure(figsize=figsize, dpi=80, tight_layout=True)
        ax = fig.add_subplot(111)
        canvas = FigureCanvasTkAgg(fig, master=outer)
        canvas.get_tk_widget().pack(fill="both", expand=True, padx=8, pady=(4, 10))
        return outer, title_label, fig, ax, canvas

    def _build_charts(self):
        charts = ctk.CTkFrame(self, fg_color="transparent")
        charts.grid(row=3, column=0, sticky="nsew", padx=16, pady=(0, 12))
        charts.grid_columnconfigure(0, weight=3)
        charts.grid_columnconfigure(1, weight=2)
        charts.grid_rowconfigure((0, 1), weight=1)

        trend_outer, _, self._trend_fig, self._trend_ax, self._trend_mpl = self._chart_panel(
            charts, "Monthly Income vs Expenses", (5, 2.6))
        trend_outer.grid(row=0, column=0, sticky="nsew", padx=(0, 8), pady=(0, 8))
        self._trend_mpl.mpl_connect("pick_event", self._on_trend_pick)

        daily_outer, _, self._daily_fig, self._daily_ax, self._daily_mpl = self._chart_panel(
            charts, "Daily Totals", (5, 2.2))
        daily_outer.grid(row=1, column=0, sticky="nsew", padx=(0, 8))

        pie_outer, self._pie_title, self._pie_fig, self._pie_ax, self._pie_mpl = self._chart_panel(
            charts, "Expense Breakdown", (3, 3))
        pie_outer.grid(row=0, column=1, rowspan=2, sticky="nsew")
        self._legend_frame = ctk.CTkFrame(pie_outer, fg_color="transparent")
        self._legend_frame.pack(fill="x", padx=8, pady=(0, 8))

    def _style_ax(self, ax, fig):
        is_dark = ctk.get_appearance_mode() == "Dark"
        bg = "#2b2b2b" if is_dark else "#e4e4e4"
        fg = "#aaaaaa" if is_dark else "#444444"
        fig.patch.set_facecolor(bg)
        ax.set_facecolor(bg)
        ax.tick_params(colors=fg, labelsize=8)
        for spine in ax.spines.values():
            spine.set_edgecolor(fg)

    @staticmethod
    def _no_data(ax, text: str):
        ax.text(0.5, 0.5, text, ha="center", va="center", transform=ax.transAxes, color="gray")

    # ── Rendering ────────────────────────────────────────────────────────────

    def _render(self, state: StatisticsState):
        previous, self._rendered = self._rendered, state
        if not self.winfo_exists():
            return

        self._month_label.configure(text=friendly_month(state.selected_month))
        self._type_switch.set(state.breakdown_type.title())
        self._loading_label.configure(text="Loading…" if state.is_loading else "")
        self._render_error(state.error)

        summary = state.month_summary
        self._summary_labels["income"].configure(
            text=format_currency(summary.total_income), text_color=TYPE_COLORS[INCOME])
        self._summary_labels["expense"].configure(
            text=format_currency(summary.total_expense), text_color=TYPE_COLORS[EXPENSE])
        self._summary_labels["balance"].configure(
            text=format_signed(summary.balance),
            text_color="#2196F3" if summary.balance >= 0 else "#FF9800",
        )

        if previous is None or previous.monthly_stats is not state.monthly_stats \
                or previous.selected_month != state.selected_month:
            self.after(50, lambda s=state: self._draw_trend_chart(s))
        if previous is None or previous.category_stats is not state.category_stats:
            self.after(50, lambda s=state: self._draw_pie_chart(s))
            self._render_legend(state)
        if previous is None or previous.daily_buckets is not state.daily_buckets:
            self.after(50, lambda s=state: self._draw_daily_chart(s))

    def _render_error(self, error: str | None):
        if error is None:
            if self._banner is not None:
                self._banner.destroy()
                self._banner = None
            return
        if self._banner is not None:
            return
        self._banner = AlertBanner(
            self._banner_frame, message=error,
            action_text="Retry", action_cmd=self._on_retry,
            on_dismiss=self._on_dismiss_error,
        )
        self._banner.pack(fill="x", pady=2)

    def _on_retry(self):
        if self._banner is not None:
            self._banner.destroy()
            self._banner = None
        self._ctrl.retry()

    def _on_dismiss_error(self):
        self._banner = None
        self._ctrl.clear_error()

    def _draw_trend_chart(self, state: StatisticsState):
        ax = self._trend_ax
        ax.clear()
        self._style_ax(ax, self._trend_fig)

        # oldest on the left
        data = list(reversed(state.monthly_stats))
        self._trend_months = [m.month for m in data]
        if not data:
            self._no_data(ax, "No data")
            self._trend_mpl.draw_idle()
            return

        labels = [m.month[2:] for m in data]
        x = list(range(len(labels)))
        w = 0.35
        incomes = ax.bar([i - w / 2 for i in x], [float(m.income) for m in data], w,
                         color=TYPE_COLORS[INCOME], picker=True)
        expenses = ax.bar([i + w / 2 for i in x], [float(m.expense) for m in data], w,
                          color=TYPE_COLORS[EXPENSE], picker=True)
        for i, m in enumerate(data):
            if m.month == state.selected_month:
                for bar in (incomes[i], expenses[i]):
                    bar.set_edgecolor("#2196F3")
                    bar.set_linewidth(2)
        ax.set_xticks(x)
        ax.set_xticklabels(labels, rotation=45 if len(labels) > 8 else 0)
        ax.yaxis.set_major_formatter(
            lambda v, _: f"{v/1000:.0f}k" if abs(v) >= 1000 else f"{v:.0f}"
        )
        self._trend_mpl.draw_idle()

    def _on_trend_pick(self, event):
        index = round(event.artist.get_x() + event.artist.get_width() / 2)
        if 0 <= index < len(self._trend_months):
            self._ctrl.select_month(self._trend_months[index])

    def _draw_pie_chart(self, state: StatisticsState):
        ax = self._pie_ax
        ax.clear()
        self._style_ax(ax, self._pie_fig)
        self._pie_title.configure(text=f"{state.breakdown_type.title()} Breakdown")

        stats = state.category_stats
        if not stats or sum(s.total_amount for s in stats) == 0:
            self._no_data(ax, f"No {state.breakdown_type} data")
            self._pie_mpl.draw_idle()
            return

        ax.pie(
            [float(s.total_amount) for s in stats],
            colors=[s.category.color_hex for s in stats],
            startangle=90,
        )
        ax.set_aspect("equal")
        self._pie_mpl.draw_idle()

    def _render_legend(self, state: StatisticsState):
        for w in self._legend_frame.winfo_children():
            w.destroy()
        stats = state.category_stats
        for item in stats[:_LEGEND_ROWS]:
            row = ctk.CTkFrame(self._legend_frame, fg_color="transparent")
            row.pack(fill="x", pady=1)
            tk.Label(row, bg=item.category.color_hex, width=2).pack(side="left", padx=(0, 4))
            ctk.CTkLabel(
                row, text=f"{item.category.name}: {format_currency(item.total_amount)}",
                anchor="w", font=ctk.CTkFont(size=11),
            ).pack(side="left")
            ctk.CTkLabel(
                row,
                text=f"{format_percentage(item.percentage)} · {item.transaction_count}",
                anchor="e", font=ctk.CTkFont(size=11), text_color="gray60",
            ).pack(side="right")
        if len(stats) > _LEGEND_ROWS:
            ctk.CTkLabel(
                self._legend_frame, text=f"+{len(stats) - _LEGEND_ROWS} more",
                font=ctk.CTkFont(size=11), text_color="gray60",
            ).pack(anchor="w")

    def _draw_daily_chart(self, state: StatisticsState):
        ax = self._daily_ax
        ax.clear()
        self._style_ax(ax, self._daily_fig)

        first, last = month_range(state.selected_month)
        days = list(range(1, last.day + 1))
        buckets = {d.day: totals for d, totals in state.daily_buckets.items()}
        type_ = state.breakdown_type
        values = [float(buckets.get(day, {}).get(type_, 0)) for day in days]
        if not any(values):
            self._no_data(ax, f"No {type_} this month")
            self._daily_mpl.draw_idle()
            return

        ax.bar(days, values, 0.7, color=TYPE_COLORS[type_])
        ax.set_xlim(first.day - 0.5, last.day + 0.5)
        ax.set_xticks([d for d in days if d == 1 or d % 5 == 0])
        self._daily_mpl.draw_idle()
