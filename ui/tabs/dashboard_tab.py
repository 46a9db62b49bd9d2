import customtkinter as ctk
from matplotlib.figure import Figure
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg
from services.report_service import ReportService
from utils.currency import format_currency, format_signed
from utils.date_helpers import current_month_str, month_range, format_display_date


class DashboardTab(ctk.CTkFrame):
    """Owner-wide overview: balances, today and this month, recent activity."""

    def __init__(
        self,
        master,
        report_service: ReportService,
        owner_id: str,
        get_account_id,   # callable → int | None
        currency_symbol: str = "₹",
        date_format: str = "DD/MM/YYYY",
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._report_svc = report_service
        self._owner_id = owner_id
        self._get_account_id = get_account_id
        self._symbol = currency_symbol
        self._date_format = date_format

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)

        self._build_summary_cards()
        self._build_accounts_strip()
        self._build_bottom_section()
        self._load()

    def refresh(self):
        self._load()

    def _build_summary_cards(self):
        self._card_frame = ctk.CTkFrame(self, fg_color="transparent")
        self._card_frame.grid(row=0, column=0, sticky="ew", padx=16, pady=(12, 6))
        self._card_frame.grid_columnconfigure((0, 1, 2, 3), weight=1)

    def _build_accounts_strip(self):
        self._accounts_frame = ctk.CTkFrame(self, fg_color=("gray88", "gray18"), corner_radius=8)
        self._accounts_frame.grid(row=1, column=0, sticky="ew", padx=16, pady=(0, 6))

    def _build_bottom_section(self):
        bottom = ctk.CTkFrame(self, fg_color="transparent")
        bottom.grid(row=2, column=0, sticky="nsew", padx=16, pady=(0, 12))
        bottom.grid_columnconfigure(0, weight=2)
        bottom.grid_columnconfigure(1, weight=3)
        bottom.grid_rowconfigure(0, weight=1)

        self._recent_frame = ctk.CTkScrollableFrame(
            bottom, label_text="Recent Transactions", height=240
        )
        self._recent_frame.grid(row=0, column=0, sticky="nsew", padx=(0, 8))

        right = ctk.CTkFrame(bottom, fg_color=("gray90", "gray20"), corner_radius=8)
        right.grid(row=0, column=1, sticky="nsew", padx=(8, 0))
        ctk.CTkLabel(
            right, text="Monthly Income vs Expenses",
            font=ctk.CTkFont(size=13, weight="bold"),
        ).pack(pady=(10, 0))
        self._bar_fig = Figure(figsize=(5, 3), dpi=80, tight_layout=True)
        self._bar_ax = self._bar_fig.add_subplot(111)
        self._bar_mpl = FigureCanvasTkAgg(self._bar_fig, master=right)
        self._bar_mpl.get_tk_widget().pack(fill="both", expand=True, padx=8, pady=(4, 4))

        ctk.CTkLabel(
            right, text="Top Expense Categories (This Month)",
            font=ctk.CTkFont(size=12, weight="bold"),
        ).pack(pady=(4, 0))
        self._breakdown_frame = ctk.CTkFrame(right, fg_color="transparent")
        self._breakdown_frame.pack(fill="x", padx=12, pady=(0, 10))

    def _load(self):
        summary = self._report_svc.dashboard_summary(self._owner_id)

        for w in self._card_frame.winfo_children():
            w.destroy()
        today, month = summary["today"], summary["this_month"]
        card_data = [
            ("Total Balance",   format_currency(summary["total_balance"], self._symbol), "#2196F3"),
            ("Today Net",       format_signed(today["net"], self._symbol),
             "#4CAF50" if today["net"] >= 0 else "#F44336"),
            ("Month Income",    format_currency(month["income"], self._symbol), "#4CAF50"),
            ("Month Expenses",  format_currency(month["expense"], self._symbol), "#F44336"),
        ]
        for i, (label, text, color) in enumerate(card_data):
            self._make_card(self._card_frame, i, label, text, color)

        for w in self._accounts_frame.winfo_children():
            w.destroy()
        for acct in summary["accounts"]:
            name = f"{acct.name} ★" if acct.is_default else acct.name
            ctk.CTkLabel(
                self._accounts_frame,
                text=f"{name}: {format_currency(acct.current_balance, self._symbol)}",
                anchor="w",
            ).pack(side="left", padx=12, pady=6)

        for w in self._recent_frame.winfo_children():
            w.destroy()
        recent = summary["recent_transactions"]
        if not recent:
            ctk.CTkLabel(
                self._recent_frame, text="No transactions yet.", text_color="gray60",
            ).pack(pady=20)
        for idx, tx in enumerate(recent):
            bg = ("gray90", "gray20") if idx % 2 == 0 else ("gray86", "gray24")
            f = ctk.CTkFrame(self._recent_frame, fg_color=bg, corner_radius=4)
            f.pack(fill="x", pady=1)
            f.grid_columnconfigure(1, weight=1)
            ctk.CTkLabel(
                f, text=format_display_date(tx.transaction_date, self._date_format),
                width=85, anchor="w",
            ).grid(row=0, column=0, padx=6, pady=3)
            ctk.CTkLabel(f, text=tx.description or tx.category, anchor="w").grid(
                row=0, column=1, padx=4, sticky="ew"
            )
            ctk.CTkLabel(
                f, text=format_signed(tx.signed_amount, self._symbol),
                text_color="#4CAF50" if tx.is_credit else "#F44336",
                anchor="e", width=100,
            ).grid(row=0, column=2, padx=6)

        account_id = self._get_account_id()
        self.after(50, lambda: self._draw_bar_chart(account_id))

        for w in self._breakdown_frame.winfo_children():
            w.destroy()
        start, end = month_range(current_month_str())
        breakdown = self._report_svc.get_category_breakdown(self._owner_id, start, end)
        if not breakdown:
            ctk.CTkLabel(
                self._breakdown_frame, text="No expenses this month.", text_color="gray60",
            ).pack(anchor="w")
        for item in breakdown[:5]:
            row = ctk.CTkFrame(self._breakdown_frame, fg_color="transparent")
            row.pack(fill="x", pady=1)
            ctk.CTkLabel(row, text=item["category"], anchor="w").pack(side="left")
            ctk.CTkLabel(
                row, text=format_currency(item["total"], self._symbol),
                anchor="e", text_color="gray60",
            ).pack(side="right")

    def _style_ax(self, ax, fig):
        is_dark = ctk.get_appearance_mode() == "Dark"
        bg = "#2b2b2b" if is_dark else "#e4e4e4"
        fg = "#aaaaaa" if is_dark else "#444444"
        fig.patch.set_facecolor(bg)
        ax.set_facecolor(bg)
        ax.tick_params(colors=fg, labelsize=8)
        for spine in ax.spines.values():
            spine.set_edgecolor(fg)

    def _draw_bar_chart(self, account_id):
        ax = self._bar_ax
        ax.clear()
        self._style_ax(ax, self._bar_fig)

        data = self._report_svc.get_monthly_totals(self._owner_id, account_id)
        if not any(d["income"] or d["expense"] for d in data):
            ax.text(0.5, 0.5, "No data", ha="center", va="center",
                    transform=ax.transAxes, color="gray")
            self._bar_mpl.draw_idle()
            return

        labels = [d["month"][5:] for d in data]
        incomes = [float(d["income"]) for d in data]
        expenses = [float(d["expense"]) for d in data]
        x = list(range(len(labels)))
        w = 0.35
        ax.bar([i - w / 2 for i in x], incomes, w, color="#4CAF50")
        ax.bar([i + w / 2 for i in x], expenses, w, color="#F44336")
        ax.set_xticks(x)
        ax.set_xticklabels(labels)
        ax.yaxis.set_major_formatter(
            lambda v, _: f"{v/1000:.0f}k" if abs(v) >= 1000 else f"{v:.0f}"
        )
        self._bar_mpl.draw_idle()

    def _make_card(self, parent, col, label, text, color):
        card = ctk.CTkFrame(parent, fg_color=("gray90", "gray20"), corner_radius=10)
        card.grid(row=0, column=col, padx=6, sticky="ew")
        card.grid_columnconfigure(0, weight=1)
        ctk.CTkLabel(
            card, text=label, font=ctk.CTkFont(size=12), text_color="gray60",
        ).grid(row=0, column=0, pady=(12, 0), padx=16)
        ctk.CTkLabel(
            card, text=text,
            font=ctk.CTkFont(size=20, weight="bold"),
            text_color=color,
        ).grid(row=1, column=0, pady=(4, 12), padx=16)
