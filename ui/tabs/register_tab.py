import customtkinter as ctk
from services.transaction_service import TransactionService
from services.account_service import AccountService
from services.category_service import CategoryService
from models.transaction import Transaction, TRANSACTION_TYPE_LABELS
from ui.components.transaction_form import TransactionForm
from ui.components.confirm_dialog import ConfirmDialog
from utils.currency import format_currency, format_signed
from utils.date_helpers import (
    current_month_str, friendly_month, month_range, prev_month, next_month,
    format_display_date,
)
from utils.errors import LedgerError


_MAX_RENDERED_ROWS = 100

_TYPE_COLORS = {
    "income": "#4CAF50",
    "expense": "#F44336",
    "transfer_in": "#2196F3",
    "transfer_out": "#2196F3",
    "opening_balance": "gray60",
}


class RegisterTab(ctk.CTkFrame):
    def __init__(
        self,
        master,
        tx_service: TransactionService,
        account_service: AccountService,
        category_service: CategoryService,
        owner_id: str,
        get_account_id,   # callable → int | None
        notify_refresh,   # callable
        currency_symbol: str = "₹",
        date_format: str = "DD/MM/YYYY",
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._tx_svc = tx_service
        self._acct_svc = account_service
        self._cat_svc = category_service
        self._owner_id = owner_id
        self._get_account_id = get_account_id
        self._notify_refresh = notify_refresh
        self._symbol = currency_symbol
        self._date_format = date_format

        self._month = current_month_str()
        self._month_var = ctk.StringVar(value=friendly_month(self._month))
        self._type_var = ctk.StringVar(value="all")

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)

        self._build_filter_bar()
        self._build_header()
        self._build_register()
        self._build_status_bar()
        self._load()

    def refresh(self):
        self._load()

    # ── Filter bar ──────────────────────────────────────────────────────────
    def _build_filter_bar(self):
        bar = ctk.CTkFrame(self, fg_color=("gray88", "gray18"), corner_radius=8)
        bar.grid(row=0, column=0, sticky="ew", padx=8, pady=(8, 0))
        bar.grid_columnconfigure(4, weight=1)

        ctk.CTkButton(bar, text="◀", width=28, command=self._prev_month).grid(
            row=0, column=0, padx=(8, 0), pady=6
        )
        ctk.CTkLabel(
            bar, textvariable=self._month_var, width=120, anchor="center"
        ).grid(row=0, column=1, padx=4)
        ctk.CTkButton(bar, text="▶", width=28, command=self._next_month).grid(
            row=0, column=2, padx=(0, 8)
        )

        ctk.CTkSegmentedButton(
            bar,
            values=["all", "income", "expense", "transfer"],
            variable=self._type_var,
            command=lambda _: self._load(),
            width=280,
        ).grid(row=0, column=3, padx=8)

        btn_frame = ctk.CTkFrame(bar, fg_color="transparent")
        btn_frame.grid(row=0, column=5, padx=(0, 8))
        for label, cmd in [
            ("+ Income",   lambda: self._open_add_form("income")),
            ("+ Expense",  lambda: self._open_add_form("expense")),
            ("+ Transfer", lambda: self._open_add_form("transfer")),
        ]:
            ctk.CTkButton(btn_frame, text=label, width=88, command=cmd).pack(side="left", padx=2)
        ctk.CTkButton(
            btn_frame, text="Reconcile", width=88,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self._reconcile,
        ).pack(side="left", padx=2)

    def _prev_month(self):
        self._month = prev_month(self._month)
        self._month_var.set(friendly_month(self._month))
        self._load()

    def _next_month(self):
        self._month = next_month(self._month)
        self._month_var.set(friendly_month(self._month))
        self._load()

    # ── Column headers ───────────────────────────────────────────────────────
    def _build_header(self):
        hdr = ctk.CTkFrame(self, fg_color=("gray82", "gray22"), corner_radius=0)
        hdr.grid(row=1, column=0, sticky="ew", padx=8, pady=(4, 0))
        cols = [("Date", 85), ("Type", 100), ("Category", 130), ("Description", 200),
                ("Reference", 90), ("Amount", 100), ("Balance", 100), ("", 50)]
        for i, (label, width) in enumerate(cols):
            ctk.CTkLabel(
                hdr, text=label, width=width, anchor="w",
                font=ctk.CTkFont(weight="bold"),
            ).grid(row=0, column=i, padx=4, pady=4, sticky="w")

    # ── Scrollable register ──────────────────────────────────────────────────
    def _build_register(self):
        self._scroll = ctk.CTkScrollableFrame(self)
        self._scroll.grid(row=2, column=0, sticky="nsew", padx=8, pady=(0, 4))
        self._scroll.grid_columnconfigure(0, weight=1)

    def _build_status_bar(self):
        self._status_var = ctk.StringVar()
        self._status_label = ctk.CTkLabel(
            self, textvariable=self._status_var, anchor="w", text_color="gray60",
        )
        self._status_label.grid(row=3, column=0, sticky="ew", padx=16, pady=(0, 8))

    def _load(self):
        for w in self._scroll.winfo_children():
            w.destroy()

        account_id = self._get_account_id()
        if not account_id:
            ctk.CTkLabel(self._scroll, text="No account selected.").grid(row=0, column=0)
            return

        start, end = month_range(self._month)
        rows = self._tx_svc.get_transactions(
            self._owner_id,
            account_id=account_id,
            type_filter=self._type_var.get(),
            start_date=start,
            end_date=end,
            limit=None,
        )

        if not rows:
            ctk.CTkLabel(
                self._scroll, text="No transactions for this period.",
                text_color="gray60",
            ).grid(row=0, column=0, pady=20)
            return

        for idx, tx in enumerate(rows[:_MAX_RENDERED_ROWS]):
            self._add_row(idx, tx)

        if len(rows) > _MAX_RENDERED_ROWS:
            ctk.CTkLabel(
                self._scroll,
                text=f"Showing {_MAX_RENDERED_ROWS} of {len(rows)} transactions. Use the filters to narrow results.",
                text_color="gray60",
                font=ctk.CTkFont(size=11),
            ).grid(row=_MAX_RENDERED_ROWS, column=0, pady=8)

    def _add_row(self, idx: int, tx: Transaction):
        bg = ("gray92", "gray17") if idx % 2 == 0 else ("gray88", "gray21")
        row = ctk.CTkFrame(self._scroll, fg_color=bg, corner_radius=4)
        row.grid(row=idx, column=0, sticky="ew", pady=1, padx=2)

        ctk.CTkLabel(
            row, text=format_display_date(tx.transaction_date, self._date_format),
            width=85, anchor="w",
        ).grid(row=0, column=0, padx=4, pady=4)

        ctk.CTkLabel(
            row, text=TRANSACTION_TYPE_LABELS.get(tx.type, tx.type), width=100, anchor="w",
            text_color=_TYPE_COLORS.get(tx.type, "gray"),
        ).grid(row=0, column=1, padx=4)

        ctk.CTkLabel(row, text=tx.category or "—", width=130, anchor="w").grid(
            row=0, column=2, padx=4
        )
        ctk.CTkLabel(row, text=tx.description or "—", width=200, anchor="w").grid(
            row=0, column=3, padx=4
        )
        ctk.CTkLabel(row, text=tx.reference_number or "", width=90, anchor="w").grid(
            row=0, column=4, padx=4
        )

        ctk.CTkLabel(
            row, text=format_signed(tx.signed_amount, self._symbol), width=100, anchor="e",
            text_color="#4CAF50" if tx.is_credit else "#F44336",
        ).grid(row=0, column=5, padx=4)

        ctk.CTkLabel(
            row, text=format_currency(tx.balance_after, self._symbol), width=100, anchor="e",
        ).grid(row=0, column=6, padx=4)

        del_btn = ctk.CTkButton(
            row, text="Del", width=44, height=24,
            fg_color="#F44336", hover_color="#D32F2F",
            command=lambda t=tx: self._delete_tx(t),
        )
        if tx.type == "opening_balance":
            del_btn.configure(state="disabled", fg_color="gray50")
        del_btn.grid(row=0, column=7, padx=(4, 6))

    def _open_add_form(self, type_: str):
        account_id = self._get_account_id()
        if not account_id:
            return
        form = TransactionForm(
            self.winfo_toplevel(),
            self._tx_svc, self._acct_svc, self._cat_svc,
            owner_id=self._owner_id,
            current_account_id=account_id,
            initial_type=type_,
            date_format=self._date_format,
        )
        self.wait_window(form)
        if form.saved:
            self._notify_refresh("transaction")

    def _delete_tx(self, tx: Transaction):
        message = (
            f"Delete this {TRANSACTION_TYPE_LABELS[tx.type].lower()} of "
            f"{format_currency(tx.amount, self._symbol)}? The account balance will be adjusted."
        )
        if tx.is_transfer:
            message += " Only this side of the transfer is removed."
        dlg = ConfirmDialog(self.winfo_toplevel(), "Delete Transaction", message, confirm_text="Delete")
        if not dlg.result:
            return
        try:
            self._tx_svc.delete_transaction(tx.id, self._owner_id)
            self._notify_refresh("transaction")
        except LedgerError as e:
            self._status_var.set(str(e))

    def _reconcile(self):
        account_id = self._get_account_id()
        if not account_id:
            return
        result = self._tx_svc.reconcile(self._owner_id, account_id)
        if result["in_balance"]:
            self._status_var.set(
                f"Balance verified: {format_currency(result['stored'], self._symbol)}"
            )
        else:
            self._status_var.set(
                f"Balance drift of {format_signed(result['drift'], self._symbol)}: "
                f"stored {format_currency(result['stored'], self._symbol)}, "
                f"history gives {format_currency(result['derived'], self._symbol)}"
            )
