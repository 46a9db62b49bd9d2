import customtkinter as ctk
from models.account import Account, ACCOUNT_TYPE_LABELS
from services.account_service import AccountService
from services.transaction_service import TransactionService
from services.report_service import ReportService
from services.category_service import CategoryService
from ui.components.account_form import AccountForm
from ui.tabs.dashboard_tab import DashboardTab
from ui.tabs.register_tab import RegisterTab
from ui.tabs.categories_tab import CategoriesTab
from utils.constants import APP_NAME, APP_WIDTH, APP_HEIGHT, DEFAULT_CURRENCY_SYMBOL
from utils.currency import format_currency


_REFRESH_SCOPES: dict[str, set[str]] = {
    "transaction": {"dashboard", "register", "balance"},
    "category":    {"register", "categories"},
    "account":     {"dashboard", "register", "balance"},
    "full":        {"dashboard", "register", "categories", "balance"},
}


class AppWindow(ctk.CTk):
    def __init__(
        self,
        account_service: AccountService,
        tx_service: TransactionService,
        report_service: ReportService,
        category_service: CategoryService,
        owner_id: str,
        initial_account: Account | None = None,
        currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
        date_format: str = "DD/MM/YYYY",
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._acct_svc = account_service
        self._tx_svc = tx_service
        self._report_svc = report_service
        self._cat_svc = category_service
        self._owner_id = owner_id
        self._symbol = currency_symbol
        self._date_format = date_format

        self.title(APP_NAME)
        self.minsize(APP_WIDTH, APP_HEIGHT)
        self.geometry(f"{APP_WIDTH}x{APP_HEIGHT}")

        self._accounts = self._acct_svc.get_all(owner_id)
        self._current_account: Account | None = (
            initial_account or (self._accounts[0] if self._accounts else None)
        )

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=1)

        self._build_account_bar()
        self._build_tabs()

    @property
    def current_account(self) -> Account | None:
        return self._current_account

    # ── Account bar ─────────────────────────────────────────────────────────
    def _build_account_bar(self):
        bar = ctk.CTkFrame(self, fg_color=("gray85", "gray15"), corner_radius=0, height=44)
        bar.grid(row=0, column=0, sticky="ew")
        bar.grid_propagate(False)

        ctk.CTkLabel(bar, text="Account:", anchor="e").pack(side="left", padx=(12, 4), pady=8)

        current_name = self._current_account.name if self._current_account else ""
        self._acct_combo_var = ctk.StringVar(value=current_name)
        self._acct_combo = ctk.CTkComboBox(
            bar,
            values=[a.name for a in self._accounts],
            variable=self._acct_combo_var,
            width=200,
            state="readonly",
            command=self.on_account_changed,
        )
        self._acct_combo.pack(side="left", padx=4)

        ctk.CTkButton(
            bar, text="+ New Account", width=110,
            command=self._open_new_account,
        ).pack(side="left", padx=4)

        ctk.CTkButton(
            bar, text="Edit Account", width=100,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self._open_edit_account,
        ).pack(side="left", padx=4)

        self._acct_type_label = ctk.CTkLabel(bar, text="", text_color="gray60", width=90)
        self._acct_type_label.pack(side="left", padx=(4, 8))

        self._balance_label = ctk.CTkLabel(
            bar, text="", font=ctk.CTkFont(size=14, weight="bold"),
        )
        self._balance_label.pack(side="right", padx=12)
        self._update_account_labels()

    def _build_tabs(self):
        self._tabview = ctk.CTkTabview(self)
        self._tabview.grid(row=1, column=0, sticky="nsew", padx=8, pady=(0, 8))

        for tab_name in ("Dashboard", "Register", "Categories"):
            self._tabview.add(tab_name)
            self._tabview.tab(tab_name).grid_columnconfigure(0, weight=1)
            self._tabview.tab(tab_name).grid_rowconfigure(0, weight=1)

        self._dashboard_tab = DashboardTab(
            self._tabview.tab("Dashboard"),
            report_service=self._report_svc,
            owner_id=self._owner_id,
            get_account_id=self._get_current_account_id,
            currency_symbol=self._symbol,
            date_format=self._date_format,
        )
        self._dashboard_tab.grid(row=0, column=0, sticky="nsew")

        self._register_tab = RegisterTab(
            self._tabview.tab("Register"),
            tx_service=self._tx_svc,
            account_service=self._acct_svc,
            category_service=self._cat_svc,
            owner_id=self._owner_id,
            get_account_id=self._get_current_account_id,
            notify_refresh=self.notify_tabs_refresh,
            currency_symbol=self._symbol,
            date_format=self._date_format,
        )
        self._register_tab.grid(row=0, column=0, sticky="nsew")

        self._categories_tab = CategoriesTab(
            self._tabview.tab("Categories"),
            category_service=self._cat_svc,
            owner_id=self._owner_id,
            notify_refresh=self.notify_tabs_refresh,
        )
        self._categories_tab.grid(row=0, column=0, sticky="nsew")

    # ── Account management ───────────────────────────────────────────────────
    def on_account_changed(self, value=None):
        name = self._acct_combo_var.get()
        self._current_account = next(
            (a for a in self._accounts if a.name == name), None
        )
        self._update_account_labels()
        self.notify_tabs_refresh("account")

    def _get_current_account_id(self) -> int | None:
        return self._current_account.id if self._current_account else None

    def _open_new_account(self):
        form = AccountForm(self, self._acct_svc, self._owner_id, currency_symbol=self._symbol)
        self.wait_window(form)
        if form.saved:
            self._refresh_account_bar()
            self.notify_tabs_refresh("account")

    def _open_edit_account(self):
        if not self._current_account:
            return
        form = AccountForm(
            self, self._acct_svc, self._owner_id,
            account=self._current_account,
            on_deactivate_callback=self._on_account_deactivated,
            currency_symbol=self._symbol,
        )
        self.wait_window(form)
        if form.saved:
            self._refresh_account_bar()
            self.notify_tabs_refresh("account")

    def _on_account_deactivated(self):
        self._current_account = None

    def _refresh_account_bar(self):
        self._accounts = self._acct_svc.get_all(self._owner_id)
        self._acct_combo.configure(values=[a.name for a in self._accounts])
        if self._current_account:
            match = next((a for a in self._accounts if a.id == self._current_account.id), None)
            self._current_account = match or (self._accounts[0] if self._accounts else None)
        else:
            self._current_account = self._accounts[0] if self._accounts else None
        new_name = self._current_account.name if self._current_account else ""
        self._acct_combo_var.set(new_name)
        self._acct_combo.set(new_name)
        self._update_account_labels()

    def _update_account_labels(self):
        if self._current_account:
            label = ACCOUNT_TYPE_LABELS.get(self._current_account.account_type, "")
            self._acct_type_label.configure(text=f"[{label}]")
            self._balance_label.configure(
                text=f"Balance: {format_currency(self._current_account.current_balance, self._symbol)}"
            )
        else:
            self._acct_type_label.configure(text="")
            self._balance_label.configure(text="")

    # ── Refresh ──────────────────────────────────────────────────────────────
    def notify_tabs_refresh(self, scope: str = "full"):
        tabs = _REFRESH_SCOPES.get(scope, _REFRESH_SCOPES["full"])
        if "balance" in tabs:
            self._reload_current_account()
        if "dashboard"  in tabs: self._dashboard_tab.refresh()
        if "register"   in tabs: self._register_tab.refresh()
        if "categories" in tabs: self._categories_tab.refresh()

    def _reload_current_account(self):
        self._accounts = self._acct_svc.get_all(self._owner_id)
        if self._current_account:
            self._current_account = next(
                (a for a in self._accounts if a.id == self._current_account.id),
                self._current_account,
            )
        self._update_account_labels()
