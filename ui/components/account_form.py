import customtkinter as ctk
from services.account_service import AccountService
from models.account import Account, ACCOUNT_TYPE_LABELS
from ui.components.confirm_dialog import ConfirmDialog, center_over_master
from utils.constants import DEFAULT_CURRENCY
from utils.currency import format_currency
from utils.errors import LedgerError


class AccountForm(ctk.CTkToplevel):
    """Open or edit an account. Sets self.saved = True on success.

    The opening balance can only be entered when the account is created.
    """

    _TYPE_OPTIONS = list(ACCOUNT_TYPE_LABELS.values())
    _LABEL_TO_KEY = {v: k for k, v in ACCOUNT_TYPE_LABELS.items()}

    def __init__(
        self,
        master,
        account_service: AccountService,
        owner_id: str,
        account: Account | None = None,
        on_deactivate_callback=None,
        currency_symbol: str = "₹",
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._svc = account_service
        self._owner_id = owner_id
        self._account = account
        self._on_deactivate = on_deactivate_callback
        self.saved = False

        self.title("Edit Account" if account else "New Account")
        self.resizable(False, False)
        self.grid_columnconfigure(1, weight=1)

        r = 0
        self._label("Name:", r, top=16)
        self._name_var = ctk.StringVar(value=account.name if account else "")
        self._name_entry = ctk.CTkEntry(self, textvariable=self._name_var, width=240)
        self._name_entry.grid(row=r, column=1, padx=(0, 16), pady=(16, 4), sticky="ew")
        r += 1

        self._label("Account Type:", r)
        self._type_var = ctk.StringVar(
            value=ACCOUNT_TYPE_LABELS[account.account_type] if account else "Cash"
        )
        ctk.CTkComboBox(
            self, values=self._TYPE_OPTIONS, variable=self._type_var,
            width=240, state="readonly",
        ).grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._label("Currency:", r)
        self._currency_var = ctk.StringVar(value=account.currency if account else DEFAULT_CURRENCY)
        ctk.CTkEntry(self, textvariable=self._currency_var, width=240).grid(
            row=r, column=1, padx=(0, 16), pady=4, sticky="ew"
        )
        r += 1

        self._label("Opening Balance:", r)
        if account:
            ctk.CTkLabel(
                self, text=format_currency(account.opening_balance, currency_symbol),
                anchor="w", text_color="gray60",
            ).grid(row=r, column=1, padx=(0, 16), pady=4, sticky="w")
            self._ob_var = None
        else:
            self._ob_var = ctk.StringVar(value="0.00")
            ctk.CTkEntry(self, textvariable=self._ob_var, width=240).grid(
                row=r, column=1, padx=(0, 16), pady=4, sticky="ew"
            )
        r += 1

        self._default_var = ctk.BooleanVar(value=account.is_default if account else False)
        ctk.CTkCheckBox(
            self, text="Default account", variable=self._default_var,
        ).grid(row=r, column=1, padx=(0, 16), pady=4, sticky="w")
        r += 1

        self._error_var = ctk.StringVar()
        ctk.CTkLabel(
            self, textvariable=self._error_var, text_color="#F44336",
            wraplength=300, anchor="w",
        ).grid(row=r, column=0, columnspan=2, padx=16, pady=(0, 4), sticky="ew")
        r += 1

        buttons = ctk.CTkFrame(self, fg_color="transparent")
        buttons.grid(row=r, column=0, columnspan=2, padx=16, pady=(4, 16), sticky="ew")
        ctk.CTkButton(
            buttons, text="Cancel", width=90,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self.destroy,
        ).pack(side="left")
        if account:
            ctk.CTkButton(
                buttons, text="Deactivate", width=100,
                fg_color="#F44336", hover_color="#D32F2F",
                command=self._on_deactivate_click,
            ).pack(side="left", padx=8)
        ctk.CTkButton(buttons, text="Save", width=90, command=self._on_save).pack(side="right")

        self.transient(master)
        self.grab_set()
        center_over_master(self)
        self._name_entry.focus_set()

    def _label(self, text, row, top=4):
        ctk.CTkLabel(self, text=text).grid(
            row=row, column=0, padx=(16, 8), pady=(top, 4), sticky="e"
        )

    def _on_save(self):
        account_type = self._LABEL_TO_KEY.get(self._type_var.get(), "cash")
        try:
            if self._account:
                self._svc.update(
                    self._account.id, self._owner_id,
                    name=self._name_var.get(),
                    account_type=account_type,
                    currency=self._currency_var.get(),
                    is_default=self._default_var.get(),
                )
            else:
                self._svc.create(
                    self._owner_id,
                    self._name_var.get(),
                    account_type=account_type,
                    opening_balance=self._ob_var.get(),
                    currency=self._currency_var.get(),
                    is_default=self._default_var.get(),
                )
            self.saved = True
            self.destroy()
        except LedgerError as e:
            self._error_var.set(str(e))

    def _on_deactivate_click(self):
        dlg = ConfirmDialog(
            self,
            "Deactivate Account",
            f"Deactivate '{self._account.name}'? Its balance and history are kept, "
            "but it will no longer appear in account lists.",
            confirm_text="Deactivate",
        )
        if not dlg.result:
            return
        try:
            self._svc.deactivate(self._account.id, self._owner_id)
            self.saved = True
            if self._on_deactivate:
                self._on_deactivate()
            self.destroy()
        except LedgerError as e:
            self._error_var.set(str(e))
