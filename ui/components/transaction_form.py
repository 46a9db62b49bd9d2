import customtkinter as ctk
from services.transaction_service import TransactionService
from services.account_service import AccountService
from services.category_service import CategoryService
from ui.components.confirm_dialog import center_over_master
from ui.components.date_picker import DatePickerWidget
from utils.date_helpers import today_str
from utils.errors import LedgerError


class TransactionForm(ctk.CTkToplevel):
    """Post an income, an expense or a transfer. Posted rows are never edited."""

    _last_date: str = today_str()  # reset to today on each app launch

    def __init__(
        self,
        master,
        tx_service: TransactionService,
        account_service: AccountService,
        category_service: CategoryService,
        owner_id: str,
        current_account_id: int,
        initial_type: str = "expense",
        date_format: str = "DD/MM/YYYY",
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._tx_svc = tx_service
        self._cat_svc = category_service
        self._owner_id = owner_id
        self._current_account_id = current_account_id
        self._date_format = date_format
        self._is_transfer = initial_type == "transfer"
        self.saved = False

        self.title(f"Add {initial_type.title()}")
        self.resizable(False, False)
        self.grid_columnconfigure(1, weight=1)

        self._accounts = account_service.get_all(owner_id)

        if self._is_transfer:
            r = self._build_transfer_fields()
        else:
            r = self._build_standard_fields(initial_type)
        self._build_footer(r)

        self.transient(master)
        self.grab_set()
        center_over_master(self)

    def _label(self, text, row):
        ctk.CTkLabel(self, text=text).grid(
            row=row, column=0, padx=(16, 8), pady=4, sticky="e"
        )

    def _entry(self, row, value="") -> ctk.StringVar:
        var = ctk.StringVar(value=value)
        ctk.CTkEntry(self, textvariable=var, width=220).grid(
            row=row, column=1, padx=(0, 16), pady=4, sticky="ew"
        )
        return var

    def _date_row(self, row):
        self._label("Date:", row)
        self._date_picker = DatePickerWidget(
            self, initial_date=TransactionForm._last_date, date_format=self._date_format,
        )
        self._date_picker.grid(row=row, column=1, padx=(0, 16), pady=4, sticky="w")

    def _build_standard_fields(self, type_: str) -> int:
        r = 0
        self._label("Type:", r)
        self._type_var = ctk.StringVar(value=type_)
        type_frame = ctk.CTkFrame(self, fg_color="transparent")
        type_frame.grid(row=r, column=1, padx=(0, 16), pady=(12, 4), sticky="w")
        for t in ("income", "expense"):
            ctk.CTkRadioButton(
                type_frame, text=t.title(), variable=self._type_var, value=t,
                command=self._on_type_change,
            ).pack(side="left", padx=4)
        r += 1

        self._label("Amount:", r)
        self._amount_var = self._entry(r)
        r += 1

        self._date_row(r)
        r += 1

        self._label("Category:", r)
        self._cat_var = ctk.StringVar()
        self._cat_combo = ctk.CTkComboBox(self, variable=self._cat_var, width=220)
        self._cat_combo.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        self._on_type_change()
        r += 1

        self._label("Description:", r)
        self._desc_var = self._entry(r)
        r += 1

        self._label("Reference #:", r)
        self._ref_var = self._entry(r)
        r += 1

        self._label("Payment Method:", r)
        self._method_var = ctk.StringVar(value="")
        ctk.CTkComboBox(
            self, values=["", "cash", "card", "upi", "bank_transfer", "cheque"],
            variable=self._method_var, width=220,
        ).grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        return r + 1

    def _build_transfer_fields(self) -> int:
        r = 0
        names = [a.name for a in self._accounts]
        current = next((a.name for a in self._accounts if a.id == self._current_account_id), "")
        others = [n for n in names if n != current]

        self._label("From Account:", r)
        self._from_var = ctk.StringVar(value=current)
        ctk.CTkComboBox(
            self, values=names, variable=self._from_var, width=220, state="readonly"
        ).grid(row=r, column=1, padx=(0, 16), pady=(12, 4), sticky="ew")
        r += 1

        self._label("To Account:", r)
        self._to_var = ctk.StringVar(value=others[0] if others else "")
        ctk.CTkComboBox(
            self, values=names, variable=self._to_var, width=220, state="readonly"
        ).grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._label("Amount:", r)
        self._amount_var = self._entry(r)
        r += 1

        self._date_row(r)
        r += 1

        self._label("Description:", r)
        self._desc_var = self._entry(r)
        return r + 1

    def _build_footer(self, r):
        self._error_var = ctk.StringVar()
        ctk.CTkLabel(
            self, textvariable=self._error_var,
            text_color="#F44336", wraplength=300, anchor="w"
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
        ctk.CTkButton(
            buttons, text="Save Transfer" if self._is_transfer else "Save", width=110,
            command=self._on_save,
        ).pack(side="right")

    def _on_type_change(self):
        names = self._cat_svc.get_names(self._owner_id, self._type_var.get())
        self._cat_combo.configure(values=names)
        self._cat_var.set(names[0] if names else "")

    def _account_id(self, name: str) -> int | None:
        return next((a.id for a in self._accounts if a.name == name), None)

    def _on_save(self):
        if not self._date_picker.is_valid():
            self._error_var.set("Invalid date.")
            return
        date_str = self._date_picker.get()

        try:
            if self._is_transfer:
                from_id = self._account_id(self._from_var.get())
                to_id = self._account_id(self._to_var.get())
                if from_id is None or to_id is None:
                    self._error_var.set("Please select both accounts.")
                    return
                self._tx_svc.create_transfer(
                    self._owner_id, from_id, to_id, self._amount_var.get(),
                    description=self._desc_var.get(), date=date_str,
                )
            else:
                self._tx_svc.create_transaction(
                    owner_id=self._owner_id,
                    account_id=self._current_account_id,
                    type_=self._type_var.get(),
                    category=self._cat_var.get(),
                    amount=self._amount_var.get(),
                    date=date_str,
                    description=self._desc_var.get(),
                    reference_number=self._ref_var.get().strip() or None,
                    payment_method=self._method_var.get().strip() or None,
                )
            TransactionForm._last_date = date_str
            self.saved = True
            self.destroy()
        except LedgerError as e:
            self._error_var.set(str(e))
