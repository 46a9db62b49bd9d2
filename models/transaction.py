from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

TRANSACTION_TYPES = ("income", "expense", "transfer_in", "transfer_out", "opening_balance")
CREDIT_TYPES = ("income", "transfer_in", "opening_balance")

TRANSACTION_TYPE_LABELS = {
    "income": "Income",
    "expense": "Expense",
    "transfer_in": "Transfer In",
    "transfer_out": "Transfer Out",
    "opening_balance": "Opening",
}


def is_credit(type_: str) -> bool:
    """True when a transaction of this type increases the account balance."""
    return type_ in CREDIT_TYPES


@dataclass
class Transaction:
    id: int
    owner_id: str
    account_id: int
    type: str                # one of TRANSACTION_TYPES
    category: str
    amount: Decimal          # always positive
    balance_after: Decimal   # snapshot taken when posted; never rewritten
    transaction_date: str    # 'YYYY-MM-DD' business date
    description: str = ""
    reference_number: Optional[str] = None
    payment_method: Optional[str] = None
    related_transaction_id: Optional[int] = None
    bill_id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""

    @property
    def is_credit(self) -> bool:
        return is_credit(self.type)

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.is_credit else -self.amount

    @property
    def is_transfer(self) -> bool:
        return self.type in ("transfer_in", "transfer_out")
