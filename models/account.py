from dataclasses import dataclass
from decimal import Decimal

ACCOUNT_TYPES = ("cash", "bank", "digital_wallet")

ACCOUNT_TYPE_LABELS = {
    "cash": "Cash",
    "bank": "Bank",
    "digital_wallet": "Digital Wallet",
}


@dataclass
class Account:
    id: int
    owner_id: str
    name: str
    account_type: str = "cash"
    opening_balance: Decimal = Decimal("0.00")   # fixed at creation
    current_balance: Decimal = Decimal("0.00")   # authoritative running total
    currency: str = "INR"
    is_active: bool = True
    is_default: bool = False
    created_at: str = ""
    updated_at: str = ""

    @property
    def type_label(self) -> str:
        return ACCOUNT_TYPE_LABELS.get(self.account_type, self.account_type)
