from decimal import Decimal

import structlog

from database.db_manager import DatabaseManager
from database.account_dao import AccountDAO, UPDATABLE_FIELDS
from database.transaction_dao import TransactionDAO
from models.account import Account, ACCOUNT_TYPES
from utils.constants import (
    DEFAULT_CURRENCY, OPENING_BALANCE_CATEGORY, OPENING_BALANCE_DESCRIPTION,
)
from utils.currency import to_decimal
from utils.date_helpers import today_str
from utils.errors import AccountNotFound, Forbidden, InvalidAmount, ValidationError

log = structlog.get_logger(__name__)


class AccountService:
    def __init__(self, db: DatabaseManager, account_dao: AccountDAO, tx_dao: TransactionDAO):
        self._db = db
        self._dao = account_dao
        self._tx_dao = tx_dao

    def get_all(self, owner_id: str) -> list[Account]:
        """Active accounts, default first then newest."""
        return self._dao.get_active_by_owner(owner_id)

    def get_by_id(self, account_id: int) -> Account | None:
        return self._dao.get_by_id(account_id)

    def get_default(self, owner_id: str) -> Account | None:
        return self._dao.get_default(owner_id)

    def get_owned(self, account_id: int, owner_id: str) -> Account:
        account = self._dao.get_by_id(account_id)
        if account is None:
            raise AccountNotFound(f"Account {account_id} not found.")
        if account.owner_id != owner_id:
            raise Forbidden(f"Not authorized to access account {account_id}.")
        return account

    def get_total_balance(self, owner_id: str) -> Decimal:
        return self._dao.get_total_balance(owner_id)

    def create(
        self,
        owner_id: str,
        name: str,
        account_type: str = "cash",
        opening_balance=Decimal("0"),
        currency: str = DEFAULT_CURRENCY,
        is_default: bool = False,
    ) -> Account:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Account name is required.")
        self._validate_type(account_type)
        opening = to_decimal(opening_balance if opening_balance is not None else 0)
        if opening is None or opening < 0:
            raise InvalidAmount("Opening balance must be a number, 0 or greater.")
        currency = (currency or DEFAULT_CURRENCY).strip().upper()

        with self._db.transaction():
            if is_default:
                self._dao.clear_default(owner_id)
            account = self._dao.create(
                owner_id, name, account_type, opening, currency, is_default
            )
            if opening > 0:
                self._tx_dao.create(
                    owner_id=owner_id,
                    account_id=account.id,
                    type_="opening_balance",
                    category=OPENING_BALANCE_CATEGORY,
                    amount=opening,
                    balance_after=opening,
                    transaction_date=today_str(),
                    description=OPENING_BALANCE_DESCRIPTION,
                )

        log.info(
            "account_created",
            account_id=account.id, owner_id=owner_id,
            opening_balance=str(opening), is_default=is_default,
        )
        return account

    def update(self, account_id: int, owner_id: str, **fields) -> Account:
        """Partial update. Balances are not editable here."""
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if "opening_balance" in unknown:
            raise ValidationError("Opening balance cannot be changed after creation.")
        if unknown:
            raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}.")

        if "name" in fields:
            fields["name"] = (fields["name"] or "").strip()
            if not fields["name"]:
                raise ValidationError("Account name cannot be empty.")
        if "account_type" in fields:
            self._validate_type(fields["account_type"])
        if "currency" in fields:
            fields["currency"] = (fields["currency"] or "").strip().upper()
            if not fields["currency"]:
                raise ValidationError("Currency cannot be empty.")

        with self._db.transaction():
            account = self.get_owned(account_id, owner_id)
            if fields.get("is_active") is False:
                fields["is_default"] = False
            if fields.get("is_default"):
                if not fields.get("is_active", account.is_active):
                    raise ValidationError("An inactive account cannot be the default.")
                self._dao.clear_default(owner_id, except_id=account_id)
            account = self._dao.update(account_id, fields)

        log.info("account_updated", account_id=account_id, fields=sorted(fields))
        return account

    def set_default(self, account_id: int, owner_id: str) -> Account:
        return self.update(account_id, owner_id, is_default=True)

    def deactivate(self, account_id: int, owner_id: str) -> Account:
        """Hide the account; its balance and history are kept as they are."""
        with self._db.transaction():
            self.get_owned(account_id, owner_id)
            account = self._dao.update(account_id, {"is_active": False, "is_default": False})
        log.info("account_deactivated", account_id=account_id, owner_id=owner_id)
        return account

    # ── Helpers ──────────────────────────────────────────────────────────────

    @staticmethod
    def _validate_type(account_type: str):
        if account_type not in ACCOUNT_TYPES:
            raise ValidationError(
                f"Invalid account type '{account_type}'. "
                f"Must be one of: {', '.join(ACCOUNT_TYPES)}."
            )
