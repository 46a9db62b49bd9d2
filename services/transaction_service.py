"""Ledger engine: posts, transfers and reverses transactions.

Every balance-affecting call runs as a single unit of work on the DatabaseManager.
The account row is read inside that unit of work, the transaction row is written
with its balance_after snapshot, and the account balance is moved by the same
amount; either all of it commits or none of it does.

Deleting a transaction only reverses its own effect on current_balance. The
balance_after snapshots of later rows on the same account are left as posted.
"""
from decimal import Decimal

import structlog

from database.db_manager import DatabaseManager
from database.account_dao import AccountDAO
from database.transaction_dao import TransactionDAO
from models.account import Account
from models.transaction import Transaction, TRANSACTION_TYPES, is_credit
from utils.constants import BILL_PAYMENT_CATEGORY, DEFAULT_PAGE_SIZE, TRANSFER_CATEGORY
from utils.currency import to_decimal
from utils.date_helpers import coerce_date_str, today_str
from utils.errors import (
    AccountNotFound, CurrencyMismatch, Forbidden, ImmutableTransaction,
    InsufficientBalance, InvalidAmount, SameAccountTransfer,
    TransactionNotFound, ValidationError,
)

log = structlog.get_logger(__name__)


class TransactionService:
    def __init__(self, db: DatabaseManager, tx_dao: TransactionDAO, account_dao: AccountDAO):
        self._db = db
        self._dao = tx_dao
        self._account_dao = account_dao

    # ── Read side ────────────────────────────────────────────────────────────

    def get_by_id(self, tx_id: int, owner_id: str) -> Transaction:
        tx = self._dao.get_by_id(tx_id)
        if tx is None:
            raise TransactionNotFound(f"Transaction {tx_id} not found.")
        if tx.owner_id != owner_id:
            raise Forbidden(f"Not authorized to access transaction {tx_id}.")
        return tx

    def get_transactions(
        self,
        owner_id: str,
        account_id: int | None = None,
        type_filter: str | None = None,
        category: str | None = None,
        start_date=None,
        end_date=None,
        limit: int | None = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[Transaction]:
        start = self._optional_date(start_date, "start date")
        end = self._optional_date(end_date, "end date")
        if limit is not None and limit < 0:
            raise ValidationError("Limit cannot be negative.")
        if offset < 0:
            raise ValidationError("Offset cannot be negative.")
        return self._dao.search(
            owner_id, account_id, type_filter, category, start, end, limit, offset
        )

    def get_counterpart(self, tx: Transaction) -> Transaction | None:
        """The other leg of a transfer, if it still exists."""
        if tx.related_transaction_id is None:
            return None
        return self._dao.get_by_id(tx.related_transaction_id)

    def derive_balance(self, account_id: int) -> Decimal:
        """Balance recomputed from history: opening balance + Σ signed non-opening rows."""
        account = self._account_dao.get_by_id(account_id)
        if account is None:
            raise AccountNotFound(f"Account {account_id} not found.")
        return account.opening_balance + self._dao.get_signed_total(
            account_id, exclude_opening=True
        )

    def reconcile(self, owner_id: str, account_id: int) -> dict:
        """Compare the stored running balance with the one derived from history."""
        account = self._owned_account(self._account_dao.get_by_id(account_id), account_id, owner_id)
        derived = self.derive_balance(account_id)
        drift = account.current_balance - derived
        if drift:
            log.warning(
                "balance_drift_detected",
                account_id=account_id, stored=str(account.current_balance),
                derived=str(derived),
            )
        return {
            "account_id": account_id,
            "stored": account.current_balance,
            "derived": derived,
            "drift": drift,
            "in_balance": drift == 0,
        }

    # ── Posting ──────────────────────────────────────────────────────────────

    def create_transaction(
        self,
        owner_id: str,
        account_id: int,
        type_: str,
        category: str,
        amount,
        date=None,
        description: str = "",
        reference_number: str | None = None,
        payment_method: str | None = None,
        bill_id: int | None = None,
    ) -> Transaction:
        amount = self._validate_amount(amount)
        if type_ not in TRANSACTION_TYPES:
            raise ValidationError(
                f"Invalid transaction type '{type_}'. "
                f"Must be one of: {', '.join(TRANSACTION_TYPES)}."
            )
        if type_ == "opening_balance":
            raise ValidationError(
                "Opening balance transactions are posted when the account is created."
            )
        category = (category or "").strip()
        if not category:
            raise ValidationError("Category is required.")
        tx_date = self._required_date(date)

        with self._db.transaction():
            account = self._load_for_posting(account_id, owner_id)
            tx = self._post(
                account, type_, category, amount, tx_date,
                description=(description or "").strip(),
                reference_number=reference_number,
                payment_method=payment_method,
                bill_id=bill_id,
            )

        log.info(
            "transaction_posted",
            tx_id=tx.id, account_id=account_id, type=type_,
            amount=str(amount), balance_after=str(tx.balance_after),
        )
        return tx

    def create_transfer(
        self,
        owner_id: str,
        from_account_id: int,
        to_account_id: int,
        amount,
        description: str = "",
        date=None,
    ) -> tuple[Transaction, Transaction]:
        """Move money between two of the owner's accounts as a linked pair of legs."""
        if from_account_id == to_account_id:
            raise SameAccountTransfer("Cannot transfer to the same account.")
        amount = self._validate_amount(amount)
        tx_date = self._required_date(date)
        description = (description or "").strip()

        with self._db.transaction():
            source = self._load_for_posting(from_account_id, owner_id)
            dest = self._load_for_posting(to_account_id, owner_id)
            # ids may arrive as "1" and 1; compare the loaded rows
            if source.id == dest.id:
                raise SameAccountTransfer("Cannot transfer to the same account.")
            if source.currency != dest.currency:
                raise CurrencyMismatch(
                    f"Cannot transfer between {source.currency} and {dest.currency} accounts."
                )

            out_leg = self._post(
                source, "transfer_out", TRANSFER_CATEGORY, amount, tx_date,
                description=description or f"Transfer to {dest.name}",
            )
            in_leg = self._post(
                dest, "transfer_in", TRANSFER_CATEGORY, amount, tx_date,
                description=description or f"Transfer from {source.name}",
                related_transaction_id=out_leg.id,
            )
            self._dao.set_related(out_leg.id, in_leg.id)
            out_leg = self._dao.get_by_id(out_leg.id)

        log.info(
            "transfer_posted",
            out_tx_id=out_leg.id, in_tx_id=in_leg.id,
            from_account_id=from_account_id, to_account_id=to_account_id,
            amount=str(amount),
        )
        return out_leg, in_leg

    def record_bill_payment(
        self,
        owner_id: str,
        bill_id: int,
        invoice_number: str,
        amount,
        payment_method: str | None = None,
        account_id: int | None = None,
        date=None,
    ) -> Transaction:
        """Book a paid bill as income on the given account or the owner's default."""
        if account_id is None:
            default = self._account_dao.get_default(owner_id)
            if default is None:
                raise AccountNotFound("No default account configured.")
            account_id = default.id
        return self.create_transaction(
            owner_id=owner_id,
            account_id=account_id,
            type_="income",
            category=BILL_PAYMENT_CATEGORY,
            amount=amount,
            date=date,
            description=f"Bill payment - {invoice_number}",
            reference_number=invoice_number,
            payment_method=payment_method,
            bill_id=bill_id,
        )

    # ── Reversal ─────────────────────────────────────────────────────────────

    def delete_transaction(self, tx_id: int, owner_id: str) -> Account:
        """Remove a transaction and undo its effect on the account balance.

        Returns the account as it stands after the reversal. The paired leg of a
        transfer is not touched; its related_transaction_id becomes NULL.
        """
        with self._db.transaction():
            tx = self.get_by_id(tx_id, owner_id)
            if tx.type == "opening_balance":
                raise ImmutableTransaction("Cannot delete an opening balance transaction.")
            account = self._account_dao.get_for_update(tx.account_id)
            if account is None:
                raise AccountNotFound(f"Account {tx.account_id} not found.")
            new_balance = self._account_dao.apply_delta(
                account.id, tx.amount, credit=not tx.is_credit
            )
            self._dao.delete(tx.id)
            account = self._account_dao.get_by_id(account.id)

        log.info(
            "transaction_reversed",
            tx_id=tx_id, account_id=account.id, type=tx.type,
            amount=str(tx.amount), new_balance=str(new_balance),
        )
        return account

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _post(
        self,
        account: Account,
        type_: str,
        category: str,
        amount: Decimal,
        tx_date: str,
        **extra,
    ) -> Transaction:
        """Write one row and move the balance. Caller holds the unit of work."""
        credit = is_credit(type_)
        if not credit and amount > account.current_balance:
            log.warning(
                "insufficient_balance",
                account_id=account.id, balance=str(account.current_balance),
                amount=str(amount), type=type_,
            )
            raise InsufficientBalance(account.id, account.current_balance, amount)
        new_balance = account.current_balance + amount if credit else account.current_balance - amount

        tx = self._dao.create(
            owner_id=account.owner_id,
            account_id=account.id,
            type_=type_,
            category=category,
            amount=amount,
            balance_after=new_balance,
            transaction_date=tx_date,
            **extra,
        )
        stored = self._account_dao.apply_delta(account.id, amount, credit)
        account.current_balance = stored
        return tx

    def _load_for_posting(self, account_id: int, owner_id: str) -> Account:
        account = self._account_dao.get_for_update(account_id)
        if account is None or account.owner_id != owner_id or not account.is_active:
            raise AccountNotFound(f"Account {account_id} not found.")
        return account

    @staticmethod
    def _owned_account(account: Account | None, account_id: int, owner_id: str) -> Account:
        if account is None:
            raise AccountNotFound(f"Account {account_id} not found.")
        if account.owner_id != owner_id:
            raise Forbidden(f"Not authorized to access account {account_id}.")
        return account

    @staticmethod
    def _validate_amount(amount) -> Decimal:
        value = to_decimal(amount)
        if value is None or value <= 0:
            raise InvalidAmount("Amount must be greater than 0.")
        return value

    @staticmethod
    def _required_date(value) -> str:
        if value is None or value == "":
            return today_str()
        date_str = coerce_date_str(value)
        if date_str is None:
            raise ValidationError("Invalid date format. Use YYYY-MM-DD.")
        return date_str

    @staticmethod
    def _optional_date(value, label: str) -> str | None:
        if value is None or value == "":
            return None
        date_str = coerce_date_str(value)
        if date_str is None:
            raise ValidationError(f"Invalid {label}. Use YYYY-MM-DD.")
        return date_str
