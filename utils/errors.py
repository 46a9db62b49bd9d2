"""Typed failures raised by the ledger core.

Every mutating call either returns the created/updated record or raises one of these.
"""


class LedgerError(Exception):
    """Base class for all ledger failures."""


class ValidationError(LedgerError, ValueError):
    """Input rejected before any write was attempted."""


class InvalidAmount(ValidationError):
    pass


class InsufficientBalance(ValidationError):
    def __init__(self, account_id, balance, amount):
        super().__init__(
            f"Insufficient balance in account {account_id}: "
            f"available {balance}, requested {amount}."
        )
        self.account_id = account_id
        self.balance = balance
        self.amount = amount


class SameAccountTransfer(ValidationError):
    pass


class CurrencyMismatch(ValidationError):
    pass


class InvalidCategoryType(ValidationError):
    pass


class NotFound(LedgerError):
    pass


class AccountNotFound(NotFound):
    pass


class TransactionNotFound(NotFound):
    pass


class CategoryNotFound(NotFound):
    pass


class Forbidden(LedgerError):
    pass


class ImmutableTransaction(LedgerError):
    pass


class SystemCategoryProtected(LedgerError):
    pass


class StorageFailure(LedgerError):
    """The underlying store failed; the unit of work was rolled back."""
