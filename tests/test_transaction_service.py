import sqlite3
import threading
from datetime import date
from decimal import Decimal

import pytest

from utils.errors import (
    AccountNotFound, CurrencyMismatch, Forbidden, ImmutableTransaction,
    InsufficientBalance, InvalidAmount, SameAccountTransfer, StorageFailure,
    TransactionNotFound, ValidationError,
)

OWNER = "shopkeeper"
OTHER_OWNER = "intruder"


def assert_balanced(ledger, accounts, account_id):
    account = accounts.get_by_id(account_id)
    assert account.current_balance == ledger.derive_balance(account_id)


class TestCreateTransaction:
    def test_income_increases_balance(self, ledger, accounts, cash):
        tx = ledger.create_transaction(OWNER, cash.id, "income", "Sales", "250.75", date="2024-03-01")
        assert tx.balance_after == Decimal("1250.75")
        assert tx.transaction_date == "2024-03-01"
        assert accounts.get_by_id(cash.id).current_balance == Decimal("1250.75")
        assert_balanced(ledger, accounts, cash.id)

    def test_expense_decreases_balance(self, ledger, accounts, cash):
        tx = ledger.create_transaction(
            OWNER, cash.id, "expense", "Rent", Decimal("300"),
            description="  March rent ", reference_number="R-1", payment_method="cash",
        )
        assert tx.balance_after == Decimal("700.00")
        assert tx.description == "March rent"
        assert tx.reference_number == "R-1"
        assert_balanced(ledger, accounts, cash.id)

    def test_date_defaults_to_today(self, ledger, cash):
        tx = ledger.create_transaction(OWNER, cash.id, "income", "Sales", "1")
        assert tx.transaction_date == date.today().isoformat()

    def test_date_object_accepted(self, ledger, cash):
        tx = ledger.create_transaction(OWNER, cash.id, "income", "Sales", "1", date=date(2024, 1, 31))
        assert tx.transaction_date == "2024-01-31"

    def test_amount_rounds_half_up(self, ledger, cash):
        tx = ledger.create_transaction(OWNER, cash.id, "income", "Sales", "0.005")
        assert tx.amount == Decimal("0.01")

    @pytest.mark.parametrize("amount", ["0", "-10", "abc", None, "NaN"])
    def test_bad_amounts_rejected(self, ledger, cash, amount):
        with pytest.raises(InvalidAmount):
            ledger.create_transaction(OWNER, cash.id, "income", "Sales", amount)

    def test_unknown_type_rejected(self, ledger, cash):
        with pytest.raises(ValidationError):
            ledger.create_transaction(OWNER, cash.id, "refund", "Sales", "10")

    def test_opening_balance_type_rejected(self, ledger, accounts, tx_dao):
        drawer = accounts.create(OWNER, "Drawer")
        with pytest.raises(ValidationError, match="Opening balance"):
            ledger.create_transaction(OWNER, drawer.id, "opening_balance", "Opening Balance", "100")
        assert tx_dao.get_by_account(drawer.id) == []
        assert ledger.reconcile(OWNER, drawer.id)["in_balance"] is True

    def test_blank_category_rejected(self, ledger, cash):
        with pytest.raises(ValidationError):
            ledger.create_transaction(OWNER, cash.id, "income", "  ", "10")

    def test_bad_date_rejected(self, ledger, cash):
        with pytest.raises(ValidationError):
            ledger.create_transaction(OWNER, cash.id, "income", "Sales", "10", date="31/01/2024")

    def test_insufficient_balance_leaves_no_trace(self, ledger, accounts, tx_dao, cash):
        with pytest.raises(InsufficientBalance) as excinfo:
            ledger.create_transaction(OWNER, cash.id, "expense", "Rent", "1000.01")
        assert excinfo.value.balance == Decimal("1000.00")
        assert excinfo.value.amount == Decimal("1000.01")
        assert accounts.get_by_id(cash.id).current_balance == Decimal("1000.00")
        assert len(tx_dao.get_by_account(cash.id)) == 1

    def test_spending_exact_balance_allowed(self, ledger, cash):
        tx = ledger.create_transaction(OWNER, cash.id, "expense", "Rent", "1000")
        assert tx.balance_after == Decimal("0.00")

    def test_other_owner_sees_account_as_missing(self, ledger, cash):
        with pytest.raises(AccountNotFound):
            ledger.create_transaction(OTHER_OWNER, cash.id, "income", "Sales", "10")

    def test_inactive_account_rejects_postings(self, ledger, accounts, cash):
        accounts.deactivate(cash.id, OWNER)
        with pytest.raises(AccountNotFound):
            ledger.create_transaction(OWNER, cash.id, "income", "Sales", "10")

    def test_balance_after_is_running_snapshot(self, ledger, tx_dao, cash):
        ledger.create_transaction(OWNER, cash.id, "income", "Sales", "100")
        ledger.create_transaction(OWNER, cash.id, "expense", "Supplies", "40")
        ledger.create_transaction(OWNER, cash.id, "income", "Services", "15.50")
        snapshots = [t.balance_after for t in tx_dao.get_by_account(cash.id)]
        assert snapshots == [
            Decimal("1000.00"), Decimal("1100.00"), Decimal("1060.00"), Decimal("1075.50"),
        ]


class TestTransfer:
    def test_transfer_moves_money_and_links_legs(self, ledger, accounts, cash):
        bank = accounts.create(OWNER, "Bank", account_type="bank")
        out_leg, in_leg = ledger.create_transfer(OWNER, cash.id, bank.id, "200")

        assert out_leg.type == "transfer_out"
        assert in_leg.type == "transfer_in"
        assert out_leg.related_transaction_id == in_leg.id
        assert in_leg.related_transaction_id == out_leg.id
        assert out_leg.category == in_leg.category == "Transfer"
        assert out_leg.description == "Transfer to Bank"
        assert in_leg.description == "Transfer from Cash"
        assert out_leg.balance_after == Decimal("800.00")
        assert in_leg.balance_after == Decimal("200.00")
        assert ledger.get_counterpart(out_leg).id == in_leg.id
        assert accounts.get_total_balance(OWNER) == Decimal("1000.00")

    def test_same_account_rejected_before_amount_check(self, ledger, cash):
        with pytest.raises(SameAccountTransfer):
            ledger.create_transfer(OWNER, cash.id, cash.id, "-1")

    def test_same_account_rejected_when_ids_differ_in_type(self, ledger, accounts, tx_dao, cash):
        with pytest.raises(SameAccountTransfer):
            ledger.create_transfer(OWNER, str(cash.id), cash.id, "10")
        assert len(tx_dao.get_by_account(cash.id)) == 1
        assert accounts.get_by_id(cash.id).current_balance == Decimal("1000.00")

    def test_insufficient_source_posts_nothing(self, ledger, accounts, tx_dao, cash):
        bank = accounts.create(OWNER, "Bank")
        with pytest.raises(InsufficientBalance):
            ledger.create_transfer(OWNER, cash.id, bank.id, "5000")
        assert tx_dao.get_by_account(bank.id) == []
        assert accounts.get_by_id(cash.id).current_balance == Decimal("1000.00")

    def test_currency_mismatch_rejected(self, ledger, accounts, cash):
        euro = accounts.create(OWNER, "Euro", currency="EUR")
        with pytest.raises(CurrencyMismatch):
            ledger.create_transfer(OWNER, cash.id, euro.id, "10")

    def test_destination_must_belong_to_owner(self, ledger, accounts, cash):
        theirs = accounts.create(OTHER_OWNER, "Theirs")
        with pytest.raises(AccountNotFound):
            ledger.create_transfer(OWNER, cash.id, theirs.id, "10")
        assert accounts.get_by_id(cash.id).current_balance == Decimal("1000.00")

    def test_storage_failure_mid_transfer_rolls_back_both_legs(
        self, ledger, accounts, tx_dao, cash, monkeypatch
    ):
        bank = accounts.create(OWNER, "Bank")

        def broken_set_related(tx_id, related_id):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(tx_dao, "set_related", broken_set_related)
        with pytest.raises(StorageFailure):
            ledger.create_transfer(OWNER, cash.id, bank.id, "200")

        assert accounts.get_by_id(cash.id).current_balance == Decimal("1000.00")
        assert accounts.get_by_id(bank.id).current_balance == Decimal("0.00")
        assert len(tx_dao.get_by_account(cash.id)) == 1
        assert tx_dao.get_by_account(bank.id) == []


class TestDelete:
    def test_delete_reverses_expense(self, ledger, accounts, tx_dao, cash):
        tx = ledger.create_transaction(OWNER, cash.id, "expense", "Rent", "300")
        account = ledger.delete_transaction(tx.id, OWNER)
        assert account.current_balance == Decimal("1000.00")
        assert tx_dao.get_by_id(tx.id) is None
        assert_balanced(ledger, accounts, cash.id)

    def test_delete_reverses_income(self, ledger, cash):
        tx = ledger.create_transaction(OWNER, cash.id, "income", "Sales", "50")
        assert ledger.delete_transaction(tx.id, OWNER).current_balance == Decimal("1000.00")

    def test_opening_balance_cannot_be_deleted(self, ledger, tx_dao, cash):
        opening = tx_dao.get_by_account(cash.id)[0]
        with pytest.raises(ImmutableTransaction):
            ledger.delete_transaction(opening.id, OWNER)

    def test_missing_and_foreign_transactions(self, ledger, cash):
        tx = ledger.create_transaction(OWNER, cash.id, "income", "Sales", "50")
        with pytest.raises(TransactionNotFound):
            ledger.delete_transaction(9999, OWNER)
        with pytest.raises(Forbidden):
            ledger.delete_transaction(tx.id, OTHER_OWNER)

    def test_deleting_one_transfer_leg_unlinks_the_other(self, ledger, accounts, cash):
        bank = accounts.create(OWNER, "Bank")
        out_leg, in_leg = ledger.create_transfer(OWNER, cash.id, bank.id, "200")
        ledger.delete_transaction(in_leg.id, OWNER)
        assert accounts.get_by_id(bank.id).current_balance == Decimal("0.00")
        survivor = ledger.get_by_id(out_leg.id, OWNER)
        assert survivor.related_transaction_id is None
        assert ledger.get_counterpart(survivor) is None

    def test_walkthrough_open_spend_transfer_delete(self, ledger, accounts, tx_dao):
        a = accounts.create(OWNER, "A", opening_balance="1000")
        b = accounts.create(OWNER, "B")

        expense = ledger.create_transaction(OWNER, a.id, "expense", "Rent", "300")
        assert expense.balance_after == Decimal("700.00")

        ledger.create_transfer(OWNER, a.id, b.id, "200")
        assert accounts.get_by_id(a.id).current_balance == Decimal("500.00")
        assert accounts.get_by_id(b.id).current_balance == Decimal("200.00")
        assert [t.type for t in tx_dao.get_by_account(a.id)] == [
            "opening_balance", "expense", "transfer_out",
        ]

        ledger.delete_transaction(expense.id, OWNER)
        assert accounts.get_by_id(a.id).current_balance == Decimal("800.00")
        # later snapshots are left as posted
        assert tx_dao.get_by_account(a.id)[-1].balance_after == Decimal("500.00")
        assert_balanced(ledger, accounts, a.id)


class TestConcurrency:
    def test_concurrent_debits_never_overdraw(self, ledger, accounts):
        till = accounts.create(OWNER, "Till", opening_balance="500")
        results = []
        lock = threading.Lock()

        def spend():
            try:
                ledger.create_transaction(OWNER, till.id, "expense", "Supplies", "100")
                outcome = "ok"
            except InsufficientBalance:
                outcome = "rejected"
            with lock:
                results.append(outcome)

        threads = [threading.Thread(target=spend) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count("ok") == 5
        assert results.count("rejected") == 5
        assert accounts.get_by_id(till.id).current_balance == Decimal("0.00")
        assert_balanced(ledger, accounts, till.id)


class TestQueries:
    def test_filters_and_ordering(self, ledger, accounts, cash):
        bank = accounts.create(OWNER, "Bank")
        ledger.create_transaction(OWNER, cash.id, "income", "Sales", "10", date="2024-01-05")
        ledger.create_transaction(OWNER, cash.id, "expense", "Rent", "20", date="2024-02-05")
        ledger.create_transaction(OWNER, cash.id, "income", "Services", "30", date="2024-03-05")
        ledger.create_transfer(OWNER, cash.id, bank.id, "5", date="2024-03-06")

        in_range = ledger.get_transactions(
            OWNER, account_id=cash.id, start_date="2024-01-01", end_date="2024-03-05",
        )
        assert [t.transaction_date for t in in_range] == ["2024-03-05", "2024-02-05", "2024-01-05"]

        income = ledger.get_transactions(OWNER, type_filter="income")
        assert {t.category for t in income} == {"Sales", "Services"}

        transfers = ledger.get_transactions(OWNER, type_filter="transfer")
        assert {t.type for t in transfers} == {"transfer_in", "transfer_out"}

        by_category = ledger.get_transactions(OWNER, category="Rent")
        assert [t.amount for t in by_category] == [Decimal("20.00")]

    def test_pagination(self, ledger, accounts):
        drawer = accounts.create(OWNER, "Drawer")
        for day in range(1, 6):
            ledger.create_transaction(OWNER, drawer.id, "income", "Sales", "1", date=f"2024-01-0{day}")
        page = ledger.get_transactions(OWNER, account_id=drawer.id, limit=2, offset=1)
        assert [t.transaction_date for t in page] == ["2024-01-04", "2024-01-03"]

    def test_negative_paging_rejected(self, ledger):
        with pytest.raises(ValidationError):
            ledger.get_transactions(OWNER, limit=-1)
        with pytest.raises(ValidationError):
            ledger.get_transactions(OWNER, offset=-1)

    def test_other_owner_rows_not_returned(self, ledger, accounts, cash):
        theirs = accounts.create(OTHER_OWNER, "Theirs", opening_balance="5")
        ledger.create_transaction(OTHER_OWNER, theirs.id, "income", "Sales", "1")
        assert all(t.owner_id == OWNER for t in ledger.get_transactions(OWNER))


class TestBillPayment:
    def test_bill_payment_lands_on_default_account(self, ledger, cash):
        tx = ledger.record_bill_payment(OWNER, 42, "INV-0042", "199.99", payment_method="upi")
        assert tx.account_id == cash.id
        assert tx.type == "income"
        assert tx.category == "Sales"
        assert tx.bill_id == 42
        assert tx.reference_number == "INV-0042"
        assert tx.description == "Bill payment - INV-0042"
        assert tx.balance_after == Decimal("1199.99")

    def test_bill_payment_without_default_account(self, ledger, accounts):
        accounts.create(OWNER, "Plain")
        with pytest.raises(AccountNotFound):
            ledger.record_bill_payment(OWNER, 1, "INV-1", "10")


class TestReconcile:
    def test_in_balance_after_activity(self, ledger, cash):
        ledger.create_transaction(OWNER, cash.id, "expense", "Rent", "123.45")
        result = ledger.reconcile(OWNER, cash.id)
        assert result["in_balance"] is True
        assert result["drift"] == Decimal("0.00")
        assert result["stored"] == Decimal("876.55")

    def test_detects_drift(self, ledger, db, cash):
        db.get_connection().execute(
            "UPDATE accounts SET current_balance = current_balance + 100 WHERE id = ?",
            (cash.id,),
        )
        result = ledger.reconcile(OWNER, cash.id)
        assert result["in_balance"] is False
        assert result["drift"] == Decimal("1.00")
