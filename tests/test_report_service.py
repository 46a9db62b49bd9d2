from datetime import date
from decimal import Decimal

import pytest

from utils.date_helpers import add_months, today_str
from utils.errors import ValidationError

OWNER = "shopkeeper"


@pytest.fixture
def activity(ledger, accounts, cash):
    bank = accounts.create(OWNER, "Bank", account_type="bank")
    ledger.create_transaction(OWNER, cash.id, "income", "Sales", "500", date="2024-05-01")
    ledger.create_transaction(OWNER, cash.id, "expense", "Rent", "200", date="2024-05-15")
    ledger.create_transaction(OWNER, cash.id, "expense", "Utilities", "50", date="2024-05-31")
    ledger.create_transaction(OWNER, cash.id, "income", "Services", "75", date="2024-06-01")
    ledger.create_transfer(OWNER, cash.id, bank.id, "100", date="2024-05-20")
    return cash, bank


def test_statistics_range_is_inclusive(reports, activity):
    stats = reports.get_statistics(OWNER, "2024-05-01", "2024-05-31")
    assert stats["income"] == Decimal("500.00")
    assert stats["expense"] == Decimal("250.00")
    assert stats["net"] == Decimal("250.00")
    # transfers count as rows but not as income or expense
    assert stats["count"] == 5


def test_statistics_for_one_account(reports, activity):
    cash, bank = activity
    stats = reports.get_statistics(OWNER, date(2024, 5, 1), date(2024, 6, 30), account_id=bank.id)
    assert stats == {
        "income": Decimal("0.00"), "expense": Decimal("0.00"),
        "count": 1, "net": Decimal("0.00"),
    }


def test_empty_range(reports, activity):
    stats = reports.get_statistics(OWNER, "2023-01-01", "2023-01-31")
    assert stats["count"] == 0
    assert stats["income"] == Decimal("0.00")


def test_reversed_range_rejected(reports):
    with pytest.raises(ValidationError):
        reports.get_statistics(OWNER, "2024-05-31", "2024-05-01")


def test_unparseable_range_rejected(reports):
    with pytest.raises(ValidationError):
        reports.get_statistics(OWNER, "yesterday", "2024-05-01")


def test_category_breakdown_largest_first(reports, activity):
    breakdown = reports.get_category_breakdown(OWNER, "2024-05-01", "2024-05-31")
    assert breakdown == [
        {"category": "Rent", "total": Decimal("200.00")},
        {"category": "Utilities", "total": Decimal("50.00")},
    ]


def test_total_balance(reports, activity):
    assert reports.get_total_balance(OWNER) == Decimal("1325.00")


def test_dashboard_summary(reports, ledger, cash):
    ledger.create_transaction(OWNER, cash.id, "expense", "Supplies", "40")
    summary = reports.dashboard_summary(OWNER, recent_limit=1)
    assert summary["total_balance"] == Decimal("960.00")
    assert [a.name for a in summary["accounts"]] == ["Cash"]
    assert summary["today"]["expense"] == Decimal("40.00")
    assert summary["today"]["count"] == 2
    assert summary["this_month"]["net"] == Decimal("-40.00")
    assert len(summary["recent_transactions"]) == 1


def test_monthly_totals_zero_filled(reports, ledger, accounts):
    drawer = accounts.create(OWNER, "Drawer")
    two_months_ago = add_months(date.today().replace(day=1), -2)
    ledger.create_transaction(OWNER, drawer.id, "income", "Sales", "80", date=two_months_ago)
    ledger.create_transaction(OWNER, drawer.id, "expense", "Rent", "30", date=today_str())

    months = reports.get_monthly_totals(OWNER, months=3)
    assert [m["month"] for m in months] == [
        add_months(date.today().replace(day=1), -i).strftime("%Y-%m") for i in (2, 1, 0)
    ]
    assert months[0]["income"] == Decimal("80.00")
    assert months[1] == {
        "month": months[1]["month"], "income": Decimal("0.00"),
        "expense": Decimal("0.00"), "net": Decimal("0.00"),
    }
    assert months[2]["net"] == Decimal("-30.00")
