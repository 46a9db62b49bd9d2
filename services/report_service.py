from decimal import Decimal

from database.account_dao import AccountDAO
from database.transaction_dao import TransactionDAO
from utils.constants import CHART_MONTHS, RECENT_TRANSACTIONS_LIMIT
from utils.date_helpers import (
    add_months, coerce_date_str, current_month_str, format_date, month_range, today,
    today_str,
)
from utils.errors import ValidationError


class ReportService:
    """Read-only aggregation over the ledger."""

    def __init__(self, tx_dao: TransactionDAO, account_dao: AccountDAO):
        self._tx_dao = tx_dao
        self._account_dao = account_dao

    def get_statistics(
        self, owner_id: str, start_date, end_date, account_id: int | None = None
    ) -> dict:
        """Income/expense totals over [start_date, end_date] inclusive.

        count covers every transaction in the range, transfers included.
        """
        start, end = self._date_range(start_date, end_date)
        totals = self._tx_dao.get_totals(owner_id, start, end, account_id)
        totals["net"] = totals["income"] - totals["expense"]
        return totals

    def get_total_balance(self, owner_id: str) -> Decimal:
        return self._account_dao.get_total_balance(owner_id)

    def dashboard_summary(
        self, owner_id: str, recent_limit: int = RECENT_TRANSACTIONS_LIMIT
    ) -> dict:
        accounts = self._account_dao.get_active_by_owner(owner_id)
        day = today_str()
        month_start, month_end = month_range(current_month_str())
        return {
            "accounts": accounts,
            "total_balance": sum((a.current_balance for a in accounts), Decimal("0.00")),
            "today": self.get_statistics(owner_id, day, day),
            "this_month": self.get_statistics(owner_id, month_start, month_end),
            "recent_transactions": self._tx_dao.search(owner_id, limit=recent_limit),
        }

    def get_monthly_totals(
        self, owner_id: str, account_id: int | None = None, months: int = CHART_MONTHS
    ) -> list[dict]:
        """Return [{month, income, expense, net}, ...] for the last N months, zero-filled."""
        first = add_months(today().replace(day=1), -(months - 1))
        rows = {
            r["month"]: r
            for r in self._tx_dao.get_monthly_totals(owner_id, account_id, format_date(first))
        }
        result = []
        for i in range(months):
            month = add_months(first, i).strftime("%Y-%m")
            row = rows.get(month, {"income": Decimal("0.00"), "expense": Decimal("0.00")})
            result.append({
                "month": month,
                "income": row["income"],
                "expense": row["expense"],
                "net": row["income"] - row["expense"],
            })
        return result

    def get_category_breakdown(
        self, owner_id: str, start_date, end_date, account_id: int | None = None
    ) -> list[dict]:
        """Return [{category, total}, ...] of expenses, largest first."""
        start, end = self._date_range(start_date, end_date)
        return self._tx_dao.get_expense_by_category(owner_id, start, end, account_id)

    @staticmethod
    def _date_range(start_date, end_date) -> tuple[str, str]:
        start = coerce_date_str(start_date)
        end = coerce_date_str(end_date)
        if start is None or end is None:
            raise ValidationError("Please provide a valid start date and end date (YYYY-MM-DD).")
        if start > end:
            raise ValidationError("Start date must be on or before end date.")
        return start, end
