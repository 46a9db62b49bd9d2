from decimal import Decimal
from typing import Optional
from database.db_manager import DatabaseManager
from models.transaction import Transaction, CREDIT_TYPES
from utils.currency import from_minor_units, to_minor_units


class TransactionDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Transaction:
        return Transaction(
            id=row["id"],
            owner_id=row["owner_id"],
            account_id=row["account_id"],
            type=row["type"],
            category=row["category"],
            amount=from_minor_units(row["amount"]),
            balance_after=from_minor_units(row["balance_after"]),
            transaction_date=row["transaction_date"],
            description=row["description"],
            reference_number=row["reference_number"],
            payment_method=row["payment_method"],
            related_transaction_id=row["related_transaction_id"],
            bill_id=row["bill_id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_by_id(self, tx_id: int) -> Optional[Transaction]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM transactions WHERE id = ?", (tx_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_account(self, account_id: int) -> list[Transaction]:
        """All rows for one account in posting order (oldest first)."""
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM transactions WHERE account_id = ? ORDER BY id ASC",
            (account_id,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def search(
        self,
        owner_id: str,
        account_id: int | None = None,
        type_filter: str | None = None,
        category: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Transaction]:
        """Owner's transactions, newest business date first."""
        conn = self._db.get_connection()
        sql = "SELECT * FROM transactions WHERE owner_id = ?"
        params: list = [owner_id]

        if account_id:
            sql += " AND account_id = ?"
            params.append(account_id)
        if type_filter == "transfer":
            sql += " AND type IN ('transfer_in', 'transfer_out')"
        elif type_filter and type_filter != "all":
            sql += " AND type = ?"
            params.append(type_filter)
        if category:
            sql += " AND category = ?"
            params.append(category)
        if start_date:
            sql += " AND transaction_date >= ?"
            params.append(start_date)
        if end_date:
            sql += " AND transaction_date <= ?"
            params.append(end_date)

        sql += " ORDER BY transaction_date DESC, created_at DESC, id DESC"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])
        rows = conn.execute(sql, params).fetchall()
        return [self._row_to_model(r) for r in rows]

    def create(
        self,
        owner_id: str,
        account_id: int,
        type_: str,
        category: str,
        amount: Decimal,
        balance_after: Decimal,
        transaction_date: str,
        description: str = "",
        reference_number: str | None = None,
        payment_method: str | None = None,
        related_transaction_id: int | None = None,
        bill_id: int | None = None,
    ) -> Transaction:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO transactions
               (owner_id, account_id, type, category, amount, balance_after,
                description, reference_number, payment_method,
                related_transaction_id, bill_id, transaction_date)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                owner_id, account_id, type_, category,
                to_minor_units(amount), to_minor_units(balance_after),
                description, reference_number, payment_method,
                related_transaction_id, bill_id, transaction_date,
            ),
        )
        return self.get_by_id(cursor.lastrowid)

    def set_related(self, tx_id: int, related_id: int):
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE transactions
               SET related_transaction_id = ?, updated_at = datetime('now')
               WHERE id = ?""",
            (related_id, tx_id),
        )

    def delete(self, tx_id: int) -> int:
        conn = self._db.get_connection()
        cursor = conn.execute("DELETE FROM transactions WHERE id = ?", (tx_id,))
        return cursor.rowcount

    def get_signed_total(self, account_id: int, exclude_opening: bool = False) -> Decimal:
        """Σ signed amounts posted to an account."""
        conn = self._db.get_connection()
        credit_marks = ",".join("?" * len(CREDIT_TYPES))
        where_opening = "AND type != 'opening_balance'" if exclude_opening else ""
        row = conn.execute(
            f"""SELECT COALESCE(SUM(
                    CASE WHEN type IN ({credit_marks}) THEN amount ELSE -amount END
                ), 0) AS total
                FROM transactions
                WHERE account_id = ? {where_opening}""",
            (*CREDIT_TYPES, account_id),
        ).fetchone()
        return from_minor_units(row["total"])

    def get_totals(
        self,
        owner_id: str,
        start_date: str,
        end_date: str,
        account_id: int | None = None,
    ) -> dict:
        """Income/expense sums and row count for an inclusive business-date range."""
        conn = self._db.get_connection()
        where = "AND account_id = ?" if account_id else ""
        params: list = [owner_id, start_date, end_date]
        if account_id:
            params.append(account_id)
        row = conn.execute(
            f"""SELECT
                SUM(CASE WHEN type='income'  THEN amount ELSE 0 END) AS income,
                SUM(CASE WHEN type='expense' THEN amount ELSE 0 END) AS expense,
                COUNT(*) AS count
               FROM transactions
               WHERE owner_id = ?
                 AND transaction_date BETWEEN ? AND ?
                 {where}""",
            params,
        ).fetchone()
        return {
            "income":  from_minor_units(row["income"]),
            "expense": from_minor_units(row["expense"]),
            "count":   row["count"],
        }

    def get_monthly_totals(
        self, owner_id: str, account_id: int | None, since: str
    ) -> list[dict]:
        """Return list of {month, income, expense} from `since` onward, oldest first."""
        conn = self._db.get_connection()
        where = "AND account_id = ?" if account_id else ""
        params: list = [owner_id, since]
        if account_id:
            params.append(account_id)
        rows = conn.execute(
            f"""SELECT strftime('%Y-%m', transaction_date) AS month,
                       SUM(CASE WHEN type='income' THEN amount ELSE 0 END) AS income,
                       SUM(CASE WHEN type='expense' THEN amount ELSE 0 END) AS expense
                FROM transactions
                WHERE owner_id = ? AND transaction_date >= ?
                {where}
                GROUP BY month
                ORDER BY month ASC""",
            params,
        ).fetchall()
        return [
            {
                "month": r["month"],
                "income": from_minor_units(r["income"]),
                "expense": from_minor_units(r["expense"]),
            }
            for r in rows
        ]

    def get_expense_by_category(
        self,
        owner_id: str,
        start_date: str,
        end_date: str,
        account_id: int | None = None,
    ) -> list[dict]:
        conn = self._db.get_connection()
        where = "AND account_id = ?" if account_id else ""
        params: list = [owner_id, start_date, end_date]
        if account_id:
            params.append(account_id)
        rows = conn.execute(
            f"""SELECT category, SUM(amount) AS total
                FROM transactions
                WHERE owner_id = ?
                  AND type = 'expense'
                  AND transaction_date BETWEEN ? AND ?
                  {where}
                GROUP BY category
                ORDER BY total DESC, category ASC""",
            params,
        ).fetchall()
        return [
            {"category": r["category"], "total": from_minor_units(r["total"])}
            for r in rows
        ]
