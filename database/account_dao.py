from decimal import Decimal
from typing import Optional
from database.db_manager import DatabaseManager
from models.account import Account
from utils.currency import from_minor_units, to_minor_units
from utils.errors import StorageFailure

# Columns a caller may change through update(); balances are deliberately absent.
UPDATABLE_FIELDS = ("name", "account_type", "currency", "is_active", "is_default")


class AccountDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Account:
        return Account(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            account_type=row["account_type"],
            opening_balance=from_minor_units(row["opening_balance"]),
            current_balance=from_minor_units(row["current_balance"]),
            currency=row["currency"],
            is_active=bool(row["is_active"]),
            is_default=bool(row["is_default"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_by_id(self, account_id: int) -> Optional[Account]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM accounts WHERE id = ?", (account_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_for_update(self, account_id: int) -> Optional[Account]:
        """Read an account row for a balance mutation.

        Only valid inside DatabaseManager.transaction(): the unit of work holds the
        write lock, so the balance read here stays current until commit.
        """
        if not self._db.in_transaction:
            raise StorageFailure("get_for_update() requires an open unit of work.")
        return self.get_by_id(account_id)

    def get_active_by_owner(self, owner_id: str) -> list[Account]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT * FROM accounts
               WHERE owner_id = ? AND is_active = 1
               ORDER BY is_default DESC, created_at DESC, id DESC""",
            (owner_id,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_default(self, owner_id: str) -> Optional[Account]:
        conn = self._db.get_connection()
        row = conn.execute(
            """SELECT * FROM accounts
               WHERE owner_id = ? AND is_default = 1 AND is_active = 1""",
            (owner_id,),
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_total_balance(self, owner_id: str) -> Decimal:
        conn = self._db.get_connection()
        row = conn.execute(
            """SELECT COALESCE(SUM(current_balance), 0) AS total
               FROM accounts WHERE owner_id = ? AND is_active = 1""",
            (owner_id,),
        ).fetchone()
        return from_minor_units(row["total"])

    def create(
        self,
        owner_id: str,
        name: str,
        account_type: str,
        opening_balance: Decimal,
        currency: str,
        is_default: bool,
    ) -> Account:
        conn = self._db.get_connection()
        opening = to_minor_units(opening_balance)
        cursor = conn.execute(
            """INSERT INTO accounts
               (owner_id, name, account_type, opening_balance, current_balance,
                currency, is_active, is_default)
               VALUES (?, ?, ?, ?, ?, ?, 1, ?)""",
            (owner_id, name, account_type, opening, opening, currency, 1 if is_default else 0),
        )
        return self.get_by_id(cursor.lastrowid)

    def clear_default(self, owner_id: str, except_id: int | None = None):
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE accounts SET is_default = 0, updated_at = datetime('now')
               WHERE owner_id = ? AND is_default = 1 AND id != ?""",
            (owner_id, except_id if except_id is not None else -1),
        )

    def update(self, account_id: int, fields: dict) -> Account:
        """Partial update restricted to UPDATABLE_FIELDS."""
        assignments = []
        params: list = []
        for key in UPDATABLE_FIELDS:
            if key in fields:
                value = fields[key]
                if key in ("is_active", "is_default"):
                    value = 1 if value else 0
                assignments.append(f"{key} = ?")
                params.append(value)
        if assignments:
            conn = self._db.get_connection()
            conn.execute(
                f"""UPDATE accounts SET {', '.join(assignments)}, updated_at = datetime('now')
                    WHERE id = ?""",
                params + [account_id],
            )
        return self.get_by_id(account_id)

    def apply_delta(self, account_id: int, amount: Decimal, credit: bool) -> Decimal:
        """Add (credit) or subtract (debit) amount from current_balance; returns the new balance.

        The only write path to current_balance. Callers hold a unit of work.
        """
        if not self._db.in_transaction:
            raise StorageFailure("apply_delta() requires an open unit of work.")
        delta = to_minor_units(amount)
        if not credit:
            delta = -delta
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE accounts
               SET current_balance = current_balance + ?, updated_at = datetime('now')
               WHERE id = ?""",
            (delta, account_id),
        )
        row = conn.execute(
            "SELECT current_balance FROM accounts WHERE id = ?", (account_id,)
        ).fetchone()
        return from_minor_units(row["current_balance"])
