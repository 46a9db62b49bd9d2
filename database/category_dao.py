from typing import Optional
from database.db_manager import DatabaseManager
from models.category import Category


class CategoryDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Category:
        return Category(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            type=row["type"],
            icon=row["icon"],
            color_hex=row["color_hex"],
            is_system=bool(row["is_system"]),
            created_at=row["created_at"],
        )

    def get_by_id(self, category_id: int) -> Optional[Category]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM categories WHERE id = ?", (category_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_for_owner(self, owner_id: str, type_filter: str | None = None) -> list[Category]:
        """Owner's categories plus the ownerless ones, system first then by name."""
        conn = self._db.get_connection()
        sql = "SELECT * FROM categories WHERE (owner_id = ? OR owner_id IS NULL)"
        params: list = [owner_id]
        if type_filter:
            sql += " AND type = ?"
            params.append(type_filter)
        sql += " ORDER BY is_system DESC, name COLLATE NOCASE ASC"
        rows = conn.execute(sql, params).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_names_for_owner(self, owner_id: str) -> set[str]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT name FROM categories WHERE owner_id = ?", (owner_id,)
        ).fetchall()
        return {r["name"].lower() for r in rows}

    def create(
        self,
        owner_id: str | None,
        name: str,
        type_: str,
        icon: str,
        color_hex: str,
        is_system: bool = False,
    ) -> Category:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO categories(owner_id, name, type, icon, color_hex, is_system)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (owner_id, name, type_, icon, color_hex, 1 if is_system else 0),
        )
        return self.get_by_id(cursor.lastrowid)

    def update(self, category_id: int, name: str, icon: str, color_hex: str) -> Category:
        conn = self._db.get_connection()
        conn.execute(
            "UPDATE categories SET name=?, icon=?, color_hex=? WHERE id=?",
            (name, icon, color_hex, category_id),
        )
        return self.get_by_id(category_id)

    def delete(self, category_id: int):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
