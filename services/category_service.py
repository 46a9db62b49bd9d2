import structlog

from database.db_manager import DatabaseManager
from database.category_dao import CategoryDAO
from models.category import Category, CATEGORY_TYPES
from utils.constants import DEFAULT_CATEGORIES, DEFAULT_CATEGORY_COLOR, DEFAULT_CATEGORY_ICON
from utils.errors import (
    CategoryNotFound, Forbidden, InvalidCategoryType, SystemCategoryProtected,
    ValidationError,
)

log = structlog.get_logger(__name__)


class CategoryService:
    def __init__(self, db: DatabaseManager, category_dao: CategoryDAO):
        self._db = db
        self._dao = category_dao

    def get_for_owner(self, owner_id: str, type_: str | None = None) -> list[Category]:
        if type_ is not None:
            self._validate_type(type_)
        return self._dao.get_for_owner(owner_id, type_)

    def get_names(self, owner_id: str, type_: str | None = None) -> list[str]:
        return [c.name for c in self.get_for_owner(owner_id, type_)]

    def create(
        self,
        owner_id: str,
        name: str,
        type_: str,
        icon: str | None = None,
        color_hex: str | None = None,
    ) -> Category:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required.")
        self._validate_type(type_)
        with self._db.transaction():
            if name.lower() in self._dao.get_names_for_owner(owner_id):
                raise ValidationError(f"A category named '{name}' already exists.")
            category = self._dao.create(
                owner_id, name, type_,
                icon or DEFAULT_CATEGORY_ICON,
                color_hex or DEFAULT_CATEGORY_COLOR,
            )
        log.info("category_created", category_id=category.id, owner_id=owner_id, type=type_)
        return category

    def update(
        self,
        category_id: int,
        owner_id: str,
        name: str,
        icon: str | None = None,
        color_hex: str | None = None,
    ) -> Category:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name cannot be empty.")
        with self._db.transaction():
            cat = self._get_editable(category_id, owner_id)
            if name.lower() != cat.name.lower() and name.lower() in self._dao.get_names_for_owner(owner_id):
                raise ValidationError(f"A category named '{name}' already exists.")
            category = self._dao.update(
                category_id, name, icon or cat.icon, color_hex or cat.color_hex
            )
        log.info("category_updated", category_id=category_id)
        return category

    def delete(self, category_id: int, owner_id: str):
        """Transactions keep their category label; only the registry row goes."""
        with self._db.transaction():
            self._get_editable(category_id, owner_id)
            self._dao.delete(category_id)
        log.info("category_deleted", category_id=category_id, owner_id=owner_id)

    def initialize_defaults(self, owner_id: str) -> list[Category]:
        """Seed the system category set for an owner; names already present are skipped."""
        created = []
        with self._db.transaction():
            existing = self._dao.get_names_for_owner(owner_id)
            for cat in DEFAULT_CATEGORIES:
                if cat["name"].lower() in existing:
                    continue
                created.append(self._dao.create(
                    owner_id, cat["name"], cat["type"], cat["icon"], cat["color_hex"],
                    is_system=True,
                ))
        if created:
            log.info("default_categories_seeded", owner_id=owner_id, count=len(created))
        return created

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _get_editable(self, category_id: int, owner_id: str) -> Category:
        cat = self._dao.get_by_id(category_id)
        if cat is None:
            raise CategoryNotFound(f"Category {category_id} not found.")
        if cat.owner_id != owner_id:
            raise Forbidden(f"Not authorized to modify category {category_id}.")
        if cat.is_system:
            raise SystemCategoryProtected("System categories cannot be changed or deleted.")
        return cat

    @staticmethod
    def _validate_type(type_: str):
        if type_ not in CATEGORY_TYPES:
            raise InvalidCategoryType(
                f"Invalid category type '{type_}'. Must be 'income' or 'expense'."
            )
