import pytest

from utils.errors import (
    CategoryNotFound, Forbidden, InvalidCategoryType, SystemCategoryProtected,
    ValidationError,
)

OWNER = "shopkeeper"
OTHER_OWNER = "intruder"


def test_initialize_defaults_seeds_income_and_expense(categories):
    created = categories.initialize_defaults(OWNER)
    assert len(created) == 9
    assert all(c.is_system and c.owner_id == OWNER for c in created)
    assert categories.get_names(OWNER, "income") == ["Other Income", "Sales", "Services"]
    assert len(categories.get_for_owner(OWNER, "expense")) == 6


def test_initialize_defaults_is_idempotent(categories):
    categories.initialize_defaults(OWNER)
    assert categories.initialize_defaults(OWNER) == []
    assert len(categories.get_for_owner(OWNER)) == 9


def test_reseed_restores_only_missing_names(categories, db):
    categories.initialize_defaults(OWNER)
    db.get_connection().execute(
        "DELETE FROM categories WHERE owner_id = ? AND name = 'Rent'", (OWNER,)
    )
    created = categories.initialize_defaults(OWNER)
    assert [c.name for c in created] == ["Rent"]


def test_create_user_category(categories):
    cat = categories.create(OWNER, "  Packaging ", "expense", color_hex="#123456")
    assert cat.name == "Packaging"
    assert cat.is_system is False
    assert cat.icon == "category"
    assert cat.color_hex == "#123456"


def test_duplicate_name_rejected_case_insensitively(categories):
    categories.create(OWNER, "Packaging", "expense")
    with pytest.raises(ValidationError):
        categories.create(OWNER, "packaging", "income")


def test_same_name_allowed_for_different_owners(categories):
    categories.create(OWNER, "Packaging", "expense")
    assert categories.create(OTHER_OWNER, "Packaging", "expense").owner_id == OTHER_OWNER


@pytest.mark.parametrize("type_", ["both", "", "INCOME"])
def test_invalid_type_rejected(categories, type_):
    with pytest.raises(InvalidCategoryType):
        categories.create(OWNER, "Odd", type_)
    with pytest.raises(InvalidCategoryType):
        categories.get_for_owner(OWNER, type_)


def test_invalid_type_is_a_validation_error(categories):
    with pytest.raises(ValidationError):
        categories.create(OWNER, "Odd", "transfer")


def test_ownerless_categories_visible_to_everyone(categories, category_dao, db):
    with db.transaction():
        category_dao.create(None, "Shared", "income", "globe", "#000000")
    assert "Shared" in categories.get_names(OWNER, "income")
    assert "Shared" in categories.get_names(OTHER_OWNER)
    assert "Shared" not in categories.get_names(OWNER, "expense")


def test_listing_is_scoped_to_owner(categories):
    categories.create(OTHER_OWNER, "Theirs", "expense")
    assert "Theirs" not in categories.get_names(OWNER)


def test_update_and_delete_user_category(categories):
    cat = categories.create(OWNER, "Packaging", "expense")
    updated = categories.update(cat.id, OWNER, "Boxes", icon="box")
    assert updated.name == "Boxes"
    assert updated.icon == "box"
    assert updated.color_hex == cat.color_hex
    categories.delete(cat.id, OWNER)
    assert "Boxes" not in categories.get_names(OWNER)


def test_rename_onto_existing_name_rejected(categories):
    categories.create(OWNER, "Packaging", "expense")
    boxes = categories.create(OWNER, "Boxes", "expense")
    with pytest.raises(ValidationError):
        categories.update(boxes.id, OWNER, "PACKAGING")


def test_system_categories_are_protected(categories):
    sales = categories.initialize_defaults(OWNER)[0]
    with pytest.raises(SystemCategoryProtected):
        categories.update(sales.id, OWNER, "Renamed")
    with pytest.raises(SystemCategoryProtected):
        categories.delete(sales.id, OWNER)


def test_other_owner_cannot_modify(categories):
    cat = categories.create(OWNER, "Packaging", "expense")
    with pytest.raises(Forbidden):
        categories.delete(cat.id, OTHER_OWNER)


def test_other_owners_system_category_is_forbidden(categories):
    sales = categories.initialize_defaults(OWNER)[0]
    with pytest.raises(Forbidden):
        categories.update(sales.id, OTHER_OWNER, "Renamed")
    with pytest.raises(Forbidden):
        categories.delete(sales.id, OTHER_OWNER)


def test_missing_category(categories):
    with pytest.raises(CategoryNotFound):
        categories.delete(424242, OWNER)
