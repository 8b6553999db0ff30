"""
Tests for category persistence.
"""

import pytest

from card_manager.exceptions import CategoryInUseError, DuplicateCategoryError, NotFoundError
from card_manager.models.business_card import BusinessCardCreate, CategoryCreate, CategoryUpdate


def test_create_category_defaults(category_repo):
    """Test that a category gets the default color."""
    category = category_repo.create_category(CategoryCreate(name="Customers"))

    assert category.id is not None
    assert category.color == "#3B82F6"
    assert category.card_count == 0


def test_duplicate_name_is_rejected(category_repo):
    """Test that category names are unique."""
    category_repo.create_category(CategoryCreate(name="Customers"))

    with pytest.raises(DuplicateCategoryError) as exc_info:
        category_repo.create_category(CategoryCreate(name="Customers", color="#000000"))

    assert str(exc_info.value) == "Category name already exists"
    assert len(category_repo.list_categories()) == 1


def test_invalid_color_is_rejected():
    with pytest.raises(ValueError):
        CategoryCreate(name="Bad", color="blue")


def test_list_is_ordered_by_name_with_counts(category_repo, card_repo):
    partners = category_repo.create_category(CategoryCreate(name="Partners"))
    category_repo.create_category(CategoryCreate(name="Customers"))
    card_repo.create_card(BusinessCardCreate(company_name="Acme", person_name="John", category_ids=[partners.id]))

    categories = category_repo.list_categories()

    assert [c.name for c in categories] == ["Customers", "Partners"]
    assert [c.card_count for c in categories] == [0, 1]


def test_update_is_partial(category_repo):
    category = category_repo.create_category(
        CategoryCreate(name="Customers", color="#10B981", description="Paying customers")
    )

    updated = category_repo.update_category(category.id, CategoryUpdate(description="Existing customers"))

    assert updated.name == "Customers"
    assert updated.color == "#10B981"
    assert updated.description == "Existing customers"


def test_update_rejects_name_of_another_category(category_repo):
    category_repo.create_category(CategoryCreate(name="Customers"))
    partners = category_repo.create_category(CategoryCreate(name="Partners"))

    with pytest.raises(DuplicateCategoryError):
        category_repo.update_category(partners.id, CategoryUpdate(name="Customers"))

    # Keeping its own name is fine
    assert category_repo.update_category(partners.id, CategoryUpdate(name="Partners")).name == "Partners"


def test_update_missing_category(category_repo):
    with pytest.raises(NotFoundError):
        category_repo.update_category(404, CategoryUpdate(name="Nobody"))


def test_category_in_use_cannot_be_deleted(category_repo, card_repo):
    """Test that a tagged category is protected."""
    category = category_repo.create_category(CategoryCreate(name="VIP"))
    card = card_repo.create_card(
        BusinessCardCreate(company_name="Acme", person_name="John", category_ids=[category.id])
    )

    with pytest.raises(CategoryInUseError) as exc_info:
        category_repo.delete_category(category.id)
    assert "1 business cards are using this category" in str(exc_info.value)

    card_repo.delete_card(card.id)
    assert category_repo.delete_category(category.id) is True
    assert category_repo.get_category(category.id) is None


def test_delete_missing_category(category_repo):
    assert category_repo.delete_category(999) is False
