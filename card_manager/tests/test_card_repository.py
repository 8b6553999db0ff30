"""
Tests for business card persistence.
"""

import pytest
from sqlalchemy import func, select

from card_manager.exceptions import NotFoundError, ValidationFailedError
from card_manager.models.business_card import (
    BusinessCardCreate,
    BusinessCardSearchParams,
    BusinessCardUpdate,
    CategoryCreate,
)
from card_manager.models.orm import business_card_categories


@pytest.fixture
def sample_card():
    """Create a sample card payload."""
    return BusinessCardCreate(
        company_name="株式会社サンプル",
        person_name="山田 太郎",
        person_name_kana="ヤマダ タロウ",
        department="営業部",
        position="部長",
        email="taro.yamada@sample.co.jp",
        phone="03-1234-5678",
        mobile="090-1234-5678",
        postal_code="100-0001",
        address="東京都千代田区千代田1-1-1",
        notes="Met at the expo",
    )


def test_create_then_read_returns_same_fields(card_repo, sample_card):
    """Test that a created card reads back unchanged."""
    created = card_repo.create_card(sample_card)
    loaded = card_repo.get_card(created.id)

    assert loaded is not None
    for field, value in sample_card.model_dump(exclude={"category_ids"}).items():
        assert getattr(loaded, field) == value, field
    assert loaded.registered_by == "anonymous"
    assert loaded.created_at is not None


def test_create_requires_company_and_person(card_repo):
    """Test that both names are mandatory."""
    with pytest.raises(ValidationFailedError):
        card_repo.create_card(BusinessCardCreate(company_name="Acme"))

    with pytest.raises(ValidationFailedError):
        card_repo.create_card(BusinessCardCreate(company_name="  ", person_name="John"))


def test_blank_optional_fields_are_stored_as_none(card_repo):
    card = card_repo.create_card(BusinessCardCreate(company_name="Acme", person_name="John", email=""))
    assert card.email is None


def test_update_changes_only_targeted_fields(card_repo, sample_card):
    """Test partial update semantics."""
    created = card_repo.create_card(sample_card)

    updated = card_repo.update_card(created.id, BusinessCardUpdate(position="取締役", notes=None))

    assert updated.position == "取締役"
    assert updated.notes is None
    assert updated.company_name == sample_card.company_name
    assert updated.email == sample_card.email
    assert updated.phone == sample_card.phone


def test_update_rejects_clearing_required_name(card_repo, sample_card):
    created = card_repo.create_card(sample_card)

    with pytest.raises(ValidationFailedError):
        card_repo.update_card(created.id, BusinessCardUpdate(company_name=""))

    assert card_repo.get_card(created.id).company_name == sample_card.company_name


def test_update_missing_card(card_repo):
    with pytest.raises(NotFoundError):
        card_repo.update_card(9999, BusinessCardUpdate(position="CEO"))


def test_delete_removes_card_and_category_links(card_repo, category_repo, sample_card, db_service):
    """Test that deleting a card also removes its category links."""
    category = category_repo.create_category(CategoryCreate(name="Customers"))
    created = card_repo.create_card(sample_card.model_copy(update={"category_ids": [category.id]}))
    assert category_repo.get_category(category.id).card_count == 1

    assert card_repo.delete_card(created.id) is True

    assert card_repo.get_card(created.id) is None
    with db_service.session_scope() as session:
        links = session.scalar(select(func.count()).select_from(business_card_categories))
    assert links == 0
    assert category_repo.get_category(category.id).card_count == 0


def test_delete_missing_card(card_repo):
    assert card_repo.delete_card(12345) is False


def test_categories_are_attached_and_replaced(card_repo, category_repo, sample_card):
    customers = category_repo.create_category(CategoryCreate(name="Customers", color="#10B981"))
    partners = category_repo.create_category(CategoryCreate(name="Partners"))

    created = card_repo.create_card(sample_card.model_copy(update={"category_ids": [customers.id, partners.id]}))
    assert sorted(c.name for c in created.categories) == ["Customers", "Partners"]

    updated = card_repo.update_card(created.id, BusinessCardUpdate(category_ids=[partners.id]))
    assert [c.name for c in updated.categories] == ["Partners"]

    # Omitting category_ids leaves links alone
    updated = card_repo.update_card(created.id, BusinessCardUpdate(position="CEO"))
    assert [c.name for c in updated.categories] == ["Partners"]


def test_unknown_category_is_rejected(card_repo, sample_card):
    with pytest.raises(ValidationFailedError):
        card_repo.create_card(sample_card.model_copy(update={"category_ids": [42]}))


class TestListing:
    """Test search, filtering and pagination."""

    @pytest.fixture(autouse=True)
    def cards(self, card_repo, category_repo):
        vip = category_repo.create_category(CategoryCreate(name="VIP"))
        card_repo.create_card(BusinessCardCreate(company_name="Acme Corporation", person_name="John Smith",
                                                 email="john@acme.com", category_ids=[vip.id]))
        card_repo.create_card(BusinessCardCreate(company_name="Globex Inc", person_name="Jane Doe",
                                                 email="jane@globex.com"))
        card_repo.create_card(BusinessCardCreate(company_name="株式会社サンプル", person_name="山田 太郎"))

    def test_newest_first(self, card_repo):
        cards = card_repo.list_cards()
        assert [c.person_name for c in cards] == ["山田 太郎", "Jane Doe", "John Smith"]
        assert card_repo.count_cards() == 3

    def test_query_matches_company_person_or_email(self, card_repo):
        assert [c.person_name for c in card_repo.list_cards(BusinessCardSearchParams(q="globex"))] == ["Jane Doe"]
        assert [c.person_name for c in card_repo.list_cards(BusinessCardSearchParams(q="Smith"))] == ["John Smith"]
        assert [c.person_name for c in card_repo.list_cards(BusinessCardSearchParams(q="サンプル"))] == ["山田 太郎"]

    def test_company_and_person_filters(self, card_repo):
        params = BusinessCardSearchParams(company_name="Acme", person_name="John")
        assert card_repo.count_cards(params) == 1
        assert card_repo.count_cards(BusinessCardSearchParams(company_name="Acme", person_name="Jane")) == 0

    def test_category_filter_is_exact_name(self, card_repo):
        assert [c.person_name for c in card_repo.list_cards(BusinessCardSearchParams(category="VIP"))] == ["John Smith"]
        assert card_repo.count_cards(BusinessCardSearchParams(category="VI")) == 0

    def test_pagination(self, card_repo):
        params = BusinessCardSearchParams(limit=2, offset=2)
        assert [c.person_name for c in card_repo.list_cards(params)] == ["John Smith"]
        assert card_repo.count_cards(params) == 3


def test_set_and_clear_image(card_repo, sample_card):
    created = card_repo.create_card(sample_card)

    assert card_repo.set_image(created.id, "/api/images/a.png", "a.png") is True
    assert card_repo.get_card(created.id).image_filename == "a.png"

    assert card_repo.clear_image_by_filename("a.png") == 1
    card = card_repo.get_card(created.id)
    assert card.image_url is None
    assert card.image_filename is None
