"""
Business card repository.

Provides CRUD operations and filtered listing for business cards.
"""

import logging
from typing import List, Optional, Dict, Any

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session, selectinload

from .database_service import DatabaseService
from ..exceptions import NotFoundError, ValidationFailedError
from ..models.business_card import (
    BusinessCard,
    BusinessCardCreate,
    BusinessCardSearchParams,
    BusinessCardUpdate,
)
from ..models.orm import BusinessCardORM, CategoryORM

logger = logging.getLogger(__name__)


class BusinessCardRepository:
    """
    Repository for business card persistence.

    Provides CRUD operations for registering, loading, updating and
    deleting business cards together with their category links.
    """

    def __init__(self, database_service: DatabaseService):
        """
        Initialize business card repository.

        Args:
            database_service: Database service instance
        """
        self.db = database_service

    def list_cards(self, params: Optional[BusinessCardSearchParams] = None) -> List[BusinessCard]:
        """
        List business cards with optional filters, newest first.

        Args:
            params: Search filters and pagination

        Returns:
            List of business cards with their categories
        """
        params = params or BusinessCardSearchParams()

        query = (
            select(BusinessCardORM)
            .options(selectinload(BusinessCardORM.categories))
            .where(*self._filter_conditions(params))
            .order_by(BusinessCardORM.created_at.desc(), BusinessCardORM.id.desc())
            .limit(params.limit)
            .offset(params.offset)
        )

        with self.db.session_scope() as session:
            cards = session.scalars(query).all()
            return [BusinessCard.model_validate(card.to_dict()) for card in cards]

    def count_cards(self, params: Optional[BusinessCardSearchParams] = None) -> int:
        """
        Count business cards matching the same filters as list_cards.

        Args:
            params: Search filters (pagination is ignored)

        Returns:
            Number of matching cards
        """
        params = params or BusinessCardSearchParams()
        query = select(func.count(BusinessCardORM.id)).where(*self._filter_conditions(params))

        with self.db.session_scope() as session:
            return session.scalar(query) or 0

    def get_card(self, card_id: int) -> Optional[BusinessCard]:
        """
        Get a business card by ID.

        Args:
            card_id: Card identifier

        Returns:
            BusinessCard or None if not found
        """
        with self.db.session_scope() as session:
            card = session.get(BusinessCardORM, card_id)
            if card is None:
                return None
            return BusinessCard.model_validate(card.to_dict())

    def create_card(self, data: BusinessCardCreate) -> BusinessCard:
        """
        Register a new business card.

        Args:
            data: Card fields and category IDs

        Returns:
            The stored card

        Raises:
            ValidationFailedError: company or person name missing, or unknown category
        """
        if not data.company_name or not data.person_name:
            raise ValidationFailedError("Company name and person name are required")

        values = data.model_dump(exclude={"category_ids"})
        values["registered_by"] = values.get("registered_by") or "anonymous"

        with self.db.session_scope() as session:
            card = BusinessCardORM(**values)
            card.categories = self._load_categories(session, data.category_ids)
            session.add(card)
            session.flush()
            session.refresh(card)
            logger.info(f"Created business card {card.id} ({card.person_name} / {card.company_name})")
            return BusinessCard.model_validate(card.to_dict())

    def update_card(self, card_id: int, data: BusinessCardUpdate) -> BusinessCard:
        """
        Update an existing business card.

        Only the fields set on the update model are written.

        Args:
            card_id: Card identifier
            data: Partial update

        Returns:
            The updated card

        Raises:
            NotFoundError: card does not exist
            ValidationFailedError: required name cleared, or unknown category
        """
        changes: Dict[str, Any] = data.model_dump(exclude_unset=True)
        category_ids = changes.pop("category_ids", None)

        for required in ("company_name", "person_name"):
            if required in changes and not changes[required]:
                raise ValidationFailedError("Company name and person name are required")

        with self.db.session_scope() as session:
            card = session.get(BusinessCardORM, card_id)
            if card is None:
                raise NotFoundError("Business card not found")

            for field, value in changes.items():
                setattr(card, field, value)

            if category_ids is not None:
                card.categories = self._load_categories(session, category_ids)

            # Category-only edits would not bump the row otherwise
            card.updated_at = func.now()
            session.flush()
            session.refresh(card)
            return BusinessCard.model_validate(card.to_dict())

    def delete_card(self, card_id: int) -> bool:
        """
        Delete a business card and its category links.

        Args:
            card_id: Card identifier

        Returns:
            True if deleted, False if card not found
        """
        with self.db.session_scope() as session:
            card = session.get(BusinessCardORM, card_id)
            if card is None:
                return False

            card.categories = []
            session.flush()
            session.delete(card)
            logger.info(f"Deleted business card {card_id}")
            return True

    def set_image(self, card_id: int, image_url: str, image_filename: str) -> bool:
        """
        Attach an uploaded image to a card.

        Returns:
            True if the card exists and was updated
        """
        with self.db.session_scope() as session:
            card = session.get(BusinessCardORM, card_id)
            if card is None:
                return False
            card.image_url = image_url
            card.image_filename = image_filename
            return True

    def clear_image_by_filename(self, image_filename: str) -> int:
        """
        Remove references to a deleted image from every card.

        Returns:
            Number of cards that referenced the image
        """
        with self.db.session_scope() as session:
            cards = session.scalars(
                select(BusinessCardORM).where(BusinessCardORM.image_filename == image_filename)
            ).all()
            for card in cards:
                card.image_url = None
                card.image_filename = None
            return len(cards)

    def _load_categories(self, session: Session, category_ids: List[int]) -> List[CategoryORM]:
        if not category_ids:
            return []

        wanted = set(category_ids)
        categories = session.scalars(
            select(CategoryORM).where(CategoryORM.id.in_(wanted))
        ).all()

        missing = wanted - {c.id for c in categories}
        if missing:
            raise ValidationFailedError(f"Unknown category IDs: {sorted(missing)}")
        return list(categories)

    @staticmethod
    def _filter_conditions(params: BusinessCardSearchParams) -> list:
        conditions = []

        if params.q:
            term = f"%{params.q}%"
            conditions.append(or_(
                BusinessCardORM.company_name.like(term),
                BusinessCardORM.person_name.like(term),
                BusinessCardORM.email.like(term),
            ))

        if params.company_name:
            conditions.append(BusinessCardORM.company_name.like(f"%{params.company_name}%"))

        if params.person_name:
            conditions.append(BusinessCardORM.person_name.like(f"%{params.person_name}%"))

        if params.category:
            conditions.append(BusinessCardORM.categories.any(CategoryORM.name == params.category))

        return conditions
