"""
Category repository.

Categories are user-defined tags with a unique name and a display color.
"""

import logging
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from .database_service import DatabaseService
from ..exceptions import CategoryInUseError, DuplicateCategoryError, NotFoundError
from ..models.business_card import Category, CategoryCreate, CategoryUpdate
from ..models.orm import CategoryORM, business_card_categories

logger = logging.getLogger(__name__)


class CategoryRepository:
    """Repository for category persistence."""

    def __init__(self, database_service: DatabaseService):
        self.db = database_service

    def list_categories(self) -> List[Category]:
        """
        List all categories ordered by name, with the number of cards using each.
        """
        card_count = func.count(business_card_categories.c.business_card_id)
        query = (
            select(CategoryORM, card_count)
            .outerjoin(business_card_categories, business_card_categories.c.category_id == CategoryORM.id)
            .group_by(CategoryORM.id)
            .order_by(CategoryORM.name)
        )

        with self.db.session_scope() as session:
            rows = session.execute(query).all()
            return [
                Category.model_validate({**category.to_dict(), "card_count": count})
                for category, count in rows
            ]

    def get_category(self, category_id: int) -> Optional[Category]:
        with self.db.session_scope() as session:
            category = session.get(CategoryORM, category_id)
            if category is None:
                return None
            return self._to_model(session, category)

    def create_category(self, data: CategoryCreate) -> Category:
        """
        Create a category.

        Raises:
            DuplicateCategoryError: name already taken
        """
        with self.db.session_scope() as session:
            self._ensure_unique_name(session, data.name)

            category = CategoryORM(
                name=data.name,
                color=data.color,
                description=data.description,
            )
            session.add(category)
            session.flush()
            session.refresh(category)
            logger.info(f"Created category {category.id} ({category.name})")
            return self._to_model(session, category)

    def update_category(self, category_id: int, data: CategoryUpdate) -> Category:
        """
        Update a category; only fields present in the payload change.

        Raises:
            NotFoundError: category does not exist
            DuplicateCategoryError: another category already has the new name
        """
        changes = data.model_dump(exclude_unset=True)

        with self.db.session_scope() as session:
            category = session.get(CategoryORM, category_id)
            if category is None:
                raise NotFoundError("Category not found")

            if changes.get("name"):
                self._ensure_unique_name(session, changes["name"], exclude_id=category_id)

            for field, value in changes.items():
                if field in ("name", "color") and value is None:
                    continue
                setattr(category, field, value)

            session.flush()
            session.refresh(category)
            return self._to_model(session, category)

    def delete_category(self, category_id: int) -> bool:
        """
        Delete a category that no card uses.

        Returns:
            True if deleted, False if the category does not exist

        Raises:
            CategoryInUseError: cards are still tagged with it
        """
        with self.db.session_scope() as session:
            category = session.get(CategoryORM, category_id)
            if category is None:
                return False

            in_use = self._card_count(session, category_id)
            if in_use > 0:
                raise CategoryInUseError(category_id, in_use)

            session.delete(category)
            logger.info(f"Deleted category {category_id}")
            return True

    def _ensure_unique_name(self, session: Session, name: str, exclude_id: Optional[int] = None) -> None:
        query = select(CategoryORM.id).where(CategoryORM.name == name)
        if exclude_id is not None:
            query = query.where(CategoryORM.id != exclude_id)

        if session.scalar(query) is not None:
            raise DuplicateCategoryError(name)

    @staticmethod
    def _card_count(session: Session, category_id: int) -> int:
        return session.scalar(
            select(func.count()).select_from(business_card_categories)
            .where(business_card_categories.c.category_id == category_id)
        ) or 0

    def _to_model(self, session: Session, category: CategoryORM) -> Category:
        return Category.model_validate({
            **category.to_dict(),
            "card_count": self._card_count(session, category.id),
        })
