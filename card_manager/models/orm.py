"""SQLAlchemy ORM models for the business card database"""
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey, Index, Table, func,
)
from sqlalchemy.orm import declarative_base, relationship
from typing import Any, Dict

Base = declarative_base()


# Link table for card <-> category tagging
business_card_categories = Table(
    'business_card_categories',
    Base.metadata,
    Column('business_card_id', Integer, ForeignKey('business_cards.id', ondelete='CASCADE'), primary_key=True),
    Column('category_id', Integer, ForeignKey('categories.id', ondelete='CASCADE'), primary_key=True),
)


class CategoryORM(Base):
    """SQLAlchemy ORM model for the categories table"""
    __tablename__ = 'categories'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    color = Column(String(7), nullable=False, default='#3B82F6')
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    cards = relationship(
        'BusinessCardORM',
        secondary=business_card_categories,
        back_populates='categories',
    )

    def __repr__(self):
        return f"<CategoryORM(id={self.id}, name='{self.name}')>"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'color': self.color,
            'description': self.description,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }


class BusinessCardORM(Base):
    """SQLAlchemy ORM model for the business_cards table"""
    __tablename__ = 'business_cards'

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Required identity of the contact
    company_name = Column(String, nullable=False)
    person_name = Column(String, nullable=False)
    person_name_kana = Column(String, nullable=True)

    # Organisation
    department = Column(String, nullable=True)
    position = Column(String, nullable=True)

    # Contact details
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    mobile = Column(String, nullable=True)
    fax = Column(String, nullable=True)
    postal_code = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    website = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    # Photo reference (filename key into the image store)
    image_url = Column(String, nullable=True)
    image_filename = Column(String, nullable=True)

    registered_by = Column(String, nullable=False, default='anonymous')
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    categories = relationship(
        'CategoryORM',
        secondary=business_card_categories,
        back_populates='cards',
        order_by='CategoryORM.name',
    )

    __table_args__ = (
        Index('idx_company_name', company_name),
        Index('idx_person_name', person_name),
        Index('idx_email', email),
        Index('idx_image_filename', image_filename),
    )

    def __repr__(self):
        return f"<BusinessCardORM(id={self.id}, person='{self.person_name}', company='{self.company_name}')>"

    def to_dict(self) -> Dict[str, Any]:
        """Convert ORM model to dictionary for Pydantic conversion"""
        return {
            'id': self.id,
            'company_name': self.company_name,
            'person_name': self.person_name,
            'person_name_kana': self.person_name_kana,
            'department': self.department,
            'position': self.position,
            'email': self.email,
            'phone': self.phone,
            'mobile': self.mobile,
            'fax': self.fax,
            'postal_code': self.postal_code,
            'address': self.address,
            'website': self.website,
            'notes': self.notes,
            'image_url': self.image_url,
            'image_filename': self.image_filename,
            'registered_by': self.registered_by,
            'categories': [
                {'id': c.id, 'name': c.name, 'color': c.color} for c in self.categories
            ],
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }


class ImageBlobORM(Base):
    """Inline image storage used when no object store directory is configured"""
    __tablename__ = 'images'

    filename = Column(String, primary_key=True)
    content_type = Column(String, nullable=False)
    data = Column(Text, nullable=False)  # base64 encoded bytes
    size = Column(Integer, nullable=False)
    original_name = Column(String, nullable=True)
    business_card_id = Column(Integer, nullable=True)
    uploaded_at = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<ImageBlobORM(filename='{self.filename}', size={self.size})>"
