"""
Core data models for business cards, categories and stored images.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional, Generic, TypeVar
from datetime import datetime


DEFAULT_CATEGORY_COLOR = "#3B82F6"
HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


def _blank_to_none(value):
    """Form posts send empty strings for untouched inputs."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class CategorySummary(BaseModel):
    """Category as embedded in a business card."""
    id: int
    name: str
    color: str = DEFAULT_CATEGORY_COLOR


class Category(BaseModel):
    """A user-defined tag applied to business cards."""
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Category identifier")
    name: str = Field(..., description="Unique category name")
    color: str = Field(DEFAULT_CATEGORY_COLOR, description="Display color (#RRGGBB)")
    description: Optional[str] = Field(None, description="Free-form description")
    card_count: int = Field(0, description="Number of cards tagged with this category")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryCreate(BaseModel):
    """Payload for creating a category."""
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(DEFAULT_CATEGORY_COLOR, pattern=HEX_COLOR_PATTERN)
    description: Optional[str] = None

    normalize_blanks = field_validator("name", "description", mode="before")(_blank_to_none)


class CategoryUpdate(BaseModel):
    """Partial update for a category."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    description: Optional[str] = None


class BusinessCardFields(BaseModel):
    """Contact fields shared by create, update and read models."""
    person_name_kana: Optional[str] = Field(None, description="Phonetic reading of the name")
    department: Optional[str] = None
    position: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    fax: Optional[str] = None
    postal_code: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = None

    normalize_blanks = field_validator(
        "person_name_kana", "department", "position", "email", "phone", "mobile",
        "fax", "postal_code", "address", "website", "notes",
        mode="before",
    )(_blank_to_none)


class BusinessCardCreate(BusinessCardFields):
    """Payload for registering a new business card."""
    company_name: Optional[str] = None
    person_name: Optional[str] = None
    registered_by: str = "anonymous"
    category_ids: List[int] = Field(default_factory=list)

    normalize_names = field_validator("company_name", "person_name", mode="before")(_blank_to_none)


class BusinessCardUpdate(BusinessCardFields):
    """
    Partial update for a business card.

    Only fields present in the request body are written; use
    model_dump(exclude_unset=True) to collect them.
    """
    company_name: Optional[str] = None
    person_name: Optional[str] = None
    category_ids: Optional[List[int]] = None

    normalize_names = field_validator("company_name", "person_name", mode="before")(_blank_to_none)


class BusinessCard(BusinessCardFields):
    """A business card contact record."""
    id: int = Field(..., description="Card identifier")
    company_name: str = Field(..., description="Company name")
    person_name: str = Field(..., description="Person name")
    image_url: Optional[str] = Field(None, description="URL of the card photo")
    image_filename: Optional[str] = Field(None, description="Stored image key")
    registered_by: str = "anonymous"
    categories: List[CategorySummary] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BusinessCardSearchParams(BaseModel):
    """Filters for listing business cards."""
    q: Optional[str] = None
    company_name: Optional[str] = None
    person_name: Optional[str] = None
    category: Optional[str] = None
    limit: int = Field(20, ge=1, le=100)
    offset: int = Field(0, ge=0)


class StoredImage(BaseModel):
    """Metadata for an image blob."""
    filename: str
    url: str
    size: int
    content_type: str
    uploaded_at: Optional[datetime] = None
    original_name: Optional[str] = None
    business_card_id: Optional[int] = None


T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Uniform success/error envelope returned by every JSON route."""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    total: Optional[int] = None
    message: Optional[str] = None


class ImageUploadResponse(BaseModel):
    """Response for image uploads."""
    success: bool
    image_url: Optional[str] = None
    image_filename: Optional[str] = None
    error: Optional[str] = None
