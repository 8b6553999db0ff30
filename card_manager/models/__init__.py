"""Models module initialization."""

from .business_card import (
    ApiResponse,
    BusinessCard,
    BusinessCardCreate,
    BusinessCardSearchParams,
    BusinessCardUpdate,
    Category,
    CategoryCreate,
    CategorySummary,
    CategoryUpdate,
    ImageUploadResponse,
    StoredImage,
)
from .ocr import (
    ConfidenceLevel,
    OCRCandidate,
    OCRResponse,
    OCRResult,
    ParsedCard,
    ParsedField,
    QualityReport,
)

__all__ = [
    "ApiResponse",
    "BusinessCard",
    "BusinessCardCreate",
    "BusinessCardSearchParams",
    "BusinessCardUpdate",
    "Category",
    "CategoryCreate",
    "CategorySummary",
    "CategoryUpdate",
    "ImageUploadResponse",
    "StoredImage",
    "ConfidenceLevel",
    "OCRCandidate",
    "OCRResponse",
    "OCRResult",
    "ParsedCard",
    "ParsedField",
    "QualityReport",
]
