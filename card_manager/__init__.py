"""Business card manager: card registry with photo upload and OCR field extraction."""

from .models import (
    ApiResponse,
    BusinessCard,
    BusinessCardCreate,
    BusinessCardUpdate,
    Category,
    CategoryCreate,
    CategoryUpdate,
    OCRResponse,
    ParsedCard,
)
from .database.database_service import DatabaseService
from .database.card_repository import BusinessCardRepository
from .database.category_repository import CategoryRepository
from .services.image_storage import DatabaseObjectStore, FilesystemObjectStore, ImageService
from .services.ocr_service import OCREngine, OCRService
from .services.text_parser import parse_ocr_text

__all__ = [
    # Models
    "ApiResponse",
    "BusinessCard",
    "BusinessCardCreate",
    "BusinessCardUpdate",
    "Category",
    "CategoryCreate",
    "CategoryUpdate",
    "OCRResponse",
    "ParsedCard",
    # Database
    "DatabaseService",
    "BusinessCardRepository",
    "CategoryRepository",
    # Services
    "DatabaseObjectStore",
    "FilesystemObjectStore",
    "ImageService",
    "OCREngine",
    "OCRService",
    "parse_ocr_text",
]
