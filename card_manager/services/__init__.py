"""Services module initialization."""

from .image_storage import (
    DatabaseObjectStore,
    FilesystemObjectStore,
    ImageService,
    ObjectStore,
)
from .ocr_service import OCREngine, OCRService
from .text_parser import parse_ocr_text

__all__ = [
    "DatabaseObjectStore",
    "FilesystemObjectStore",
    "ImageService",
    "ObjectStore",
    "OCREngine",
    "OCRService",
    "parse_ocr_text",
]
