"""API routers."""

from .business_cards import router as business_cards_router
from .categories import router as categories_router
from .images import router as images_router
from .ocr import router as ocr_router

__all__ = [
    "business_cards_router",
    "categories_router",
    "images_router",
    "ocr_router",
]
