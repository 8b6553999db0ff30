"""
Request-scoped accessors for services stored on app.state by the lifespan.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from ..database.card_repository import BusinessCardRepository
from ..database.category_repository import CategoryRepository
from ..models.business_card import ApiResponse
from ..services.image_storage import ImageService
from ..services.ocr_service import OCRService

logger = logging.getLogger(__name__)


def get_card_repository(request: Request) -> BusinessCardRepository:
    return request.app.state.card_repository


def get_category_repository(request: Request) -> CategoryRepository:
    return request.app.state.category_repository


def get_image_service(request: Request) -> ImageService:
    return request.app.state.image_service


def get_ocr_service(request: Request) -> OCRService:
    return request.app.state.ocr_service


def error_response(status_code: int, message: str, extra: Optional[Dict[str, Any]] = None) -> JSONResponse:
    """Build the {success: false, error} envelope with an HTTP status."""
    content = ApiResponse(success=False, error=message).model_dump(exclude_none=True)
    if extra:
        content.update(extra)
    return JSONResponse(status_code=status_code, content=content)
