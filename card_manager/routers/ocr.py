"""
OCR route: recognise a card photo and return parsed contact fields.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from starlette.concurrency import run_in_threadpool

from .dependencies import error_response, get_image_service, get_ocr_service
from ..exceptions import CardManagerError
from ..models.business_card import ApiResponse
from ..models.ocr import OCRResponse
from ..services.image_storage import ImageService
from ..services.ocr_service import OCRService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ocr", tags=["ocr"])


@router.post("", response_model=ApiResponse[OCRResponse])
async def recognize_card(
    image: Optional[UploadFile] = File(None),
    ocr_service: OCRService = Depends(get_ocr_service),
    image_service: ImageService = Depends(get_image_service),
):
    """
    Run the OCR pipeline on an uploaded photo.

    Empty recognition is not an error; the response carries a warning
    and an empty parse instead.
    """
    if image is None:
        return error_response(400, "No file selected")

    try:
        data = await image.read()
        image_service.validate(data, image.content_type)

        # tesseract is CPU bound; keep it off the event loop
        result = await run_in_threadpool(ocr_service.process, data)

        message = "OCR completed" if result.text.strip() else "No text recognised"
        return ApiResponse[OCRResponse](success=True, data=result, message=message)

    except CardManagerError as e:
        logger.warning(f"OCR rejected: {e}")
        return error_response(e.status_code, str(e))
    except Exception as e:
        logger.error(f"Error during OCR: {e}", exc_info=True)
        return error_response(500, "OCR processing failed")
