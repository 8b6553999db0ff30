"""
Image routes: multipart upload, binary fetch by filename, delete, list.
"""

import hashlib
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse, Response

from .dependencies import error_response, get_image_service
from ..exceptions import CardManagerError
from ..models.business_card import ApiResponse, ImageUploadResponse, StoredImage
from ..services.image_storage import ImageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/images", tags=["images"])


@router.post("/upload", response_model=ImageUploadResponse, status_code=201)
async def upload_image(
    image: Optional[UploadFile] = File(None),
    businessCardId: Optional[str] = Form(None),
    service: ImageService = Depends(get_image_service),
):
    """
    Upload a card photo.

    Args:
        image: JPEG, PNG or WebP file, at most the configured size
        businessCardId: Optional card to attach the image to

    Returns:
        Envelope with the image URL and stored filename
    """
    if image is None:
        return error_response(400, "No file selected")

    card_id = None
    if businessCardId:
        try:
            card_id = int(businessCardId)
        except ValueError:
            return error_response(400, "Invalid business card ID")

    try:
        data = await image.read()
        stored = service.upload(
            data,
            image.content_type,
            original_name=image.filename,
            business_card_id=card_id,
        )
        response = ImageUploadResponse(
            success=True,
            image_url=stored.url,
            image_filename=stored.filename,
        )
        return JSONResponse(status_code=201, content=response.model_dump(exclude_none=True))

    except CardManagerError as e:
        return error_response(e.status_code, str(e))
    except Exception as e:
        logger.error(f"Error uploading image: {e}", exc_info=True)
        return error_response(500, "Failed to upload file")


@router.get("", response_model=ApiResponse[List[StoredImage]])
def list_images(service: ImageService = Depends(get_image_service)):
    """List stored images (administrative)."""
    try:
        images = service.list_images()
        return ApiResponse[List[StoredImage]](success=True, data=images, total=len(images))

    except Exception as e:
        logger.error(f"Error listing images: {e}", exc_info=True)
        return error_response(500, "Failed to list images")


@router.get("/{filename}")
def get_image(filename: str, service: ImageService = Depends(get_image_service)):
    """Return image bytes with a long-lived cache header."""
    try:
        data, meta = service.get(filename)
        headers = {
            "ETag": f'"{hashlib.md5(data).hexdigest()}"',
            "Cache-Control": "public, max-age=31536000",
        }
        return Response(content=data, media_type=meta.content_type, headers=headers)

    except CardManagerError as e:
        return error_response(e.status_code, str(e))
    except Exception as e:
        logger.error(f"Error retrieving image {filename}: {e}", exc_info=True)
        return error_response(500, "Failed to retrieve image")


@router.delete("/{filename}")
def delete_image(filename: str, service: ImageService = Depends(get_image_service)):
    """Delete an image and clear it from any card that references it."""
    try:
        service.delete(filename)
        return JSONResponse(content={"success": True, "data": None})

    except CardManagerError as e:
        return error_response(e.status_code, str(e))
    except Exception as e:
        logger.error(f"Error deleting image {filename}: {e}", exc_info=True)
        return error_response(500, "Failed to delete image")
