"""
Category routes.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .dependencies import error_response, get_category_repository
from ..database.category_repository import CategoryRepository
from ..exceptions import CardManagerError
from ..models.business_card import ApiResponse, Category, CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=ApiResponse[List[Category]])
def list_categories(repository: CategoryRepository = Depends(get_category_repository)):
    """List categories by name, each with its card count."""
    try:
        categories = repository.list_categories()
        return ApiResponse[List[Category]](success=True, data=categories, total=len(categories))

    except Exception as e:
        logger.error(f"Error fetching categories: {e}", exc_info=True)
        return error_response(500, "Failed to fetch categories")


@router.get("/{category_id}", response_model=ApiResponse[Category])
def get_category(category_id: int, repository: CategoryRepository = Depends(get_category_repository)):
    try:
        category = repository.get_category(category_id)
        if category is None:
            return error_response(404, "Category not found")
        return ApiResponse[Category](success=True, data=category)

    except Exception as e:
        logger.error(f"Error fetching category {category_id}: {e}", exc_info=True)
        return error_response(500, "Failed to fetch category")


@router.post("", response_model=ApiResponse[Category], status_code=201)
def create_category(payload: CategoryCreate, repository: CategoryRepository = Depends(get_category_repository)):
    """Create a category; names must be unique."""
    try:
        category = repository.create_category(payload)
        return JSONResponse(
            status_code=201,
            content=jsonable_encoder(ApiResponse[Category](success=True, data=category)),
        )

    except CardManagerError as e:
        return error_response(e.status_code, str(e))
    except Exception as e:
        logger.error(f"Error creating category: {e}", exc_info=True)
        return error_response(500, "Failed to create category")


@router.put("/{category_id}", response_model=ApiResponse[Category])
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    repository: CategoryRepository = Depends(get_category_repository),
):
    try:
        category = repository.update_category(category_id, payload)
        return ApiResponse[Category](success=True, data=category)

    except CardManagerError as e:
        return error_response(e.status_code, str(e))
    except Exception as e:
        logger.error(f"Error updating category {category_id}: {e}", exc_info=True)
        return error_response(500, "Failed to update category")


@router.delete("/{category_id}")
def delete_category(category_id: int, repository: CategoryRepository = Depends(get_category_repository)):
    """Delete a category. Refused while business cards still use it."""
    try:
        if not repository.delete_category(category_id):
            return error_response(404, "Category not found")
        return JSONResponse(content={"success": True, "message": "Category deleted successfully"})

    except CardManagerError as e:
        return error_response(e.status_code, str(e))
    except Exception as e:
        logger.error(f"Error deleting category {category_id}: {e}", exc_info=True)
        return error_response(500, "Failed to delete category")
