"""
Business card routes: list, get, create, update, delete.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .dependencies import error_response, get_card_repository
from ..database.card_repository import BusinessCardRepository
from ..exceptions import CardManagerError
from ..models.business_card import (
    ApiResponse,
    BusinessCard,
    BusinessCardCreate,
    BusinessCardSearchParams,
    BusinessCardUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/business-cards", tags=["business-cards"])


@router.get("", response_model=ApiResponse[List[BusinessCard]])
def list_business_cards(
    q: Optional[str] = None,
    company_name: Optional[str] = None,
    person_name: Optional[str] = None,
    category: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    repository: BusinessCardRepository = Depends(get_card_repository),
):
    """
    List business cards with search and filters.

    Args:
        q: Matches company name, person name or email
        company_name: Company name substring
        person_name: Person name substring
        category: Exact category name
        limit: Page size (default: 20)
        offset: Number of results to skip (default: 0)

    Returns:
        Envelope with the page of cards and the total match count
    """
    try:
        params = BusinessCardSearchParams(
            q=q,
            company_name=company_name,
            person_name=person_name,
            category=category,
            limit=limit,
            offset=offset,
        )
        cards = repository.list_cards(params)
        total = repository.count_cards(params)
        return ApiResponse[List[BusinessCard]](success=True, data=cards, total=total)

    except Exception as e:
        logger.error(f"Error fetching business cards: {e}", exc_info=True)
        return error_response(500, "Failed to fetch business cards")


@router.get("/{card_id}", response_model=ApiResponse[BusinessCard])
def get_business_card(
    card_id: int,
    repository: BusinessCardRepository = Depends(get_card_repository),
):
    """Get a single business card with its categories."""
    try:
        card = repository.get_card(card_id)
        if card is None:
            return error_response(404, "Business card not found")
        return ApiResponse[BusinessCard](success=True, data=card)

    except Exception as e:
        logger.error(f"Error fetching business card {card_id}: {e}", exc_info=True)
        return error_response(500, "Failed to fetch business card")


@router.post("", response_model=ApiResponse[BusinessCard], status_code=201)
def create_business_card(
    payload: BusinessCardCreate,
    repository: BusinessCardRepository = Depends(get_card_repository),
):
    """Register a new business card. Company and person name are required."""
    try:
        card = repository.create_card(payload)
        return JSONResponse(
            status_code=201,
            content=jsonable_encoder(ApiResponse[BusinessCard](success=True, data=card)),
        )

    except CardManagerError as e:
        return error_response(e.status_code, str(e))
    except Exception as e:
        logger.error(f"Error creating business card: {e}", exc_info=True)
        return error_response(500, "Failed to create business card")


@router.put("/{card_id}", response_model=ApiResponse[BusinessCard])
def update_business_card(
    card_id: int,
    payload: BusinessCardUpdate,
    repository: BusinessCardRepository = Depends(get_card_repository),
):
    """Update the fields present in the request body."""
    try:
        card = repository.update_card(card_id, payload)
        return ApiResponse[BusinessCard](success=True, data=card)

    except CardManagerError as e:
        return error_response(e.status_code, str(e))
    except Exception as e:
        logger.error(f"Error updating business card {card_id}: {e}", exc_info=True)
        return error_response(500, "Failed to update business card")


@router.delete("/{card_id}")
def delete_business_card(
    card_id: int,
    repository: BusinessCardRepository = Depends(get_card_repository),
):
    """Delete a business card and its category links."""
    try:
        if not repository.delete_card(card_id):
            return error_response(404, "Business card not found")
        return JSONResponse(content={"success": True, "data": None})

    except Exception as e:
        logger.error(f"Error deleting business card {card_id}: {e}", exc_info=True)
        return error_response(500, "Failed to delete business card")
