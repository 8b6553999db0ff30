"""
HTTP client for the backend API used by the frontend routes.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """The backend answered with an error envelope or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BackendClient:
    """
    Thin async wrapper over the JSON API.

    Every call returns the decoded envelope and raises BackendError when
    `success` is false.
    """

    def __init__(self, base_url: str, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"HTTP Error calling {method} {path}: {e}", exc_info=True)
            raise BackendError(f"Error connecting to backend: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise BackendError(f"Unexpected backend response ({response.status_code})", response.status_code) from e

        if not data.get("success"):
            raise BackendError(data.get("error") or "Unknown error", response.status_code)
        return data

    # Business cards

    async def list_cards(self, q: str = "", category: str = "", limit: int = 20, offset: int = 0) -> Dict[str, Any]:
        params = {"limit": limit, "offset": offset}
        if q:
            params["q"] = q
        if category:
            params["category"] = category
        return await self.request("GET", "/api/business-cards", params=params)

    async def get_card(self, card_id: int) -> Dict[str, Any]:
        data = await self.request("GET", f"/api/business-cards/{card_id}")
        return data["data"]

    async def create_card(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = await self.request("POST", "/api/business-cards", json=payload)
        return data["data"]

    async def update_card(self, card_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = await self.request("PUT", f"/api/business-cards/{card_id}", json=payload)
        return data["data"]

    async def delete_card(self, card_id: int) -> None:
        await self.request("DELETE", f"/api/business-cards/{card_id}")

    # Categories

    async def list_categories(self) -> List[Dict[str, Any]]:
        data = await self.request("GET", "/api/categories")
        return data["data"]

    async def create_category(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = await self.request("POST", "/api/categories", json=payload)
        return data["data"]

    async def delete_category(self, category_id: int) -> None:
        await self.request("DELETE", f"/api/categories/{category_id}")

    # Images and OCR

    async def upload_image(
        self, content: bytes, filename: str, content_type: str, business_card_id: Optional[int] = None
    ) -> Dict[str, Any]:
        form = {"businessCardId": str(business_card_id)} if business_card_id is not None else {}
        return await self.request(
            "POST",
            "/api/images/upload",
            files={"image": (filename, content, content_type)},
            data=form,
        )

    async def run_ocr(self, content: bytes, filename: str, content_type: str) -> Dict[str, Any]:
        # OCR runs several engine passes; allow it more time
        data = await self.request(
            "POST",
            "/api/ocr",
            files={"image": (filename, content, content_type)},
            timeout=300.0,
        )
        return data["data"]
