"""
FastHTML frontend for the business card manager.

Provides the card grid, the create/edit modal with photo capture and OCR
prefill, and the category manager. All data goes through the backend API.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from fasthtml.common import *
from dotenv import load_dotenv
from starlette.datastructures import FormData, UploadFile
from starlette.responses import HTMLResponse

from card_manager.config import settings
from card_manager.frontend.backend_client import BackendClient, BackendError
from card_manager.frontend.components.card_form import (
    CARD_FIELDS,
    IMAGE_PREVIEW_SCRIPT,
    card_form_fields,
    card_form_modal,
    close_modal,
)
from card_manager.frontend.components.card_grid import card_grid, search_toolbar
from card_manager.frontend.components.category_manager import category_manager_modal
from card_manager.frontend.components.toast import toast, toast_container
from card_manager.models.ocr import ParsedCard
from card_manager.services.text_parser import merge_into_form

# Load environment variables
load_dotenv()

app, rt = fast_app(
    hdrs=(
        Link(rel="stylesheet", href="/static/styles.css"),
        Script(IMAGE_PREVIEW_SCRIPT),
    ),
    pico=False,
    secret_key=os.getenv("SECRET_KEY", "dev-secret-key-change-in-production"),
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

backend = BackendClient(settings.backend_url)
PAGE_SIZE = settings.default_page_size


def form_values(form: FormData) -> Dict[str, str]:
    """Current text of every card input in a submitted form."""
    return {name: (form.get(name) or "").strip() for name, _, _ in CARD_FIELDS}


def card_payload(form: FormData) -> Dict[str, Any]:
    """
    Build the create/update body from the modal form.

    Empty inputs are sent as null so that clearing a field on edit clears it
    on the card as well.
    """
    payload: Dict[str, Any] = {name: (value or None) for name, value in form_values(form).items()}
    payload["category_ids"] = [int(value) for value in form.getlist("category_ids") if str(value).isdigit()]
    return payload


def uploaded_file(form: FormData) -> Optional[UploadFile]:
    file = form.get("image")
    if isinstance(file, UploadFile) and file.filename:
        return file
    return None


def keep_modal(*components) -> HTMLResponse:
    """Leave the modal untouched; only out-of-band parts (toasts) are applied."""
    return HTMLResponse(to_xml(Div(*components)), headers={"HX-Reswap": "none"})


async def render_grid(q: str = "", category: str = "", page: int = 1, oob: bool = False) -> FT:
    page = max(1, page)
    data = await backend.list_cards(q=q, category=category, limit=PAGE_SIZE, offset=(page - 1) * PAGE_SIZE)
    if not data.get("data") and data.get("total", 0) and page > 1:
        # Page emptied by a delete; show the last page that still has cards
        page = -(-data["total"] // PAGE_SIZE)
        data = await backend.list_cards(q=q, category=category, limit=PAGE_SIZE, offset=(page - 1) * PAGE_SIZE)
    return card_grid(
        data.get("data", []),
        data.get("total", 0),
        page=page,
        page_size=PAGE_SIZE,
        q=q,
        category=category,
        oob=oob,
    )


@rt("/static/{filepath:path}")
def serve_static(filepath: str):
    """Serve static files."""
    static_dir = Path(__file__).parent / "static"
    return FileResponse(static_dir / filepath)


@rt("/")
async def get():
    """Render the main page."""
    try:
        categories = await backend.list_categories()
        grid = await render_grid()
    except BackendError as e:
        logger.error(f"Error loading cards: {e}", exc_info=True)
        return Title("Business Cards"), Main(
            Div(
                H1("Error Loading Cards"),
                P(f"Failed to load business cards: {e}"),
                A("Retry", href="/", cls="btn btn-primary"),
                cls="container error-container",
            )
        )

    return Title("Business Cards"), Main(
        Div(
            Div(
                H1("Business Cards", cls="page-title"),
                Div(
                    Button("New card", hx_get="/cards/new", hx_target="#modal", hx_swap="outerHTML",
                           cls="btn btn-primary"),
                    Button("Categories", hx_get="/categories", hx_target="#modal", hx_swap="outerHTML",
                           cls="btn btn-secondary"),
                    cls="page-actions",
                ),
                cls="page-header",
            ),
            search_toolbar(categories),
            grid,
            close_modal(),
            toast_container(),
            cls="container",
            id="main-content",
        )
    )


@rt("/cards")
async def get(q: str = "", category: str = "", page: int = 1):
    """Card list partial for search, filter and paging."""
    try:
        return await render_grid(q=q, category=category, page=page)
    except BackendError as e:
        logger.error(f"Error searching cards: {e}", exc_info=True)
        return keep_modal(toast(f"Failed to load cards: {e}", "error"))


@rt("/cards/new")
async def get():
    """Render the empty card modal."""
    try:
        categories = await backend.list_categories()
    except BackendError as e:
        return keep_modal(toast(f"Failed to load categories: {e}", "error"))
    return card_form_modal(categories)


@rt("/cards/{card_id}/edit")
async def get(card_id: int):
    """Render the modal for an existing card."""
    try:
        card = await backend.get_card(card_id)
        categories = await backend.list_categories()
    except BackendError as e:
        logger.error(f"Error loading card {card_id}: {e}", exc_info=True)
        return keep_modal(toast(f"Failed to load card: {e}", "error"))
    return card_form_modal(categories, card=card)


@rt("/cards/ocr")
async def post(req):
    """
    Send the selected photo to the OCR endpoint and re-render the inputs.

    Values the user already typed are kept; only empty inputs are filled,
    and those are coloured by the parser's confidence.
    """
    form = await req.form()
    existing = form_values(form)
    file = uploaded_file(form)

    if file is None:
        return card_form_fields(existing, warnings=["Select or take a photo first."])

    try:
        content = await file.read()
        result = await backend.run_ocr(content, file.filename, file.content_type or "image/jpeg")
    except BackendError as e:
        logger.warning(f"OCR failed: {e}")
        return card_form_fields(existing, warnings=[f"OCR failed: {e}"])

    parsed = ParsedCard.model_validate(result.get("parsed") or {})
    merged = merge_into_form(existing, parsed)
    levels = {
        name: field.level
        for name, field in parsed.fields.items()
        if not existing.get(name) and merged.get(name) == field.value
    }
    logger.info(f"OCR filled {len(levels)} fields (preset={result.get('preset')}, score={result.get('score')})")

    return card_form_fields(merged, levels=levels, warnings=result.get("warnings"))


@rt("/cards/save")
async def post(req):
    """Create or update a card, then upload and attach the photo if one was selected."""
    form = await req.form()
    payload = card_payload(form)
    card_id = form.get("card_id")
    file = uploaded_file(form)

    if not payload.get("company_name") or not payload.get("person_name"):
        return keep_modal(toast("Company name and person name are required", "error"))

    try:
        if card_id:
            card = await backend.update_card(int(card_id), payload)
        else:
            card = await backend.create_card(payload)
    except BackendError as e:
        logger.error(f"Error saving card: {e}", exc_info=True)
        return keep_modal(toast(f"Failed to save card: {e}", "error"))

    try:
        if file is not None:
            content = await file.read()
            await backend.upload_image(content, file.filename, file.content_type or "image/jpeg", card["id"])
    except BackendError as e:
        # The card exists now, so reopen it in edit mode
        logger.error(f"Error uploading photo for card {card['id']}: {e}", exc_info=True)
        try:
            categories = await backend.list_categories()
            grid = await render_grid(oob=True)
        except BackendError as reload_error:
            logger.error(f"Error reloading after failed upload: {reload_error}", exc_info=True)
            return card_form_modal([], card=card, error=f"Card saved, but the photo upload failed: {e}")
        return (
            card_form_modal(categories, card=card, error=f"Card saved, but the photo upload failed: {e}"),
            grid,
            toast(f"Photo upload failed: {e}", "error"),
        )

    try:
        grid = await render_grid(oob=True)
    except BackendError as e:
        logger.error(f"Error refreshing cards: {e}", exc_info=True)
        return close_modal(), toast(f"Card saved, but the list could not be refreshed: {e}", "error")

    message = "Business card updated" if card_id else "Business card registered"
    return close_modal(), grid, toast(message)


@rt("/cards/{card_id}")
async def delete(card_id: int, q: str = "", category: str = "", page: int = 1):
    """Delete a card and refresh the grid, keeping the current search, filter and page."""
    try:
        await backend.delete_card(card_id)
        grid = await render_grid(q=q, category=category, page=page)
    except BackendError as e:
        logger.error(f"Error deleting card {card_id}: {e}", exc_info=True)
        return keep_modal(toast(f"Failed to delete card: {e}", "error"))

    return grid, toast("Business card deleted")


async def render_category_manager(message: str, error: Optional[str] = None):
    """Manager modal, refreshed search toolbar and a toast."""
    categories = await backend.list_categories()
    return (
        category_manager_modal(categories, error=error),
        search_toolbar(categories, oob=True),
        toast(error or message, "error" if error else "success"),
    )


@rt("/categories")
async def get():
    """Render the category manager."""
    try:
        categories = await backend.list_categories()
    except BackendError as e:
        return keep_modal(toast(f"Failed to load categories: {e}", "error"))
    return category_manager_modal(categories)


@rt("/categories")
async def post(name: str, color: str = "#3B82F6", description: str = ""):
    """Create a category."""
    error = None
    try:
        await backend.create_category({"name": name, "color": color, "description": description or None})
    except BackendError as e:
        error = str(e)

    try:
        return await render_category_manager(f"Category '{name}' created", error)
    except BackendError as e:
        return keep_modal(toast(f"Failed to load categories: {e}", "error"))


@rt("/categories/{category_id}")
async def delete(category_id: int):
    """Delete a category; refused by the backend while cards use it."""
    error = None
    try:
        await backend.delete_category(category_id)
    except BackendError as e:
        error = str(e)

    try:
        return await render_category_manager("Category deleted", error)
    except BackendError as e:
        return keep_modal(toast(f"Failed to load categories: {e}", "error"))


@rt("/modal/close")
def get():
    """Close the modal."""
    return close_modal()


@rt("/toast/clear")
def get():
    return toast_container()


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting FastHTML frontend on http://localhost:{settings.frontend_port}")
    logger.info(f"Make sure FastAPI backend is running on {settings.backend_url}")
    uvicorn.run(app, host=settings.host, port=settings.frontend_port)
