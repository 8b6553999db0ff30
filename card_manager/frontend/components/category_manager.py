"""
Category manager modal: list, create and delete categories.
"""

from typing import List, Optional

from fasthtml.common import *


def category_row(category: dict) -> FT:
    color = category.get("color") or "#3B82F6"
    return Li(
        Span(cls="color-swatch", style=f"background-color: {color}"),
        Span(category["name"], cls="category-name"),
        Span(f"{category.get('card_count', 0)} cards", cls="category-count"),
        Button(
            "Delete",
            hx_delete=f"/categories/{category['id']}",
            hx_confirm=f"Delete the category '{category['name']}'?",
            hx_target="#modal",
            hx_swap="outerHTML",
            cls="btn btn-danger btn-small",
        ),
        cls="category-row",
    )


def category_manager_modal(categories: List[dict], error: Optional[str] = None) -> FT:
    """
    Render the category manager.

    Args:
        categories: Categories with card counts
        error: Message from a failed create or delete

    Returns:
        FastHTML component with id 'modal'
    """
    listing = (
        Ul(*[category_row(c) for c in categories], cls="category-list")
        if categories
        else P("No categories yet.", cls="empty-state")
    )

    return Div(
        Div(
            Div(
                H2("Categories"),
                Button("✕", hx_get="/modal/close", hx_target="#modal", hx_swap="outerHTML", cls="modal-close"),
                cls="modal-header",
            ),
            P(error, cls="error-message") if error else None,
            listing,
            Form(
                Input(type="text", name="name", placeholder="New category name", required=True,
                      maxlength="100", cls="form-input"),
                Input(type="color", name="color", value="#3B82F6", cls="color-input"),
                Input(type="text", name="description", placeholder="Description (optional)", cls="form-input"),
                Button("Add", type="submit", cls="btn btn-primary"),
                hx_post="/categories",
                hx_target="#modal",
                hx_swap="outerHTML",
                cls="category-form",
            ),
            cls="modal-content",
        ),
        cls="modal-overlay",
        id="modal",
    )
