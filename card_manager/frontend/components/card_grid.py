"""
Card grid component: search toolbar, card tiles and pagination.
"""

import json
from typing import List, Optional

from fasthtml.common import *


def category_badge(category: dict) -> FT:
    color = category.get("color") or "#3B82F6"
    return Span(category["name"], cls="category-badge", style=f"background-color: {color}")


def card_tile(card: dict, view: Optional[dict] = None) -> FT:
    """
    Render a single business card in the grid.

    Args:
        card: Business card as returned by the API
        view: Current search, filter and page, sent back on delete

    Returns:
        FastHTML component
    """
    subtitle = " / ".join(part for part in (card.get("department"), card.get("position")) if part)

    details = []
    for label, key in (("Email", "email"), ("Tel", "phone"), ("Mobile", "mobile")):
        if card.get(key):
            details.append(P(Span(f"{label}: ", cls="detail-label"), card[key], cls="card-detail"))

    thumbnail = (
        Img(src=card["image_url"], alt=card["person_name"], cls="card-thumbnail", loading="lazy")
        if card.get("image_url")
        else Div("No image", cls="card-thumbnail card-thumbnail-empty")
    )

    return Div(
        thumbnail,
        Div(
            H3(card["person_name"], cls="card-person"),
            P(card["company_name"], cls="card-company"),
            P(subtitle, cls="card-subtitle") if subtitle else None,
            *details,
            Div(*[category_badge(c) for c in card.get("categories", [])], cls="card-categories"),
            cls="card-body",
        ),
        Div(
            Button(
                "Edit",
                hx_get=f"/cards/{card['id']}/edit",
                hx_target="#modal",
                hx_swap="outerHTML",
                cls="btn btn-secondary btn-small",
            ),
            Button(
                "Delete",
                hx_delete=f"/cards/{card['id']}",
                hx_vals=json.dumps(view or {}),
                hx_confirm=f"Delete the business card for {card['person_name']}?",
                hx_target="#card-list",
                hx_swap="outerHTML",
                cls="btn btn-danger btn-small",
            ),
            cls="card-actions",
        ),
        cls="business-card-tile",
        id=f"card-{card['id']}",
    )


def pagination(total: int, page: int, page_size: int, q: str = "", category: str = "") -> Optional[FT]:
    pages = max(1, -(-total // page_size))
    if pages <= 1:
        return None

    def page_link(label: str, target: int, disabled: bool) -> FT:
        return Button(
            label,
            hx_get="/cards",
            hx_vals=json.dumps({"q": q, "category": category, "page": target}),
            hx_target="#card-list",
            hx_swap="outerHTML",
            disabled=disabled,
            cls="btn btn-secondary btn-small",
        )

    return Div(
        page_link("Previous", page - 1, page <= 1),
        Span(f"Page {page} of {pages}", cls="page-indicator"),
        page_link("Next", page + 1, page >= pages),
        cls="pagination",
    )


def card_grid(
    cards: List[dict],
    total: int,
    page: int = 1,
    page_size: int = 20,
    q: str = "",
    category: str = "",
    oob: bool = False,
) -> FT:
    """
    Render the card list region (replaced as a whole by htmx).

    Args:
        cards: Cards on the current page
        total: Total number of matching cards
        page: 1-based page number
        page_size: Cards per page
        q: Current search text
        category: Current category filter
        oob: Mark for an out-of-band swap

    Returns:
        FastHTML component with id 'card-list'
    """
    if cards:
        view = {"q": q, "category": category, "page": page}
        body = Div(*[card_tile(card, view) for card in cards], cls="card-grid")
    else:
        hint = "No cards match your search." if (q or category) else "No business cards registered yet."
        body = Div(P(hint, cls="empty-state"), cls="card-empty")

    extra = {"hx_swap_oob": "true"} if oob else {}
    return Div(
        P(f"{total} cards", cls="result-count"),
        body,
        pagination(total, page, page_size, q, category),
        id="card-list",
        cls="card-list",
        **extra,
    )


def search_toolbar(categories: List[dict], q: str = "", category: str = "", oob: bool = False) -> FT:
    """Search box and category filter driving the card list."""
    extra = {"hx_swap_oob": "true"} if oob else {}
    return Form(
        Input(
            type="search",
            name="q",
            value=q,
            placeholder="Search company, name or email...",
            cls="search-input",
        ),
        Select(
            Option("All categories", value="", selected=not category),
            *[Option(c["name"], value=c["name"], selected=(category == c["name"])) for c in categories],
            name="category",
            cls="filter-select",
        ),
        Button("Search", type="submit", cls="btn btn-primary"),
        hx_get="/cards",
        hx_target="#card-list",
        hx_swap="outerHTML",
        hx_trigger="submit, change",
        id="search-toolbar",
        cls="search-toolbar",
        **extra,
    )
