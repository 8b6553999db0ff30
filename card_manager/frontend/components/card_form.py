"""
Create/edit modal for business cards, including the photo input and OCR prefill.
"""

from typing import Dict, List, Optional

from fasthtml.common import *

# (field name, label, input type)
CARD_FIELDS = [
    ("company_name", "Company", "text"),
    ("person_name", "Name", "text"),
    ("person_name_kana", "Name (kana)", "text"),
    ("department", "Department", "text"),
    ("position", "Position", "text"),
    ("email", "Email", "email"),
    ("phone", "Phone", "tel"),
    ("mobile", "Mobile", "tel"),
    ("fax", "Fax", "tel"),
    ("postal_code", "Postal code", "text"),
    ("address", "Address", "textarea"),
    ("website", "Website", "text"),
    ("notes", "Notes", "textarea"),
]

REQUIRED_FIELDS = {"company_name", "person_name"}


def close_modal() -> FT:
    return Div(id="modal")


def confidence_class(level: Optional[str]) -> str:
    """CSS class colouring an input by OCR confidence."""
    return f"confidence-{level}" if level else ""


def form_field(name: str, label: str, input_type: str, value: str = "", level: Optional[str] = None) -> FT:
    cls = f"form-input {confidence_class(level)}".strip()
    required = name in REQUIRED_FIELDS

    if input_type == "textarea":
        control = Textarea(value or "", name=name, id=f"field-{name}", rows="2", cls=cls)
    else:
        control = Input(type=input_type, name=name, id=f"field-{name}", value=value or "", required=required, cls=cls)

    return Div(
        Label(f"{label}{' *' if required else ''}", For=f"field-{name}"),
        control,
        cls="form-group",
    )


def card_form_fields(
    values: Optional[Dict[str, str]] = None,
    levels: Optional[Dict[str, str]] = None,
    warnings: Optional[List[str]] = None,
) -> FT:
    """
    Render the contact inputs; the OCR route swaps this block.

    Args:
        values: Current value per field
        levels: OCR confidence level per field ('high', 'medium', 'low')
        warnings: OCR warnings to show above the inputs

    Returns:
        FastHTML component with id 'card-form-fields'
    """
    values = values or {}
    levels = levels or {}

    notices = [P(w, cls="ocr-warning") for w in (warnings or [])]
    if levels:
        notices.append(
            P("Fields filled from the photo are coloured by confidence. Please check them.", cls="ocr-hint")
        )

    return Div(
        *notices,
        *[form_field(name, label, kind, values.get(name, ""), levels.get(name)) for name, label, kind in CARD_FIELDS],
        id="card-form-fields",
        cls="card-form-fields",
    )


def category_checkboxes(categories: List[dict], selected_ids: List[int]) -> FT:
    if not categories:
        return P("No categories yet.", cls="empty-state-hint")

    return Div(
        *[
            Label(
                Input(
                    type="checkbox",
                    name="category_ids",
                    value=str(c["id"]),
                    checked=c["id"] in selected_ids,
                ),
                Span(c["name"], cls="category-badge", style=f"background-color: {c.get('color') or '#3B82F6'}"),
                cls="category-option",
            )
            for c in categories
        ],
        cls="category-options",
    )


def card_form_modal(
    categories: List[dict],
    card: Optional[dict] = None,
    error: Optional[str] = None,
) -> FT:
    """
    Render the card modal. Passing a card switches it to edit mode.

    Args:
        categories: All categories, offered as checkboxes
        card: Existing card to edit
        error: Message from a failed save

    Returns:
        FastHTML component with id 'modal'
    """
    card = card or {}
    selected_ids = [c["id"] for c in card.get("categories", [])]
    title = "Edit business card" if card.get("id") else "New business card"

    preview = Img(
        src=card.get("image_url") or "",
        id="image-preview",
        cls="image-preview" if card.get("image_url") else "image-preview hidden",
        alt="Card photo",
    )

    image_section = Div(
        Label("Card photo", For="card-image"),
        Input(
            type="file",
            name="image",
            id="card-image",
            accept="image/jpeg,image/png,image/webp",
            capture="environment",
            onchange="previewCardImage(this)",
            cls="file-input",
        ),
        preview,
        Div(
            Button(
                "Run OCR",
                type="button",
                hx_post="/cards/ocr",
                hx_encoding="multipart/form-data",
                hx_include="#card-form",
                hx_target="#card-form-fields",
                hx_swap="outerHTML",
                hx_indicator="#ocr-indicator",
                cls="btn btn-secondary",
            ),
            Span("Reading card...", id="ocr-indicator", cls="htmx-indicator"),
            cls="ocr-actions",
        ),
        cls="image-section",
    )

    return Div(
        Div(
            Div(
                H2(title),
                Button("✕", hx_get="/modal/close", hx_target="#modal", hx_swap="outerHTML", cls="modal-close"),
                cls="modal-header",
            ),
            P(error, cls="error-message") if error else None,
            Form(
                Input(type="hidden", name="card_id", value=str(card.get("id") or "")),
                image_section,
                card_form_fields({name: card.get(name) or "" for name, _, _ in CARD_FIELDS}),
                Fieldset(Legend("Categories"), category_checkboxes(categories, selected_ids)),
                Div(
                    Button("Cancel", type="button", hx_get="/modal/close", hx_target="#modal",
                           hx_swap="outerHTML", cls="btn btn-secondary"),
                    Button("Save", type="submit", cls="btn btn-primary"),
                    cls="modal-actions",
                ),
                id="card-form",
                hx_post="/cards/save",
                hx_encoding="multipart/form-data",
                hx_target="#modal",
                hx_swap="outerHTML",
                cls="modal-form",
            ),
            cls="modal-content",
        ),
        cls="modal-overlay",
        id="modal",
    )


# Client-side preview of the selected photo
IMAGE_PREVIEW_SCRIPT = """
function previewCardImage(input) {
    const preview = document.getElementById('image-preview');
    if (!input.files || !input.files[0]) return;
    const reader = new FileReader();
    reader.onload = (e) => {
        preview.src = e.target.result;
        preview.classList.remove('hidden');
    };
    reader.readAsDataURL(input.files[0]);
}
"""
