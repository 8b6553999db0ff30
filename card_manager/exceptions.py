"""
Domain exceptions for the business card manager.

Repositories and services raise these; route handlers translate them
into the JSON error envelope.
"""


class CardManagerError(Exception):
    """Base class for all application errors."""

    status_code = 500


class NotFoundError(CardManagerError):
    """Requested record or blob does not exist."""

    status_code = 404


class ValidationFailedError(CardManagerError):
    """Input failed a business rule."""

    status_code = 400


class DuplicateCategoryError(ValidationFailedError):
    """A category with the same name already exists."""

    def __init__(self, name: str):
        super().__init__("Category name already exists")
        self.name = name


class CategoryInUseError(ValidationFailedError):
    """Category is still attached to business cards."""

    def __init__(self, category_id: int, card_count: int):
        super().__init__(
            f"Cannot delete category. {card_count} business cards are using this category."
        )
        self.category_id = category_id
        self.card_count = card_count


class ImageValidationError(ValidationFailedError):
    """Uploaded image was rejected."""


class OCRError(CardManagerError):
    """The OCR engine failed or the image could not be decoded."""

    status_code = 422
