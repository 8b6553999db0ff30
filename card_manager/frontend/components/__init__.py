"""
Frontend components for the business card manager.
"""

from .card_grid import card_grid, card_tile, search_toolbar
from .card_form import card_form_fields, card_form_modal, close_modal
from .category_manager import category_manager_modal
from .toast import toast, toast_container

__all__ = [
    "card_grid",
    "card_tile",
    "search_toolbar",
    "card_form_fields",
    "card_form_modal",
    "close_modal",
    "category_manager_modal",
    "toast",
    "toast_container",
]
