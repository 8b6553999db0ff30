"""
Toast notifications, swapped out-of-band into the page's toast container.
"""

from fasthtml.common import *


def toast_container() -> FT:
    return Div(id="toast-container", cls="toast-container")


def toast(message: str, kind: str = "success") -> FT:
    """
    Render a toast that replaces the container contents.

    Args:
        message: Text to show
        kind: 'success' or 'error'

    Returns:
        FastHTML component with hx-swap-oob set
    """
    return Div(
        Div(
            message,
            cls=f"toast toast-{kind}",
            # remove after a few seconds
            hx_get="/toast/clear",
            hx_trigger="load delay:4s",
            hx_target="#toast-container",
            hx_swap="outerHTML",
        ),
        id="toast-container",
        cls="toast-container",
        hx_swap_oob="true",
    )
