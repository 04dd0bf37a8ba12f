"""API routes for the adapter."""

from .chat import chat_completions
from .home import home_page
from .models import list_models

__all__ = [
    "chat_completions",
    "home_page",
    "list_models",
]
