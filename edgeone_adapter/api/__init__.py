"""API module for the adapter."""

from .routes import chat_completions, home_page, list_models

__all__ = [
    "chat_completions",
    "home_page",
    "list_models",
]
