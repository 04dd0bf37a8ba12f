"""Authentication module for the adapter."""

from .api_key import ApiKeyValidator

__all__ = ["ApiKeyValidator"]
