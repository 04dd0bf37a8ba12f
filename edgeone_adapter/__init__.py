"""edgeone-adapter - OpenAI-compatible front for the EdgeOne DeepSeek chatbot API.

Exposes ``/v1/models`` and ``/v1/chat/completions`` in the OpenAI format and
forwards chat requests to a single fixed upstream, translating request bodies,
complete responses and event streams between the two shapes.

Example:
    >>> from edgeone_adapter.main import app
    >>> import uvicorn
    >>> uvicorn.run(app, host="0.0.0.0", port=8000)
"""

from .config_loader import AdapterSettings, load_settings
from .core import ModelRegistry, ProxyError, UpstreamClient, build_registry
from .logging import logger, setup_logging
from .main import app, create_app

__all__ = [
    "AdapterSettings",
    "ModelRegistry",
    "ProxyError",
    "UpstreamClient",
    "app",
    "build_registry",
    "create_app",
    "load_settings",
    "logger",
    "setup_logging",
]
