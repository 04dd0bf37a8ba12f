"""Models listing endpoint - OpenAI compatible."""

import logging

from fastapi import Request

from ...types import ModelList

logger = logging.getLogger("edgeone-adapter")


async def list_models(request: Request) -> dict:
    """List advertised models in OpenAI API format.

    GET /v1/models
    """
    logger.info("Received models list request")
    models: ModelList = {
        "object": "list",
        "data": request.app.state.registry.list_advertised(),
    }
    return dict(models)
