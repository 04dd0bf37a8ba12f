"""Run the adapter with uvicorn.

Bind address comes from ``EDGEONE_HOST``/``EDGEONE_PORT`` or the config file.
"""

import uvicorn

from edgeone_adapter.config_loader import load_settings
from edgeone_adapter.main import app


def main() -> None:
    settings = load_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")


if __name__ == "__main__":
    main()
