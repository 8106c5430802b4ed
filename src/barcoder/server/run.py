"""Helper for running the Barcoder ASGI application under uvicorn."""

from __future__ import annotations

import os

import uvicorn

APP_FACTORY = "barcoder.server.app:create_app"


def main() -> None:
    """Entry point used by `barcoder serve` and `python -m barcoder.server.run`."""

    host = os.environ.get("BARCODER_SERVER_HOST", "127.0.0.1")
    port = int(os.environ.get("BARCODER_SERVER_PORT", "8000"))
    reload_enabled = os.environ.get("RELOAD") == "1"

    uvicorn.run(
        APP_FACTORY,
        host=host,
        port=port,
        reload=reload_enabled,
        factory=True,
    )


if __name__ == "__main__":
    main()
