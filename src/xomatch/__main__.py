"""Entry point for running xomatch via ``python -m xomatch``."""

from __future__ import annotations

import logging
import os

import uvicorn


def main() -> None:
    """Start the FastAPI-powered xomatch web server."""

    host = os.environ.get("XOMATCH_HOST", "0.0.0.0")
    port = int(os.environ.get("XOMATCH_PORT", "8000"))
    level = os.environ.get("XOMATCH_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("xomatch.ui:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
