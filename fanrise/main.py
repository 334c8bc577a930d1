"""
fanrise API - Main entry point.

Run with `fanrise-api` (or `python -m fanrise.main`). Settings come from
the environment and `.env`.
"""

from __future__ import annotations

import logging

import uvicorn
from dotenv import load_dotenv

from fanrise.config import get_settings


def main():
    """Main entry point."""
    load_dotenv()
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    uvicorn.run(
        "fanrise.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug and not settings.is_production,
    )


if __name__ == "__main__":
    main()
