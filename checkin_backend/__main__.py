"""
Run the check-in API with uvicorn: ``python -m checkin_backend``.
"""

from __future__ import annotations

import argparse
import logging
import os

import uvicorn

from checkin_backend.config import get_settings


def main() -> None:
    parser = argparse.ArgumentParser(description="Weekly check-in API server.")
    parser.add_argument("--host", default=os.environ.get("HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", "5174")))
    parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development."
    )
    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "checkin_backend.app:create_app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        factory=True,
    )


if __name__ == "__main__":
    main()
