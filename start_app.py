# start_app.py
"""Launch the billing API server."""

from __future__ import annotations

import argparse
import os

import uvicorn
from dotenv import load_dotenv

import config


def main(argv: list[str] | None = None) -> None:
    """Load settings, report the persistence mode, then start the API."""

    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--fallback-only",
        action="store_true",
        help="Disable the atomic invoice procedure and always use the sequential path",
    )
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))
    args = parser.parse_args(argv)

    load_dotenv()  # load environment variables from a .env file

    if args.fallback_only:
        os.environ["ATOMIC_PROCEDURE_ENABLED"] = "false"
        config.get_settings.cache_clear()

    settings = config.get_settings()
    mode = "atomic" if settings.atomic_procedure_enabled else "fallback-only"
    print(f"billing api on :{args.port} ({mode}, db={settings.database_url})")

    uvicorn.run(
        "pos.app.main:create_app",
        factory=True,
        host="0.0.0.0",  # nosec B104: bind for local development
        port=args.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
