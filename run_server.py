"""API server entry point.

Usage:
    python run_server.py

    # Custom host/port:
    python run_server.py --host 0.0.0.0 --port 9000

    # Point at a different search backend:
    python run_server.py --search-url https://search.internal:9200
"""
from __future__ import annotations

import argparse
import logging
import os

logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Insight Engine API Server")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    parser.add_argument("--search-url", default=None, help="Search backend base URL")
    parser.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"])
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    import uvicorn

    from insight_engine.api.deps.providers import get_settings
    from insight_engine.api.main import create_app

    # Settings are read from the environment by every provider.
    os.environ["INSIGHT_API_HOST"] = args.host
    os.environ["INSIGHT_API_PORT"] = str(args.port)
    os.environ["INSIGHT_API_LOG_LEVEL"] = args.log_level.upper()
    if args.search_url:
        os.environ["INSIGHT_API_SEARCH_URL"] = args.search_url
    get_settings.cache_clear()
    app = create_app(get_settings())

    logger.info("Starting Insight Engine API on %s:%s", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
