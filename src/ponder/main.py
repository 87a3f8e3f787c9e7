"""
Ponder entry point.

This file handles startup concerns (arg-parsing, logging) and launches the HTTP API.
"""

import argparse
import logging
import sys

from ponder.agent.gateway import available_gateways
from ponder.api.app import run_api
from ponder.config import settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _init_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        stream=sys.stdout,
    )
    # Keep per-request client logs out of the agent trace
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main(argv: list[str] | None = None) -> None:
    """
    Main entry point for the Ponder application.

    Parses the command line, initializes logging, and serves the API.
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = argparse.ArgumentParser(description="Run the Ponder ReAct agent API")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address (default: %(default)s)")
    parser.add_argument(
        "--port", type=int, default=settings.API_PORT, help="Bind port (default: %(default)s)"
    )
    parser.add_argument(
        "--gateway",
        choices=available_gateways(),
        type=str.lower,
        default=settings.GATEWAY,
        help="Model gateway (default from env: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        type=str.lower,
        default=settings.LOG_LEVEL,
        help="Logging level (default from env: %(default)s)",
    )
    args = parser.parse_args(argv)

    # Override settings with command-line arguments
    settings.LOG_LEVEL = args.log_level
    settings.GATEWAY = args.gateway

    _init_logging(settings.LOG_LEVEL)

    logger.info("Starting Ponder [gateway=%s]", settings.GATEWAY)
    logger.debug("Settings: %s", settings.model_dump())

    run_api(host=args.host, port=args.port, reload=settings.DEBUG)


if __name__ == "__main__":
    main()
