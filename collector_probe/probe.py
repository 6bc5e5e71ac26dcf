"""Introspection probe for CI jobs and container debugging.

Execute a single GET request against one of the collector's introspection
routes and write the raw response body to stdout.

Exit Codes:
    0: The route returned HTTP 200; the body was written to stdout.
    1: Connection failed, the body could not be read, or non-200 response.

Environment Variables:
    COLLECTOR_HOST: Target host address (default: 127.0.0.1).
    LOG_LEVEL: Minimum logging verbosity (default: info).
"""

import argparse
import logging.config
import sys

import httpx

from collector_probe.config import get_settings
from collector_probe.core.logging_config import (
    bind_contextvars,
    configure_structlog_wrapper,
    get_logger,
    get_logging_config,
)
from collector_probe.introspection import (
    PROFILE_ROUTE,
    IntrospectionError,
    introspection_query,
)


def build_parser(default_host: str) -> argparse.ArgumentParser:
    """Build the probe argument parser.

    Args:
        default_host: Collector address used when `--host` is not given.

    Returns:
        argparse.ArgumentParser: Parser accepting an optional route and `--host`.
    """
    parser = argparse.ArgumentParser(
        prog="collector-probe",
        description="Query a collector introspection route and print the body.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=PROFILE_ROUTE,
        help=f"route to query (default: {PROFILE_ROUTE})",
    )
    parser.add_argument(
        "--host",
        default=default_host,
        help=f"collector address (default: {default_host})",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the probe and return the process exit code."""
    settings = get_settings()

    logging.config.dictConfig(get_logging_config(settings))
    configure_structlog_wrapper(settings)
    logger = get_logger("probe")

    args = build_parser(settings.COLLECTOR_HOST).parse_args(argv)
    bind_contextvars(collector_host=args.host)

    # --- Probe Execution ---
    try:
        body = introspection_query(args.host, args.path)
    except IntrospectionError as e:
        # Already logged by the query helper.
        logger.debug("Probe failed", error=str(e))
        return 1
    except httpx.TransportError as e:
        logger.error("Collector unreachable", path=args.path, error=repr(e))
        return 1

    sys.stdout.buffer.write(body)
    sys.stdout.buffer.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
