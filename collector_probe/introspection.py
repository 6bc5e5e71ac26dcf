"""Client for the collector's introspection HTTP endpoint.

The collector serves introspection and profiling routes over plain HTTP on a
fixed port. Tests use `introspection_query` to fetch a route's raw body. Each
call performs exactly one blocking GET on its own connection; polling and
retries are left to the caller.
"""

import httpx

from collector_probe.core.logging_config import get_logger

logger = get_logger(__name__)

INTROSPECTION_PORT = 8080

# Profiling routes.
PROFILE_ROUTE = "/profile"
PROFILE_CPU_ROUTE = "/profile/cpu"
PROFILE_HEAP_ROUTE = "/profile/heap"

# State routes.
NETWORK_CONNECTION_ROUTE = "/state/network/connection"
NETWORK_ENDPOINT_ROUTE = "/state/network/endpoint"
CONTAINERS_ROUTE = "/state/containers"


class IntrospectionError(Exception):
    """Base class for introspection query failures."""


class IntrospectionStatusError(IntrospectionError):
    """The collector answered with a status other than 200 OK.

    Attributes:
        url: The URL that was queried.
        status_code: Numeric HTTP status returned by the collector.
        reason_phrase: Reason phrase from the status line.
    """

    def __init__(self, url: str, status_code: int, reason_phrase: str):
        self.url = url
        self.status_code = status_code
        self.reason_phrase = reason_phrase
        super().__init__(f"IntrospectionQuery failed with {self.status}")

    @property
    def status(self) -> str:
        """Status line text, e.g. ``404 Not Found``."""
        return f"{self.status_code} {self.reason_phrase}".rstrip()


class IntrospectionURLError(IntrospectionError):
    """The host and path did not compose into a valid URL.

    Raised before any connection is attempted, e.g. for a path that does not
    start with ``/`` and so runs into the port number.
    """

    def __init__(self, url: str, reason: str):
        self.url = url
        super().__init__(f"IntrospectionQuery failed with invalid URL {url!r}: {reason}")


def build_introspection_url(host: str, path: str) -> str:
    """Compose the introspection URL for `path` on `host`.

    Neither argument is validated. `path` is appended verbatim and is
    expected to start with ``/``.
    """
    return f"http://{host}:{INTROSPECTION_PORT}{path}"


def introspection_query(host: str, path: str) -> bytes:
    """Fetch the raw body of an introspection route.

    Args:
        host: Address of the collector under test.
        path: Route to query, e.g. ``/profile``.

    Returns:
        bytes: The complete response body.

    Raises:
        IntrospectionStatusError: The collector answered with a non-200 status.
        IntrospectionURLError: `host` and `path` do not form a valid URL.
        httpx.TransportError: The request could not be sent or the body could
            not be read in full.
    """
    url = build_introspection_url(host, path)
    logger.debug("Querying collector introspection endpoint", url=url)

    try:
        with httpx.stream("GET", url) as response:
            if response.status_code != httpx.codes.OK:
                error = IntrospectionStatusError(
                    url, response.status_code, response.reason_phrase
                )
                logger.error(str(error), url=url, status=error.status)
                raise error

            return response.read()
    except httpx.InvalidURL as e:
        error = IntrospectionURLError(url, str(e))
        logger.error(str(error), url=url)
        raise error from e
