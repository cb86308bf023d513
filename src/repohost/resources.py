"""JSON resources: the single I/O chokepoint towards hosting providers.

Provides the Resource value (status code + parsed JSON body + headers), the
abstract JsonResources contract, and HttpxJsonResources, an async
httpx-based implementation with pooled connections.

JsonResources never raises for a non-2xx answer: the caller gets the status
and decides whether it is fatal. Only transport failures (timeouts, refused
connections) raise HostingError.
"""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from .config import HostingConfig, get_config
from .exceptions import (
    HostingError,
    MalformedPayload,
    NotAuthenticated,
    UnexpectedStatus,
)
from .metrics import (
    failures_total,
    provider_label,
    request_duration_seconds,
    requests_total,
)
from .tokens import AccessToken

logger = logging.getLogger("repohost.resources")

__all__ = ["HttpxJsonResources", "JsonResources", "Resource", "ensure_ok"]


@dataclass(frozen=True)
class Resource:
    """A provider's answer to one request.

    Attributes:
        status_code: HTTP status code
        body: Parsed JSON body, None when the body was empty or not JSON
        headers: Response headers (case-insensitive lookup)
    """

    status_code: int
    body: Any = None
    headers: httpx.Headers = field(default_factory=httpx.Headers)

    def __post_init__(self) -> None:
        if not isinstance(self.headers, httpx.Headers):
            object.__setattr__(self, "headers", httpx.Headers(self.headers or {}))

    def json_object(self) -> dict[str, Any]:
        """The body as a JSON object.

        Raises:
            MalformedPayload: If the body is not a JSON object.
        """
        if not isinstance(self.body, dict):
            raise MalformedPayload(
                f"Expected a JSON object, got {type(self.body).__name__}"
            )
        return self.body

    def json_array(self) -> list[Any]:
        """The body as a JSON array.

        Raises:
            MalformedPayload: If the body is not a JSON array.
        """
        if not isinstance(self.body, list):
            raise MalformedPayload(
                f"Expected a JSON array, got {type(self.body).__name__}"
            )
        return self.body

    def items(self) -> list[Any]:
        """Elements of a listing: a bare array or an envelope holding one.

        Bitbucket wraps listings in {"values": [...]}, Github search in
        {"items": [...]}.

        Raises:
            MalformedPayload: If no array can be found.
        """
        if isinstance(self.body, list):
            return self.body
        if isinstance(self.body, dict):
            for key in ("values", "items"):
                if isinstance(self.body.get(key), list):
                    return self.body[key]
        raise MalformedPayload("Expected a JSON array or an envelope containing one")


def ensure_ok(resource: Resource, uri: str, what: str) -> Resource:
    """Accept a 200 OK resource, fail fatally otherwise.

    Args:
        resource: Fetched resource
        uri: URI it was fetched from, for the error message
        what: What was being fetched, e.g. "Unable to fetch Github organizations"

    Raises:
        NotAuthenticated: On 401
        UnexpectedStatus: On any other status but 200
    """
    if resource.status_code == 200:
        return resource
    if resource.status_code == 401:
        raise NotAuthenticated()
    raise UnexpectedStatus(what, uri, resource.status_code)


class JsonResources(ABC):
    """Performs authenticated HTTP requests and returns Resources.

    Implementations must hold no per-request mutable state: one instance is
    shared by every domain object of a provider session and may be awaited
    concurrently.
    """

    @abstractmethod
    async def request(
        self,
        method: str,
        uri: str,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Resource:
        """Send one request.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE)
            uri: Absolute request URI
            body: JSON-serialisable body, or None for an empty body
            headers: Extra request headers

        Returns:
            The Resource, whatever its status code.

        Raises:
            HostingError: When no HTTP response could be obtained.
        """

    @abstractmethod
    def authenticated(self, token: AccessToken) -> "JsonResources":
        """A JsonResources which sends the given token with every request."""

    async def get(
        self, uri: str, headers: Mapping[str, str] | None = None
    ) -> Resource:
        return await self.request("GET", uri, headers=headers)

    async def post(self, uri: str, body: Any = None) -> Resource:
        return await self.request("POST", uri, body=body)

    async def put(self, uri: str, body: Any = None) -> Resource:
        return await self.request("PUT", uri, body=body)

    async def patch(self, uri: str, body: Any = None) -> Resource:
        return await self.request("PATCH", uri, body=body)

    async def delete(self, uri: str, body: Any = None) -> Resource:
        return await self.request("DELETE", uri, body=body)


class HttpxJsonResources(JsonResources):
    """JsonResources over a long-lived httpx.AsyncClient.

    Instances returned by authenticated() share the connection pool of the
    instance that created them; only the creator closes it.

    Example:
        >>> async with HttpxJsonResources() as resources:
        ...     github = resources.authenticated(AccessToken.github("ghp_..."))
        ...     resource = await github.get("https://api.github.com/user/orgs")
        ...     resource.status_code
        200
    """

    def __init__(
        self,
        token: AccessToken | None = None,
        client: httpx.AsyncClient | None = None,
        config: HostingConfig | None = None,
    ) -> None:
        """Initialize the resources.

        Args:
            token: Credential sent with every request (default: none)
            client: Existing httpx client to share; a new one is created if None
            config: Settings for timeouts, pool limits and User-Agent
        """
        self.token = token or AccessToken.none()
        self._config = config or get_config()
        self._owns_client = client is None
        if client is None:
            client = httpx.AsyncClient(
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                    "User-Agent": self._config.user_agent,
                },
                timeout=httpx.Timeout(
                    connect=self._config.connect_timeout,
                    read=self._config.read_timeout,
                    write=self._config.write_timeout,
                    pool=self._config.pool_timeout,
                ),
                limits=httpx.Limits(
                    max_keepalive_connections=self._config.max_keepalive_connections,
                    max_connections=self._config.max_connections,
                ),
            )
        self._client = client

    async def __aenter__(self) -> "HttpxJsonResources":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the httpx client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def authenticated(self, token: AccessToken) -> "HttpxJsonResources":
        return HttpxJsonResources(token=token, client=self._client, config=self._config)

    async def request(
        self,
        method: str,
        uri: str,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Resource:
        method = method.upper()
        provider = provider_label(uri)
        request_headers = {**self.token.headers(), **(headers or {})}

        logger.debug("%s [%s]", method, uri)
        start = time.monotonic()
        try:
            response = await self._client.request(
                method,
                uri,
                json=body,
                headers=request_headers,
            )
        except httpx.TimeoutException as e:
            failures_total.labels(provider=provider, error="timeout").inc()
            raise HostingError(f"Timeout on {method} [{uri}]: {e}") from e
        except httpx.HTTPError as e:
            failures_total.labels(provider=provider, error="transport").inc()
            raise HostingError(f"Couldn't {method} [{uri}]: {e}") from e

        request_duration_seconds.labels(provider=provider, method=method).observe(
            time.monotonic() - start
        )
        requests_total.labels(
            provider=provider, method=method, status=str(response.status_code)
        ).inc()

        return Resource(
            status_code=response.status_code,
            body=self._parse_body(response, uri),
            headers=response.headers,
        )

    @staticmethod
    def _parse_body(response: httpx.Response, uri: str) -> Any:
        """Parse a JSON body; empty or non-JSON bodies become None."""
        if not response.content:
            return None
        try:
            return response.json()
        except (ValueError, UnicodeDecodeError):
            logger.debug(
                "Non-JSON body from [%s] (status %d)", uri, response.status_code
            )
            return None
