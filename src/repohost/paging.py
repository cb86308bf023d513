"""Pagination over provider listing endpoints.

Github and Gitlab announce the next page in the Link response header:

    Link: <https://api.github.com/...?page=2>; rel="next", <...>; rel="last"

Bitbucket embeds it in the body envelope:

    {"values": [...], "next": "https://api.bitbucket.org/2.0/...?page=2"}

Both paginations are lazy: a page is fetched only when iteration reaches it,
and every new iteration starts again from the first page.
"""

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import urlsplit

from .config import get_config
from .resources import JsonResources, Resource, ensure_ok

logger = logging.getLogger("repohost.paging")

__all__ = ["LinkHeaderPaging", "NextFieldPaging", "Paging", "parse_next_link"]

_NEXT_LINK = re.compile(r'\s*<([^>]+)>;\s*rel="next"')


def parse_next_link(link_header: str | None) -> str | None:
    """Extract the 'next' URL from a Link header, None if there is none."""
    if not link_header:
        return None
    for part in link_header.split(","):
        match = _NEXT_LINK.match(part.strip())
        if match:
            return match.group(1)
    return None


def _same_origin(first: str, second: str) -> bool:
    a, b = urlsplit(first), urlsplit(second)
    return (a.scheme, a.netloc) == (b.scheme, b.netloc)


class Paging(ABC):
    """Lazy sequence of the 200 OK pages of a listing endpoint.

    Attributes:
        resources: JsonResources used for fetching
        initial: URI of the first page
        what: Description used in error messages
        max_pages: Safety limit to prevent runaway pagination
    """

    def __init__(
        self,
        resources: JsonResources,
        initial: str,
        what: str,
        max_pages: int | None = None,
    ) -> None:
        self.resources = resources
        self.initial = initial
        self.what = what
        self.max_pages = max_pages or get_config().max_pages

    @abstractmethod
    def next_uri(self, resource: Resource) -> str | None:
        """URI of the page after the given one, None on the last page."""

    def __aiter__(self) -> AsyncIterator[Resource]:
        return self.pages()

    async def pages(self) -> AsyncIterator[Resource]:
        """Fetch pages one by one.

        Raises:
            NotAuthenticated: If a page answers 401
            UnexpectedStatus: If a page answers anything else but 200
        """
        uri: str | None = self.initial
        fetched = 0
        while uri is not None:
            if fetched >= self.max_pages:
                logger.warning(
                    "Stopping pagination of [%s] after %d pages", self.initial, fetched
                )
                return
            logger.debug("Fetching page from: %s", uri)
            resource = ensure_ok(await self.resources.get(uri), uri, self.what)
            fetched += 1
            yield resource
            uri = self._checked(self.next_uri(resource))

    async def items(self) -> AsyncIterator[Any]:
        """Every element of every page, in server order."""
        async for page in self.pages():
            for item in page.items():
                yield item

    def _checked(self, next_uri: str | None) -> str | None:
        # Never follow a next link away from the host we started on
        if next_uri is not None and not _same_origin(self.initial, next_uri):
            logger.warning("Rejecting next page URL on another host: %.100s", next_uri)
            return None
        return next_uri


class LinkHeaderPaging(Paging):
    """Pagination through the Link header (Github, Gitlab)."""

    def next_uri(self, resource: Resource) -> str | None:
        return parse_next_link(resource.headers.get("Link"))


class NextFieldPaging(Paging):
    """Pagination through the 'next' field of the body envelope (Bitbucket)."""

    def next_uri(self, resource: Resource) -> str | None:
        if isinstance(resource.body, dict):
            return resource.body.get("next")
        return None
