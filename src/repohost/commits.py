"""Commits of a repository.

    Provider    single commit               listing              sha     author
    Github      <repo>/commits/<ref>        <repo>/commits       sha     author.login
    Gitlab      <project>/repository/       same, paged          id      -
                commits/<ref>
    Bitbucket   <repo>/commit/<ref>         <repo>/commits       hash    author.user.account_id

Gitlab commits only carry the author's name and email, never a username, so
asking a Gitlab commit for its author raises UnsupportedOperation.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from .base import Collection, field_at, optional_at
from .comments import BitbucketComments, Comments, GithubComments, GitlabCommitComments
from .exceptions import UnsupportedOperation
from .paging import LinkHeaderPaging, NextFieldPaging, Paging
from .resources import JsonResources, ensure_ok

logger = logging.getLogger("repohost.commits")

__all__ = [
    "BitbucketCommit",
    "BitbucketCommits",
    "Commit",
    "Commits",
    "GithubCommit",
    "GithubCommits",
    "GitlabCommit",
    "GitlabCommits",
]


class Commit(ABC):
    """Read-only view over one commit payload.

    Attributes:
        uri: URI of the commit in the provider's API
        resources: JsonResources used by comments()
    """

    def __init__(
        self, uri: str, payload: dict[str, Any], resources: JsonResources
    ) -> None:
        self.uri = uri
        self.resources = resources
        self._json = payload

    @abstractmethod
    def sha(self) -> str:
        ...

    @abstractmethod
    def author(self) -> str:
        """Username (or account id) of the commit's author."""

    @abstractmethod
    def comments(self) -> Comments:
        ...

    def json(self) -> dict[str, Any]:
        return self._json

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.uri!r})"


class GithubCommit(Commit):
    def sha(self) -> str:
        return field_at(self._json, "sha")

    def author(self) -> str:
        # Commits by emails unknown to Github have no author account
        return optional_at(self._json, "author", "login") or ""

    def comments(self) -> Comments:
        return GithubComments(self.resources, f"{self.uri}/comments")


class GitlabCommit(Commit):
    def sha(self) -> str:
        return field_at(self._json, "id")

    def author(self) -> str:
        raise UnsupportedOperation("Gitlab commits do not reveal the author's username.")

    def comments(self) -> Comments:
        return GitlabCommitComments(self.resources, f"{self.uri}/comments")


class BitbucketCommit(Commit):
    def sha(self) -> str:
        return field_at(self._json, "hash")

    def author(self) -> str:
        return field_at(self._json, "author", "user", "account_id")

    def comments(self) -> Comments:
        return BitbucketComments(self.resources, f"{self.uri}/comments")


class Commits(Collection[Commit]):
    """Commits of one repository, newest first.

    Attributes:
        uri: Commits listing URI
        resources: JsonResources of the provider session
    """

    provider_label = ""
    # Statuses meaning "no such commit" on lookup by ref
    absent_statuses: tuple[int, ...] = (404,)
    # Payload key holding the commit's sha
    sha_key = "sha"

    def __init__(self, resources: JsonResources, uri: str) -> None:
        self.resources = resources
        self.uri = uri.rstrip("/")

    @abstractmethod
    def wrap(self, uri: str, payload: dict[str, Any]) -> Commit:
        ...

    @abstractmethod
    def paging(self) -> Paging:
        ...

    def commit_uri(self, ref: str) -> str:
        return f"{self.uri}/{ref}"

    async def get_commit(self, ref: str) -> Commit | None:
        """Fetch one commit by sha, branch or tag.

        Returns:
            The Commit, or None if the provider knows no such ref.

        Raises:
            NotAuthenticated: On 401
            UnexpectedStatus: On any other status but 200 or "absent"
        """
        logger.debug("Getting commit [%s] from [%s]...", ref, self.uri)
        uri = self.commit_uri(ref)
        resource = await self.resources.get(uri)
        if resource.status_code in self.absent_statuses:
            logger.debug("Commit [%s] not found, returning None.", ref)
            return None
        ensure_ok(resource, uri, f"Could not get the commit {ref}")
        return self.wrap(uri, resource.json_object())

    def received(self, payload: dict[str, Any]) -> Commit:
        """Wrap a commit payload obtained elsewhere (e.g. a push webhook)."""
        return self.wrap(self.commit_uri(field_at(payload, self.sha_key)), payload)

    def comments_of(self, ref: str) -> Comments:
        """Comments of a commit, without fetching the commit itself."""
        return self.wrap(self.commit_uri(ref), {self.sha_key: ref}).comments()

    async def latest(self) -> Commit | None:
        """The newest commit of the default branch, None for an empty repo."""
        async for page in self.paging():
            items = page.items()
            return self.received(items[0]) if items else None
        return None

    async def __aiter__(self) -> AsyncIterator[Commit]:
        async for item in self.paging().items():
            yield self.received(item)


class GithubCommits(Commits):
    provider_label = "Github"
    # 422: the ref is not a valid commit id
    absent_statuses = (404, 204, 422)

    def wrap(self, uri: str, payload: dict[str, Any]) -> Commit:
        return GithubCommit(uri, payload, self.resources)

    def paging(self) -> Paging:
        return LinkHeaderPaging(
            self.resources,
            f"{self.uri}?per_page=100",
            "Unable to fetch Github commits",
        )


class GitlabCommits(Commits):
    provider_label = "Gitlab"
    sha_key = "id"

    def wrap(self, uri: str, payload: dict[str, Any]) -> Commit:
        return GitlabCommit(uri, payload, self.resources)

    def paging(self) -> Paging:
        return LinkHeaderPaging(
            self.resources,
            f"{self.uri}?per_page=100",
            "Unable to fetch Gitlab commits",
        )


class BitbucketCommits(Commits):
    """Bitbucket commits: listed under /commits, fetched one by one under /commit."""

    provider_label = "Bitbucket"
    sha_key = "hash"

    def commit_uri(self, ref: str) -> str:
        return f"{self.uri.removesuffix('/commits')}/commit/{ref}"

    def wrap(self, uri: str, payload: dict[str, Any]) -> Commit:
        return BitbucketCommit(uri, payload, self.resources)

    def paging(self) -> Paging:
        return NextFieldPaging(
            self.resources,
            f"{self.uri}?pagelen=100",
            "Unable to fetch Bitbucket commits",
        )
