"""Comments on issues and commits, one adapter per provider payload shape.

Field mapping:

    Provider              id          author              body
    Github                id          user.login          body
    Gitlab (issue note)   id          author.name         body
    Gitlab (commit)       -           author.username     note
    Bitbucket             id          user.account_id     content.raw

Gitlab commit comments carry no id at all; asking for one raises
UnsupportedOperation.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from .base import Collection, field_at, id_at
from .exceptions import UnexpectedStatus, UnsupportedOperation
from .paging import LinkHeaderPaging, NextFieldPaging
from .resources import JsonResources

logger = logging.getLogger("repohost.comments")

__all__ = [
    "BitbucketComment",
    "BitbucketComments",
    "Comment",
    "Comments",
    "GithubComment",
    "GithubComments",
    "GitlabComment",
    "GitlabCommitComment",
    "GitlabCommitComments",
    "GitlabIssueComments",
]


class Comment(ABC):
    """Read-only view over one comment payload."""

    def __init__(self, payload: dict[str, Any]) -> None:
        self._json = payload

    @abstractmethod
    def comment_id(self) -> str:
        """Comment id, as a string."""

    @abstractmethod
    def author(self) -> str:
        """Username (or account id) of the comment's author."""

    @abstractmethod
    def body(self) -> str:
        """Text of the comment."""

    def json(self) -> dict[str, Any]:
        """The comment as returned by the provider's API."""
        return self._json

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._json!r})"


class GithubComment(Comment):
    def comment_id(self) -> str:
        return id_at(self._json)

    def author(self) -> str:
        return field_at(self._json, "user", "login")

    def body(self) -> str:
        return field_at(self._json, "body")


class GitlabComment(Comment):
    """Gitlab note on an issue or merge request."""

    def comment_id(self) -> str:
        return id_at(self._json)

    def author(self) -> str:
        return field_at(self._json, "author", "name")

    def body(self) -> str:
        return field_at(self._json, "body")


class GitlabCommitComment(Comment):
    """Gitlab comment on a commit. Gitlab assigns these no id."""

    def comment_id(self) -> str:
        raise UnsupportedOperation("GitLab Commit Comment has no ID")

    def author(self) -> str:
        return field_at(self._json, "author", "username")

    def body(self) -> str:
        return field_at(self._json, "note")


class BitbucketComment(Comment):
    """Bitbucket comment.

    Bitbucket 2.0 no longer reveals usernames, so the author is the
    account_id of the commenting user.
    """

    def comment_id(self) -> str:
        return id_at(self._json)

    def author(self) -> str:
        return field_at(self._json, "user", "account_id")

    def body(self) -> str:
        return field_at(self._json, "content", "raw")


class Comments(Collection[Comment]):
    """Comments of one issue or commit.

    Attributes:
        uri: Comments listing URI
        resources: JsonResources of the provider session
    """

    provider_name = ""

    def __init__(self, resources: JsonResources, uri: str) -> None:
        self.resources = resources
        self.uri = uri

    @abstractmethod
    def received(self, payload: dict[str, Any]) -> Comment:
        """Wrap a comment payload obtained elsewhere (e.g. a webhook)."""

    async def post(self, body: str) -> Comment:
        """Post a new comment.

        Raises:
            UnexpectedStatus: If the provider does not answer 201 CREATED
            UnsupportedOperation: If the provider cannot post comments here
        """
        logger.debug("Posting Comment to: [%s].", self.uri)
        resource = await self.resources.post(self.uri, self._post_body(body))
        if resource.status_code != 201:
            logger.error(
                "Expected status 201 CREATED, but got: [%d].", resource.status_code
            )
            raise UnexpectedStatus(
                f"{self.provider_name} Comment was not created at",
                self.uri,
                resource.status_code,
                expected=201,
            )
        return self.received(resource.json_object())

    def _post_body(self, body: str) -> dict[str, Any]:
        return {"body": body}


class GithubComments(Comments):
    """Comments of a Github issue or commit."""

    provider_name = "Github"

    def received(self, payload: dict[str, Any]) -> Comment:
        return GithubComment(payload)

    async def __aiter__(self) -> AsyncIterator[Comment]:
        paging = LinkHeaderPaging(
            self.resources, self.uri, "Unable to fetch Github comments"
        )
        async for item in paging.items():
            yield self.received(item)


class GitlabIssueComments(Comments):
    """Notes of a Gitlab issue or merge request."""

    provider_name = "Gitlab"

    def received(self, payload: dict[str, Any]) -> Comment:
        return GitlabComment(payload)

    async def __aiter__(self) -> AsyncIterator[Comment]:
        paging = LinkHeaderPaging(
            self.resources, self.uri, "Unable to fetch Gitlab notes"
        )
        async for item in paging.items():
            yield self.received(item)


class GitlabCommitComments(Comments):
    """Comments of a Gitlab commit."""

    provider_name = "Gitlab"

    def received(self, payload: dict[str, Any]) -> Comment:
        return GitlabCommitComment(payload)

    def _post_body(self, body: str) -> dict[str, Any]:
        return {"note": body}

    async def __aiter__(self) -> AsyncIterator[Comment]:
        paging = LinkHeaderPaging(
            self.resources, self.uri, "Unable to fetch Gitlab commit comments"
        )
        async for item in paging.items():
            yield self.received(item)


class BitbucketComments(Comments):
    """Comments of a Bitbucket issue or commit. Read-only."""

    provider_name = "Bitbucket"

    def received(self, payload: dict[str, Any]) -> Comment:
        return BitbucketComment(payload)

    async def post(self, body: str) -> Comment:
        raise UnsupportedOperation(
            "Posting comments is not supported for Bitbucket."
        )

    async def __aiter__(self) -> AsyncIterator[Comment]:
        paging = NextFieldPaging(
            self.resources, self.uri, "Unable to fetch Bitbucket comments"
        )
        async for item in paging.items():
            yield self.received(item)
