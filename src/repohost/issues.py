"""Issues of a repository, one adapter per provider.

An Issue is a view over an already-fetched payload. Issues is the
collection of a repository's issues: lookup by id, concurrent lookup of
several ids, opening, searching and iterating the open issues. Issues can
be assigned, closed and reopened where the provider supports it.

Lookup by id answers None when the issue does not exist (404), rather than
failing: callers routinely look up ids taken from user input or webhooks.
"""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterable, Sequence
from typing import Any
from urllib.parse import quote, urlencode

from .base import Collection, field_at, id_at, nullable_at, optional_at
from .comments import BitbucketComments, Comments, GithubComments, GitlabIssueComments
from .exceptions import UnexpectedStatus, UnsupportedOperation
from .labels import GithubIssueLabels, GitlabIssueLabels, Labels
from .paging import LinkHeaderPaging, NextFieldPaging, Paging
from .resources import JsonResources, ensure_ok

logger = logging.getLogger("repohost.issues")

__all__ = [
    "BitbucketIssue",
    "BitbucketIssues",
    "GithubIssue",
    "GithubIssues",
    "GitlabIssue",
    "GitlabIssues",
    "Issue",
    "Issues",
    "Roles",
]


class Roles:
    """Contract roles an issue calls for."""

    DEV = "DEV"
    REV = "REV"


class Issue(ABC):
    """View over one issue payload, plus the edits the provider allows.

    Attributes:
        uri: URI of the issue in the provider's API
        resources: JsonResources used by comments(), labels() and the edits
    """

    provider_name = ""

    def __init__(
        self, uri: str, payload: dict[str, Any], resources: JsonResources
    ) -> None:
        self.uri = uri
        self.resources = resources
        self._json = payload

    @abstractmethod
    def issue_id(self) -> str:
        """The id shown to users (number or iid), as a string."""

    @abstractmethod
    def author(self) -> str:
        ...

    @abstractmethod
    def body(self) -> str:
        ...

    @abstractmethod
    def assignee(self) -> str | None:
        """Username of the assignee, None when nobody is assigned."""

    @abstractmethod
    def is_closed(self) -> bool:
        ...

    @abstractmethod
    def is_pull_request(self) -> bool:
        ...

    @abstractmethod
    def repo_full_name(self) -> str:
        ...

    @abstractmethod
    def comments(self) -> Comments:
        ...

    @abstractmethod
    def labels(self) -> Labels:
        ...

    @abstractmethod
    async def assign(self, username: str) -> bool:
        """Assign a user; False (logged) when the provider refuses."""

    @abstractmethod
    async def unassign(self, username: str) -> bool:
        """Remove an assignee; False (logged) when the provider refuses."""

    @abstractmethod
    async def close(self) -> bool:
        """Close the issue; False (logged) when the provider refuses."""

    @abstractmethod
    async def reopen(self) -> bool:
        """Reopen the issue; False (logged) when the provider refuses."""

    def provider(self) -> str:
        return self.provider_name

    def role(self) -> str:
        """REV for pull/merge requests, DEV for plain issues."""
        return Roles.REV if self.is_pull_request() else Roles.DEV

    def json(self) -> dict[str, Any]:
        """The issue as returned by the provider's API."""
        return self._json

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.uri!r})"


class GithubIssue(Issue):
    provider_name = "github"

    def issue_id(self) -> str:
        return id_at(self._json, "number")

    def author(self) -> str:
        return field_at(self._json, "user", "login")

    def body(self) -> str:
        # Github sends null for an issue opened without description
        return nullable_at(self._json, "body") or ""

    def assignee(self) -> str | None:
        return optional_at(self._json, "assignee", "login")

    def is_closed(self) -> bool:
        return field_at(self._json, "state") == "closed"

    def is_pull_request(self) -> bool:
        return optional_at(self._json, "pull_request") is not None

    def repo_full_name(self) -> str:
        url = field_at(self._json, "repository_url")
        return url.split("/repos/", 1)[-1]

    def comments(self) -> Comments:
        return GithubComments(self.resources, f"{self.uri}/comments")

    def labels(self) -> Labels:
        return GithubIssueLabels(self.resources, f"{self.uri}/labels")

    async def assign(self, username: str) -> bool:
        logger.debug("Assigning user %s to Issue [%s]...", username, self.uri)
        resource = await self.resources.post(
            f"{self.uri}/assignees", {"assignees": [username]}
        )
        if resource.status_code == 201:
            return True
        logger.error(
            "Problem while assigning user %s. Expected 201 CREATED, but got %d",
            username,
            resource.status_code,
        )
        return False

    async def unassign(self, username: str) -> bool:
        logger.debug("Unassigning user %s from Issue [%s]...", username, self.uri)
        resource = await self.resources.delete(
            f"{self.uri}/assignees", {"assignees": [username]}
        )
        if resource.status_code == 200:
            return True
        logger.error(
            "Problem while unassigning user %s. Expected 200 OK, but got %d",
            username,
            resource.status_code,
        )
        return False

    async def close(self) -> bool:
        return await self._change_state("closed")

    async def reopen(self) -> bool:
        return await self._change_state("open")

    async def _change_state(self, state: str) -> bool:
        logger.debug("Changing state of Issue [%s] to %s...", self.uri, state)
        resource = await self.resources.patch(self.uri, {"state": state})
        if resource.status_code == 200:
            return True
        logger.error(
            "Could not change state of Issue [%s] to %s. "
            "Expected 200 OK, but got %d",
            self.uri,
            state,
            resource.status_code,
        )
        return False


class GitlabIssue(Issue):
    provider_name = "gitlab"

    def issue_id(self) -> str:
        return id_at(self._json, "iid")

    def author(self) -> str:
        return field_at(self._json, "author", "username")

    def body(self) -> str:
        return nullable_at(self._json, "description") or ""

    def assignee(self) -> str | None:
        return optional_at(self._json, "assignee", "username")

    def is_closed(self) -> bool:
        return str(field_at(self._json, "state")).lower() == "closed"

    def is_pull_request(self) -> bool:
        return str(field_at(self._json, "web_url")).endswith(
            f"/merge_requests/{self.issue_id()}"
        )

    def repo_full_name(self) -> str:
        reference = field_at(self._json, "references", "full")
        return re.split(r"[#!]", reference)[0]

    def comments(self) -> Comments:
        return GitlabIssueComments(self.resources, f"{self.uri}/notes")

    def labels(self) -> Labels:
        return GitlabIssueLabels(self.resources, self.uri, self._json)

    async def assign(self, username: str) -> bool:
        """Assign a project member.

        Gitlab assigns by editing the issue's assignee_id, so the user's id
        is looked up among the project's users first.
        """
        logger.debug("Assigning user %s to Issue [%s]...", username, self.uri)
        user_id = await self._find_user_id(username)
        if user_id is None:
            return False
        resource = await self.resources.put(self.uri, {"assignee_id": user_id})
        if resource.status_code == 200:
            logger.debug("User %s (id: %s) assigned successfully!", username, user_id)
            return True
        logger.error(
            "Problem while assigning user %s. Expected 200 OK, but got %d",
            username,
            resource.status_code,
        )
        return False

    async def unassign(self, username: str) -> bool:
        raise UnsupportedOperation("Unassigning Gitlab issues is not supported.")

    async def close(self) -> bool:
        raise UnsupportedOperation("Closing Gitlab issues is not supported.")

    async def reopen(self) -> bool:
        raise UnsupportedOperation("Reopening Gitlab issues is not supported.")

    async def _find_user_id(self, username: str) -> int | None:
        project = self.uri.split("/issues")[0]
        uri = f"{project}/search?scope=users&search={quote(username, safe='')}"
        logger.debug("Searching for user %s id in project [%s]...", username, uri)
        resource = await self.resources.get(uri)
        if resource.status_code != 200:
            logger.error(
                "Problem while searching for user %s. Expected 200 OK, but got %d",
                username,
                resource.status_code,
            )
            return None
        for user in resource.json_array():
            if optional_at(user, "username") == username:
                return field_at(user, "id")
        logger.debug("User %s not found among project members.", username)
        return None


class BitbucketIssue(Issue):
    provider_name = "bitbucket"

    CLOSED_STATES = frozenset({"resolved", "closed", "invalid", "duplicate", "wontfix"})

    def issue_id(self) -> str:
        return id_at(self._json, "id")

    def author(self) -> str:
        return field_at(self._json, "reporter", "account_id")

    def body(self) -> str:
        return nullable_at(self._json, "content", "raw") or ""

    def assignee(self) -> str | None:
        return optional_at(self._json, "assignee", "account_id")

    def is_closed(self) -> bool:
        return field_at(self._json, "state") in self.CLOSED_STATES

    def is_pull_request(self) -> bool:
        # The issue tracker never holds pull requests
        return False

    def repo_full_name(self) -> str:
        return field_at(self._json, "repository", "full_name")

    def comments(self) -> Comments:
        return BitbucketComments(self.resources, f"{self.uri}/comments")

    def labels(self) -> Labels:
        raise UnsupportedOperation("Bitbucket issues have no labels.")

    async def assign(self, username: str) -> bool:
        raise UnsupportedOperation("Assigning Bitbucket issues is not supported.")

    async def unassign(self, username: str) -> bool:
        raise UnsupportedOperation("Unassigning Bitbucket issues is not supported.")

    async def close(self) -> bool:
        raise UnsupportedOperation("Closing Bitbucket issues is not supported.")

    async def reopen(self) -> bool:
        raise UnsupportedOperation("Reopening Bitbucket issues is not supported.")


class Issues(Collection[Issue]):
    """Issues of one repository.

    Attributes:
        uri: Issues base URI, e.g. https://api.github.com/repos/o/r/issues
        resources: JsonResources of the provider session
    """

    provider_label = ""
    # Statuses meaning "no such issue" on lookup by id
    absent_statuses: tuple[int, ...] = (404, 204)
    # Payload key holding the id used in the issue's URI
    uri_key = "id"

    def __init__(self, resources: JsonResources, uri: str) -> None:
        self.resources = resources
        self.uri = uri.rstrip("/")

    @abstractmethod
    def wrap(self, uri: str, payload: dict[str, Any]) -> Issue:
        """Build the provider's Issue for a payload."""

    @abstractmethod
    def paging(self) -> Paging:
        """Pagination over the open issues."""

    async def get_by_id(self, issue_id: str) -> Issue | None:
        """Fetch one issue.

        Returns:
            The Issue, or None if the provider has no such issue.

        Raises:
            NotAuthenticated: On 401
            UnexpectedStatus: On any other status but 200 or "absent"
        """
        logger.debug("Getting %s issue with id %s...", self.provider_label, issue_id)
        issue_uri = f"{self.uri}/{issue_id}"
        resource = await self.resources.get(issue_uri)
        if resource.status_code in self.absent_statuses:
            return None
        ensure_ok(resource, issue_uri, f"Could not get the issue {issue_id}")
        return self.wrap(issue_uri, resource.json_object())

    async def get_many(self, issue_ids: Iterable[str]) -> list[Issue | None]:
        """Fetch several issues concurrently; results follow the order of ids.

        The first failing lookup cancels the ones still running, then its
        error propagates.
        """
        tasks = [asyncio.ensure_future(self.get_by_id(i)) for i in issue_ids]
        if not tasks:
            return []
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        for task in pending:
            task.cancel()
        # Wait for the cancellations so no lookup outlives this call
        await asyncio.gather(*pending, return_exceptions=True)
        for task in tasks:
            if task in done and task.exception() is not None:
                raise task.exception()
        return [task.result() for task in tasks]

    def received(self, payload: dict[str, Any]) -> Issue:
        """Wrap an issue payload obtained elsewhere (e.g. a webhook)."""
        return self.wrap(f"{self.uri}/{id_at(payload, self.uri_key)}", payload)

    async def open(self, title: str, body: str, labels: Sequence[str] = ()) -> Issue:
        """Open a new issue.

        Raises:
            UnexpectedStatus: If the provider answers neither 201 nor 200
        """
        resource = await self.resources.post(
            self.uri, self._open_body(title, body, labels)
        )
        if resource.status_code not in (201, 200):
            raise UnexpectedStatus(
                "Could not create Issue at",
                self.uri,
                resource.status_code,
                expected=(201, 200),
            )
        return self.received(resource.json_object())

    async def search(self, text: str = "", labels: Sequence[str] = ()) -> list[Issue]:
        """Search issues by text and labels.

        Search is best-effort: a failed search logs an error and finds nothing.
        """
        uri = self._search_uri(text, labels)
        logger.debug("Searching for %s Issues at: %s", self.provider_label, uri)
        resource = await self.resources.get(uri)
        if resource.status_code != 200:
            logger.error(
                "Search returned status: %d. Was expecting 200 OK! "
                "Returning 0 found issues...",
                resource.status_code,
            )
            return []
        return [self.received(item) for item in resource.items()]

    async def __aiter__(self) -> AsyncIterator[Issue]:
        async for item in self.paging().items():
            yield self.received(item)

    def _open_body(self, title: str, body: str, labels: Sequence[str]) -> dict[str, Any]:
        raise UnsupportedOperation(
            f"Opening issues is not supported for {self.provider_label}."
        )

    def _search_uri(self, text: str, labels: Sequence[str]) -> str:
        raise UnsupportedOperation(
            f"Searching issues is not supported for {self.provider_label}."
        )


class GithubIssues(Issues):
    provider_label = "Github"
    uri_key = "number"

    def wrap(self, uri: str, payload: dict[str, Any]) -> Issue:
        return GithubIssue(uri, payload, self.resources)

    def paging(self) -> Paging:
        return LinkHeaderPaging(
            self.resources,
            f"{self.uri}?state=open&per_page=100",
            "Unable to fetch Github issues",
        )

    def _open_body(self, title: str, body: str, labels: Sequence[str]) -> dict[str, Any]:
        return {"title": title, "body": body, "labels": list(labels)}

    def _search_uri(self, text: str, labels: Sequence[str]) -> str:
        # .../repos/<owner>/<repo>/issues -> API root and owner/repo
        root, _, rest = self.uri.partition("/repos/")
        repo_full_name = rest.rsplit("/issues", 1)[0]
        terms = []
        if text and text.strip():
            terms.append(text.strip())
        terms.append(f"repo:{repo_full_name}")
        terms.extend(f"label:{label}" for label in labels)
        query = "+".join(quote(term, safe=":/") for term in terms)
        return f"{root}/search/issues?q={query}&sort=created&order=desc&per_page=100"


class GitlabIssues(Issues):
    provider_label = "Gitlab"
    uri_key = "iid"

    def wrap(self, uri: str, payload: dict[str, Any]) -> Issue:
        return GitlabIssue(uri, payload, self.resources)

    def paging(self) -> Paging:
        return LinkHeaderPaging(
            self.resources,
            f"{self.uri}?state=opened&per_page=100",
            "Unable to fetch Gitlab issues",
        )

    def _open_body(self, title: str, body: str, labels: Sequence[str]) -> dict[str, Any]:
        return {"title": title, "description": body, "labels": ",".join(labels)}

    def _search_uri(self, text: str, labels: Sequence[str]) -> str:
        params = {"per_page": "100"}
        if text and text.strip():
            params["search"] = text
        if labels:
            params["labels"] = ",".join(labels)
        return f"{self.uri}?{urlencode(params)}"


class BitbucketIssues(Issues):
    """Issues of a Bitbucket repository's issue tracker. Read-only."""

    provider_label = "Bitbucket"
    absent_statuses = (404, 410)
    uri_key = "id"

    def wrap(self, uri: str, payload: dict[str, Any]) -> Issue:
        return BitbucketIssue(uri, payload, self.resources)

    def paging(self) -> Paging:
        query = quote('state="new" OR state="open"')
        return NextFieldPaging(
            self.resources,
            f"{self.uri}?q={query}&pagelen=100",
            "Unable to fetch Bitbucket issues",
        )
