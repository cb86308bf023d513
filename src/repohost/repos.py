"""Repositories and the collections listing them.

A Repo is a view over an already-fetched repository payload; it builds the
Issues, Collaborators, Commits, Labels and Stars living under its URI.

Repository listings:

    GithubOrganizationRepos   /orgs/<login>/repos, admin repos only
    GithubPersonalRepos       /user/repos, admin repos only
    GitlabOrganizationRepos   /groups/<id>/projects?min_access_level=40
    GitlabPersonalRepos       /user, then /users/<id>/projects?owned=true
    BitbucketRepos            links.repositories.href of a workspace, or
                              /repositories?role=admin
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from .base import Collection, field_at, optional_at
from .collaborators import (
    BitbucketCollaborators,
    Collaborators,
    GithubCollaborators,
    GitlabCollaborators,
)
from .comments import Comments
from .commits import BitbucketCommits, Commits, GithubCommits, GitlabCommits
from .exceptions import UnsupportedOperation
from .issues import BitbucketIssues, GithubIssues, GitlabIssues, Issues
from .labels import GithubRepoLabels, GitlabRepoLabels, Labels
from .paging import LinkHeaderPaging, NextFieldPaging
from .resources import JsonResources
from .stars import GithubStars, GitlabStars, Stars

if TYPE_CHECKING:
    from .users import User

logger = logging.getLogger("repohost.repos")

__all__ = [
    "BitbucketRepo",
    "BitbucketRepos",
    "GithubOrganizationRepos",
    "GithubPersonalRepos",
    "GithubRepo",
    "GitlabOrganizationRepos",
    "GitlabPersonalRepos",
    "GitlabRepo",
    "Repo",
    "Repos",
]


class Repo(ABC):
    """Read-only view over one repository payload.

    Attributes:
        uri: URI of the repository in the provider's API
        resources: JsonResources of the provider session
        owner: User on whose behalf the repository was fetched, if any
    """

    provider_name = ""

    def __init__(
        self,
        resources: JsonResources,
        uri: str,
        payload: dict[str, Any],
        owner: "User | None" = None,
    ) -> None:
        self.resources = resources
        self.uri = uri.rstrip("/")
        self.owner = owner
        self._json = payload

    def full_name(self) -> str:
        """owner/name of the repository."""
        return field_at(self._json, "full_name")

    def provider(self) -> str:
        return self.provider_name

    def json(self) -> dict[str, Any]:
        return self._json

    @abstractmethod
    def issues(self) -> Issues:
        ...

    @abstractmethod
    def collaborators(self) -> Collaborators:
        ...

    @abstractmethod
    def commits(self) -> Commits:
        ...

    @abstractmethod
    def labels(self) -> Labels:
        ...

    @abstractmethod
    def stars(self) -> Stars:
        ...

    def commit_comments(self, sha: str) -> Comments:
        """Comments of the commit with the given sha."""
        return self.commits().comments_of(sha)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.uri!r})"


class GithubRepo(Repo):
    provider_name = "github"

    def issues(self) -> Issues:
        return GithubIssues(self.resources, f"{self.uri}/issues")

    def collaborators(self) -> Collaborators:
        return GithubCollaborators(self.resources, f"{self.uri}/collaborators")

    def commits(self) -> Commits:
        return GithubCommits(self.resources, f"{self.uri}/commits")

    def labels(self) -> Labels:
        return GithubRepoLabels(self.resources, f"{self.uri}/labels")

    def stars(self) -> Stars:
        # .../repos/<owner>/<repo> -> .../user/starred/<owner>/<repo>
        root = self.uri.partition("/repos/")[0]
        full_name = self.full_name()
        return GithubStars(self.resources, f"{root}/user/starred/{full_name}", full_name)


class GitlabRepo(Repo):
    """Gitlab project."""

    provider_name = "gitlab"

    def full_name(self) -> str:
        return field_at(self._json, "path_with_namespace")

    def issues(self) -> Issues:
        return GitlabIssues(self.resources, f"{self.uri}/issues")

    def collaborators(self) -> Collaborators:
        return GitlabCollaborators(self.resources, f"{self.uri}/members")

    def commits(self) -> Commits:
        return GitlabCommits(self.resources, f"{self.uri}/repository/commits")

    def labels(self) -> Labels:
        return GitlabRepoLabels(self.resources, f"{self.uri}/labels")

    def stars(self) -> Stars:
        return GitlabStars(self.resources, f"{self.uri}/star", self.full_name())


class BitbucketRepo(Repo):
    provider_name = "bitbucket"

    def issues(self) -> Issues:
        return BitbucketIssues(self.resources, f"{self.uri}/issues")

    def collaborators(self) -> Collaborators:
        return BitbucketCollaborators(self.resources, f"{self.uri}/collaborators")

    def commits(self) -> Commits:
        return BitbucketCommits(self.resources, f"{self.uri}/commits")

    def labels(self) -> Labels:
        raise UnsupportedOperation("Bitbucket repositories have no labels.")

    def stars(self) -> Stars:
        raise UnsupportedOperation("Starring Bitbucket repositories is not supported.")


class Repos(Collection[Repo]):
    """Repositories listed by one endpoint.

    Attributes:
        uri: Listing URI
        resources: JsonResources of the provider session
        owner: User the repositories are listed for
    """

    def __init__(
        self, resources: JsonResources, uri: str, owner: "User | None" = None
    ) -> None:
        self.resources = resources
        self.uri = uri
        self.owner = owner


def _is_admin(payload: dict[str, Any]) -> bool:
    return optional_at(payload, "permissions", "admin") is True


class GithubOrganizationRepos(Repos):
    """Repositories of a Github organization the current user administers.

    Entries without permissions.admin == true are dropped before wrapping;
    the remaining ones keep the order Github returned them in.
    """

    what = "Unable to fetch Github organization Repos for current User"

    async def __aiter__(self) -> AsyncIterator[Repo]:
        paging = LinkHeaderPaging(self.resources, self.uri, self.what)
        async for item in paging.items():
            if _is_admin(item):
                yield GithubRepo(
                    self.resources, field_at(item, "url"), item, self.owner
                )


class GithubPersonalRepos(GithubOrganizationRepos):
    """Repositories of the authenticated Github user (admin only)."""

    what = "Unable to fetch Github personal Repos for current User"


class GitlabOrganizationRepos(Repos):
    """Projects of a Gitlab group where the user is maintainer or above."""

    async def __aiter__(self) -> AsyncIterator[Repo]:
        paging = LinkHeaderPaging(
            self.resources,
            self.uri,
            "Unable to fetch Gitlab group Repos for current User",
        )
        async for item in paging.items():
            yield GitlabRepo(
                self.resources, field_at(item, "_links", "self"), item, self.owner
            )


class GitlabPersonalRepos(Repos):
    """Projects owned by the authenticated Gitlab user.

    The listing needs the user's numeric id, obtained first from /user. If
    that lookup fails the iteration is empty; the failure is only logged.
    """

    async def __aiter__(self) -> AsyncIterator[Repo]:
        user = await self.resources.get(f"{self.uri}/user")
        if user.status_code != 200:
            logger.warning(
                "Can't get user id - user is not authenticated "
                "or something went wrong. Code [%d]",
                user.status_code,
            )
            return
        user_id = field_at(user.json_object(), "id")
        paging = LinkHeaderPaging(
            self.resources,
            f"{self.uri}/users/{user_id}/projects?owned=true&per_page=100",
            "Unable to fetch Gitlab personal Repos for current User",
        )
        async for item in paging.items():
            yield GitlabRepo(
                self.resources, field_at(item, "_links", "self"), item, self.owner
            )


class BitbucketRepos(Repos):
    """Bitbucket repositories, paged through the envelope's next field."""

    async def __aiter__(self) -> AsyncIterator[Repo]:
        paging = NextFieldPaging(
            self.resources, self.uri, "Unable to fetch Bitbucket Repos for current User"
        )
        async for item in paging.items():
            yield BitbucketRepo(
                self.resources, field_at(item, "links", "self", "href"), item, self.owner
            )
