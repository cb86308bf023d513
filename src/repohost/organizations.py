"""Organizations the authenticated user belongs to.

    Provider    listing          organization id   repos()
    Github      /user/orgs       id                unsupported
    Gitlab      /groups          id                /groups/<id>/projects
    Bitbucket   /workspaces      uuid              links.repositories.href

Github organization repositories are listed through
Github.organization_repos(login) instead.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from .base import Collection, field_at, id_at
from .exceptions import UnsupportedOperation
from .paging import LinkHeaderPaging, NextFieldPaging, Paging
from .repos import BitbucketRepos, GitlabOrganizationRepos, Repos
from .resources import JsonResources

if TYPE_CHECKING:
    from .users import User

__all__ = [
    "BitbucketOrganization",
    "BitbucketOrganizations",
    "GithubOrganization",
    "GithubOrganizations",
    "GitlabOrganization",
    "GitlabOrganizations",
    "Organization",
    "Organizations",
]


class Organization(ABC):
    """Read-only view over one organization payload."""

    def __init__(
        self,
        resources: JsonResources,
        api_url: str,
        payload: dict[str, Any],
        owner: "User | None" = None,
    ) -> None:
        self.resources = resources
        self.api_url = api_url
        self.owner = owner
        self._json = payload

    @abstractmethod
    def organization_id(self) -> str:
        ...

    @abstractmethod
    def repos(self) -> Repos:
        """Repositories of the organization the user may administer."""

    def json(self) -> dict[str, Any]:
        return self._json

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.organization_id()!r})"


class GithubOrganization(Organization):
    def organization_id(self) -> str:
        return id_at(self._json)

    def repos(self) -> Repos:
        raise UnsupportedOperation(
            "Github organization repos are listed through "
            "Github.organization_repos(login)."
        )


class GitlabOrganization(Organization):
    """Gitlab group."""

    def organization_id(self) -> str:
        return id_at(self._json)

    def repos(self) -> Repos:
        return GitlabOrganizationRepos(
            self.resources,
            f"{self.api_url}/groups/{self.organization_id()}/projects"
            "?min_access_level=40&per_page=100",
            self.owner,
        )


class BitbucketOrganization(Organization):
    """Bitbucket workspace."""

    def organization_id(self) -> str:
        return field_at(self._json, "uuid")

    def repos(self) -> Repos:
        return BitbucketRepos(
            self.resources,
            field_at(self._json, "links", "repositories", "href"),
            self.owner,
        )


class Organizations(Collection[Organization]):
    """Organizations of the current user.

    Attributes:
        resources: JsonResources of the provider session
        api_url: Root of the provider's API
        owner: The current user
    """

    provider_label = ""

    def __init__(
        self, resources: JsonResources, api_url: str, owner: "User | None" = None
    ) -> None:
        self.resources = resources
        self.api_url = api_url.rstrip("/")
        self.owner = owner

    @property
    def what(self) -> str:
        return f"Unable to fetch {self.provider_label} organizations for current User"

    @abstractmethod
    def paging(self) -> Paging:
        ...

    @abstractmethod
    def wrap(self, payload: dict[str, Any]) -> Organization:
        ...

    async def __aiter__(self) -> AsyncIterator[Organization]:
        async for item in self.paging().items():
            yield self.wrap(item)


class GithubOrganizations(Organizations):
    provider_label = "Github"

    def paging(self) -> Paging:
        return LinkHeaderPaging(
            self.resources, f"{self.api_url}/user/orgs?per_page=100", self.what
        )

    def wrap(self, payload: dict[str, Any]) -> Organization:
        return GithubOrganization(self.resources, self.api_url, payload, self.owner)


class GitlabOrganizations(Organizations):
    provider_label = "Gitlab"

    def paging(self) -> Paging:
        return LinkHeaderPaging(
            self.resources, f"{self.api_url}/groups?per_page=100", self.what
        )

    def wrap(self, payload: dict[str, Any]) -> Organization:
        return GitlabOrganization(self.resources, self.api_url, payload, self.owner)


class BitbucketOrganizations(Organizations):
    provider_label = "Bitbucket"

    def paging(self) -> Paging:
        return NextFieldPaging(
            self.resources, f"{self.api_url}/workspaces?pagelen=100", self.what
        )

    def wrap(self, payload: dict[str, Any]) -> Organization:
        return BitbucketOrganization(
            self.resources, self.api_url, payload, self.owner
        )
