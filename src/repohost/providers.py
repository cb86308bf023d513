"""Provider facades: the entry points binding a session to one hosting API.

A facade wires a JsonResources (carrying the access token) to its
provider's API root and hands out repositories, organizations and
repository listings.

Example:
    >>> async with Github() as github:
    ...     github = github.with_token("ghp_...")
    ...     repo = await github.repo("octocat/hello-world")
    ...     issue = await repo.issues().get_by_id("346")
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from .config import HostingConfig, get_config
from .organizations import (
    BitbucketOrganizations,
    GithubOrganizations,
    GitlabOrganizations,
    Organizations,
)
from .repos import (
    BitbucketRepo,
    BitbucketRepos,
    GithubOrganizationRepos,
    GithubPersonalRepos,
    GithubRepo,
    GitlabPersonalRepos,
    GitlabRepo,
    Repo,
    Repos,
)
from .resources import HttpxJsonResources, JsonResources, ensure_ok
from .tokens import AccessToken

if TYPE_CHECKING:
    from .users import User

logger = logging.getLogger("repohost.providers")

__all__ = ["Bitbucket", "Github", "Gitlab", "PROVIDERS", "Provider", "provider_for"]


class Provider(ABC):
    """A hosting provider seen through one session.

    Attributes:
        resources: JsonResources every request goes through
        api_url: Root of the provider's REST API
        user: User the session belongs to, if known
    """

    provider_name = ""

    def __init__(
        self,
        resources: JsonResources | None = None,
        user: "User | None" = None,
        api_url: str | None = None,
        config: HostingConfig | None = None,
        token: AccessToken | None = None,
    ) -> None:
        """Initialize the facade.

        Args:
            resources: Shared JsonResources; a new HttpxJsonResources is
                created (and owned by this facade) when omitted
            user: Identity the session acts for
            api_url: API root, defaults to the configured one
            config: Settings, defaults to get_config()
            token: Credential to authenticate the resources with
        """
        self._config = config or get_config()
        self._owns_resources = resources is None
        if resources is None:
            resources = HttpxJsonResources(token=token, config=self._config)
        elif token is not None:
            resources = resources.authenticated(token)
        self.resources = resources
        self.user = user
        self.api_url = (api_url or self._config.api_url(self.provider_name)).rstrip("/")

    async def __aenter__(self) -> "Provider":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the resources if this facade created them."""
        if self._owns_resources and isinstance(self.resources, HttpxJsonResources):
            await self.resources.close()

    def name(self) -> str:
        return self.provider_name

    def with_token(self, secret: str | None) -> "Provider":
        """Same provider, authenticated with a token of this provider's kind.

        A blank secret yields an unauthenticated facade. The returned facade
        shares this one's connections; closing stays this facade's job.
        """
        token = AccessToken.for_provider(self.provider_name, secret)
        return type(self)(
            resources=self.resources.authenticated(token),
            user=self.user,
            api_url=self.api_url,
            config=self._config,
        )

    async def repo(self, repo_id: str) -> Repo:
        """Fetch one repository.

        Args:
            repo_id: owner/name (Gitlab also accepts the numeric project id)

        Raises:
            NotAuthenticated: On 401
            UnexpectedStatus: On any other status but 200
        """
        uri = self.repo_uri(repo_id)
        logger.debug("Fetching %s repo [%s]", self.provider_name, uri)
        resource = ensure_ok(
            await self.resources.get(uri),
            uri,
            f"Unable to fetch {self.provider_name} repo {repo_id}",
        )
        return self.wrap_repo(uri, resource.json_object())

    @abstractmethod
    def repo_uri(self, repo_id: str) -> str:
        ...

    @abstractmethod
    def wrap_repo(self, uri: str, payload: dict[str, Any]) -> Repo:
        ...

    @abstractmethod
    def organizations(self) -> Organizations:
        """Organizations of the authenticated user."""

    @abstractmethod
    def repos(self) -> Repos:
        """Repositories the authenticated user administers."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.api_url!r})"


class Github(Provider):
    provider_name = "github"

    def repo_uri(self, repo_id: str) -> str:
        return f"{self.api_url}/repos/{repo_id}"

    def wrap_repo(self, uri: str, payload: dict[str, Any]) -> Repo:
        return GithubRepo(self.resources, uri, payload, self.user)

    def organizations(self) -> Organizations:
        return GithubOrganizations(self.resources, self.api_url, self.user)

    def repos(self) -> Repos:
        return GithubPersonalRepos(
            self.resources, f"{self.api_url}/user/repos?per_page=100", self.user
        )

    def organization_repos(self, login: str) -> Repos:
        """Repositories of organization `login` the user administers."""
        return GithubOrganizationRepos(
            self.resources, f"{self.api_url}/orgs/{login}/repos?per_page=100", self.user
        )


class Gitlab(Provider):
    provider_name = "gitlab"

    def repo_uri(self, repo_id: str) -> str:
        return f"{self.api_url}/projects/{quote(repo_id, safe='')}"

    def wrap_repo(self, uri: str, payload: dict[str, Any]) -> Repo:
        return GitlabRepo(self.resources, uri, payload, self.user)

    def organizations(self) -> Organizations:
        return GitlabOrganizations(self.resources, self.api_url, self.user)

    def repos(self) -> Repos:
        return GitlabPersonalRepos(self.resources, self.api_url, self.user)


class Bitbucket(Provider):
    provider_name = "bitbucket"

    def repo_uri(self, repo_id: str) -> str:
        return f"{self.api_url}/repositories/{repo_id}"

    def wrap_repo(self, uri: str, payload: dict[str, Any]) -> Repo:
        return BitbucketRepo(self.resources, uri, payload, self.user)

    def organizations(self) -> Organizations:
        return BitbucketOrganizations(self.resources, self.api_url, self.user)

    def repos(self) -> Repos:
        return BitbucketRepos(
            self.resources,
            f"{self.api_url}/repositories?role=admin&pagelen=100",
            self.user,
        )


PROVIDERS: dict[str, type[Provider]] = {
    Github.provider_name: Github,
    Gitlab.provider_name: Gitlab,
    Bitbucket.provider_name: Bitbucket,
}


def provider_for(name: str, **kwargs: Any) -> Provider:
    """Build the facade registered under a provider name.

    Raises:
        ValueError: If no provider is registered under that name.
    """
    try:
        provider_cls = PROVIDERS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown provider: {name!r}. Expected one of {sorted(PROVIDERS)}"
        ) from None
    return provider_cls(**kwargs)
