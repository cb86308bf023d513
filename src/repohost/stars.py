"""Starring a repository on behalf of the authenticated user."""

import logging
from abc import ABC, abstractmethod

from .exceptions import UnsupportedOperation
from .resources import JsonResources

logger = logging.getLogger("repohost.stars")

__all__ = ["GithubStars", "GitlabStars", "Stars"]


class Stars(ABC):
    """The current user's star on one repository.

    Attributes:
        uri: Star endpoint of the repository
        resources: JsonResources of the provider session
        repo_name: Full name of the repository, for log messages
    """

    def __init__(self, resources: JsonResources, uri: str, repo_name: str) -> None:
        self.resources = resources
        self.uri = uri
        self.repo_name = repo_name

    @abstractmethod
    async def add(self) -> bool:
        """Star the repository; True when it is starred afterwards."""

    @abstractmethod
    async def added(self) -> bool:
        """Whether the current user has starred the repository."""


class GithubStars(Stars):
    """Github star at /user/starred/<owner>/<repo>."""

    async def add(self) -> bool:
        logger.debug("Starring Github repository %s", self.repo_name)
        resource = await self.resources.put(self.uri)
        if resource.status_code == 204:
            logger.debug("Repo was successfully starred.")
            return True
        logger.error(
            "Unexpected status when starring repo %s. "
            "Expected 204 NO CONTENT, but got %d",
            self.repo_name,
            resource.status_code,
        )
        return False

    async def added(self) -> bool:
        resource = await self.resources.get(self.uri)
        if resource.status_code not in (204, 404):
            logger.warning(
                "Unexpected status %d when checking star of repo %s",
                resource.status_code,
                self.repo_name,
            )
        return resource.status_code == 204


class GitlabStars(Stars):
    """Gitlab star at <project>/star."""

    async def add(self) -> bool:
        logger.debug("Starring Gitlab repository [%s]", self.repo_name)
        resource = await self.resources.post(self.uri, {})
        if resource.status_code == 201:
            logger.debug("Repo [%s] was successfully starred.", self.repo_name)
            return True
        if resource.status_code == 304:
            logger.debug("Repo [%s] is already starred.", self.repo_name)
            return True
        logger.error(
            "Unexpected status code [%d] when starring repo [%s].",
            resource.status_code,
            self.repo_name,
        )
        return False

    async def added(self) -> bool:
        raise UnsupportedOperation("Checking Gitlab stars is not supported.")
