"""Collaborators of a repository.

Mutations follow a soft-failure contract: invite() and remove() answer
True or False and log the unexpected status. Listing is strict and raises like every other collection.

Bitbucket Cloud offers no API for managing repository collaborators, so
every Bitbucket operation raises UnsupportedOperation without touching the
network.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from .base import Collection, field_at, id_at
from .exceptions import UnsupportedOperation
from .paging import LinkHeaderPaging
from .resources import JsonResources

logger = logging.getLogger("repohost.collaborators")

__all__ = [
    "BitbucketCollaborators",
    "Collaborator",
    "Collaborators",
    "GithubCollaborator",
    "GithubCollaborators",
    "GitlabCollaborator",
    "GitlabCollaborators",
]

# Gitlab "Developer" access level
GITLAB_DEVELOPER_ACCESS = 30


class Collaborator(ABC):
    """Read-only view over one collaborator payload."""

    def __init__(self, payload: dict[str, Any]) -> None:
        self._json = payload

    def collaborator_id(self) -> str:
        return id_at(self._json)

    @abstractmethod
    def username(self) -> str:
        ...

    @abstractmethod
    def name(self) -> str:
        ...

    def json(self) -> dict[str, Any]:
        return self._json

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.username()!r})"


class GithubCollaborator(Collaborator):
    """Github collaborator. Github listings carry no display name; login is used."""

    def username(self) -> str:
        return field_at(self._json, "login")

    def name(self) -> str:
        return field_at(self._json, "login")


class GitlabCollaborator(Collaborator):
    def username(self) -> str:
        return field_at(self._json, "username")

    def name(self) -> str:
        return field_at(self._json, "name")


class Collaborators(Collection[Collaborator]):
    """Collaborators of one repository.

    Attributes:
        uri: Collaborators (members) base URI of the repository
        resources: JsonResources of the provider session
    """

    def __init__(self, resources: JsonResources, uri: str) -> None:
        self.resources = resources
        self.uri = uri.rstrip("/")

    @abstractmethod
    async def invite(self, username: str) -> bool:
        """Invite a user; True when the user is (or already was) invited."""

    @abstractmethod
    async def remove(self, username: str) -> bool:
        """Remove a collaborator; True on success."""


class GithubCollaborators(Collaborators):
    async def invite(self, username: str) -> bool:
        uri = f"{self.uri}/{username}"
        logger.debug("Inviting user %s to [%s].", username, self.uri)
        resource = await self.resources.put(uri)
        if resource.status_code in (201, 204):
            logger.debug("Invitation successfully created!")
            return True
        logger.error(
            "Unexpected status when inviting user %s to [%s]. "
            "Expected 201 CREATED or 204 NO CONTENT, but got %d",
            username,
            self.uri,
            resource.status_code,
        )
        return False

    async def remove(self, username: str) -> bool:
        logger.debug("Removing user %s from [%s]...", username, self.uri)
        resource = await self.resources.delete(f"{self.uri}/{username}")
        if resource.status_code == 204:
            logger.debug("User successfully removed!")
            return True
        logger.error(
            "Problem while removing user. Expected 204 NO CONTENT, but got %d.",
            resource.status_code,
        )
        return False

    async def __aiter__(self) -> AsyncIterator[Collaborator]:
        paging = LinkHeaderPaging(
            self.resources,
            f"{self.uri}?per_page=100",
            "Unable to fetch Github collaborators",
        )
        async for item in paging.items():
            yield GithubCollaborator(item)


class GitlabCollaborators(Collaborators):
    """Members of a Gitlab project.

    Gitlab identifies members by their numeric user id, so invite() and
    remove() expect the id, not the username.
    """

    async def invite(self, username: str) -> bool:
        logger.debug("Inviting user %s to [%s].", username, self.uri)
        resource = await self.resources.post(
            self.uri,
            {"user_id": username, "access_level": GITLAB_DEVELOPER_ACCESS},
        )
        if resource.status_code == 201:
            logger.debug("Invitation successfully created!")
            return True
        if resource.status_code == 409:
            logger.debug("User was already invited, everything is ok.")
            return True
        logger.error(
            "Unexpected status when inviting user %s to [%s]. "
            "Expected 201 CREATED or 409 CONFLICT, but got %d",
            username,
            self.uri,
            resource.status_code,
        )
        return False

    async def remove(self, username: str) -> bool:
        logger.debug("Removing user %s from [%s]...", username, self.uri)
        resource = await self.resources.delete(f"{self.uri}/{username}")
        if resource.status_code == 204:
            logger.debug("User successfully removed!")
            return True
        logger.error(
            "Problem while removing user. Expected 204 NO CONTENT, but got %d.",
            resource.status_code,
        )
        return False

    async def __aiter__(self) -> AsyncIterator[Collaborator]:
        paging = LinkHeaderPaging(
            self.resources,
            f"{self.uri}?per_page=100",
            "Unable to fetch Gitlab collaborators",
        )
        async for item in paging.items():
            yield GitlabCollaborator(item)


class BitbucketCollaborators(Collaborators):
    """Placeholder for Bitbucket, whose API cannot manage collaborators."""

    async def invite(self, username: str) -> bool:
        raise UnsupportedOperation(
            "Current Bitbucket API doesn't support invitations through api."
        )

    async def remove(self, username: str) -> bool:
        raise UnsupportedOperation(
            "Current Bitbucket API doesn't support removing collaborators."
        )

    def __aiter__(self) -> AsyncIterator[Collaborator]:
        # Raised on the call itself so `async for` fails before any await
        raise UnsupportedOperation(
            "Current Bitbucket API doesn't support listing collaborators."
        )
