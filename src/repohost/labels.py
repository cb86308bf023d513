"""Labels of issues and repositories.

    Labels               list                  add                      remove
    GithubIssueLabels    GET <issue>/labels    POST {labels: [...]}     DELETE <issue>/labels/<name>
    GitlabIssueLabels    issue payload         PUT {add_labels: a,b}    PUT {remove_labels: name}
    GithubRepoLabels     GET <repo>/labels     POST {name, color}       DELETE <repo>/labels/<name>
    GitlabRepoLabels     GET <project>/labels  POST {name, color}       DELETE <project>/labels/<id>

Like collaborators, mutations answer True or False and log the unexpected
status; listing raises like every other collection. Bitbucket has no
labels, its repos and issues refuse to build a Labels at all.
"""

import logging
import random
from abc import abstractmethod
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import quote

from .base import Collection, field_at, nullable_at
from .paging import LinkHeaderPaging
from .resources import JsonResources

logger = logging.getLogger("repohost.labels")

__all__ = [
    "GithubIssueLabels",
    "GithubRepoLabels",
    "GitlabIssueLabels",
    "GitlabRepoLabels",
    "Label",
    "Labels",
]


def random_color() -> str:
    """Six hex digits, the color of a label created without one."""
    return f"{random.randrange(0x1000000):06x}"


class Label:
    """A label, as an object payload or, for Gitlab issues, a plain name."""

    def __init__(self, payload: dict[str, Any] | str) -> None:
        self._json = payload

    def name(self) -> str:
        if isinstance(self._json, str):
            return self._json
        return field_at(self._json, "name")

    def json(self) -> dict[str, Any]:
        if isinstance(self._json, str):
            return {"name": self._json}
        return self._json

    def __repr__(self) -> str:
        return f"Label({self.name()!r})"


class Labels(Collection[Label]):
    """Labels of one issue or repository.

    Attributes:
        uri: Labels URI (the issue's own URI for Gitlab issues)
        resources: JsonResources of the provider session
    """

    def __init__(self, resources: JsonResources, uri: str) -> None:
        self.resources = resources
        self.uri = uri.rstrip("/")

    @abstractmethod
    async def add(self, *names: str) -> bool:
        """Add labels; True when all of them were added."""

    @abstractmethod
    async def remove(self, name: str) -> bool:
        """Remove a label; True when it is gone afterwards."""

    async def __aiter__(self) -> AsyncIterator[Label]:
        paging = LinkHeaderPaging(
            self.resources, f"{self.uri}?per_page=100", "Unable to fetch Labels"
        )
        async for item in paging.items():
            yield Label(item)


class GithubIssueLabels(Labels):
    async def add(self, *names: str) -> bool:
        logger.debug("Adding labels %s to [%s]...", list(names), self.uri)
        resource = await self.resources.post(self.uri, {"labels": list(names)})
        if resource.status_code == 200:
            return True
        logger.error(
            "Problem while adding labels. Expected 200 OK, but got %d",
            resource.status_code,
        )
        return False

    async def remove(self, name: str) -> bool:
        resource = await self.resources.delete(f"{self.uri}/{quote(name, safe='')}")
        # 404: the issue did not carry the label
        if resource.status_code in (200, 404):
            return True
        logger.error(
            "Problem while removing label %s. Expected 200 OK, but got %d",
            name,
            resource.status_code,
        )
        return False


class GitlabIssueLabels(Labels):
    """Labels of a Gitlab issue, edited through the issue itself.

    Gitlab embeds the labels in the issue payload, so iterating needs no
    request.
    """

    def __init__(
        self, resources: JsonResources, uri: str, issue: dict[str, Any]
    ) -> None:
        super().__init__(resources, uri)
        self._issue = issue

    async def add(self, *names: str) -> bool:
        labels = ",".join(names)
        logger.debug("Adding labels [%s] to GitLab Issue [%s]...", labels, self.uri)
        return await self._edit({"add_labels": labels}, "adding labels")

    async def remove(self, name: str) -> bool:
        logger.debug("Removing label [%s] from GitLab Issue [%s]...", name, self.uri)
        return await self._edit({"remove_labels": name}, "removing labels")

    async def _edit(self, body: dict[str, Any], action: str) -> bool:
        resource = await self.resources.put(self.uri, body)
        if resource.status_code == 200:
            return True
        logger.error(
            "Problem while %s. Expected 200 OK, but got %d",
            action,
            resource.status_code,
        )
        return False

    async def __aiter__(self) -> AsyncIterator[Label]:
        for label in nullable_at(self._issue, "labels") or []:
            yield Label(label)


class GithubRepoLabels(Labels):
    async def add(self, *names: str) -> bool:
        added = True
        for name in names:
            resource = await self.resources.post(
                self.uri, {"name": name, "color": random_color()}
            )
            # 422: a label with that name exists already
            if resource.status_code not in (201, 422):
                logger.warning(
                    "Problem while adding label %s. Expected 201 CREATED, got %d",
                    name,
                    resource.status_code,
                )
                added = False
        return added

    async def remove(self, name: str) -> bool:
        label_uri = f"{self.uri}/{quote(name, safe='')}"
        logger.debug("Removing Repo Label [%s]...", label_uri)
        resource = await self.resources.delete(label_uri)
        if resource.status_code in (204, 404):
            logger.debug("Repo Label removed successfully.")
            return True
        logger.error(
            "Unexpected response. Expected 204 or 404, but got: %d",
            resource.status_code,
        )
        return False


class GitlabRepoLabels(Labels):
    """Labels of a Gitlab project. Gitlab deletes labels by numeric id."""

    async def add(self, *names: str) -> bool:
        added = True
        for name in names:
            logger.debug("Adding Label [%s] to GitLab repo [%s]...", name, self.uri)
            resource = await self.resources.post(
                self.uri, {"name": name, "color": f"#{random_color()}"}
            )
            if resource.status_code != 201:
                logger.warning(
                    "Problem while adding label. Expected 201 CREATED, got %d",
                    resource.status_code,
                )
                added = False
        return added

    async def remove(self, name: str) -> bool:
        label_id = None
        async for label in self:
            if label.name().lower() == name.lower():
                label_id = field_at(label.json(), "id")
                break
        if label_id is None:
            return True
        logger.debug("Removing label [%s], ID is %s", name, label_id)
        resource = await self.resources.delete(f"{self.uri}/{label_id}")
        if resource.status_code == 204:
            return True
        logger.warning(
            "Could not remove label [%s]. Expected 204 NO CONTENT, got %d",
            name,
            resource.status_code,
        )
        return False
