"""Building blocks shared by the domain wrappers and collections."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any, Generic, TypeVar

from .exceptions import MalformedPayload

T = TypeVar("T")

_MISSING = object()


def field_at(payload: dict[str, Any], *path: str) -> Any:
    """Value at a nested path of a JSON payload.

    Args:
        payload: JSON object as returned by a provider
        path: Keys to follow, e.g. ("user", "login")

    Raises:
        MalformedPayload: If any key along the path is absent or null.
    """
    value = _walk(payload, path)
    if value is _MISSING or value is None:
        raise MalformedPayload(f"Missing field '{'.'.join(path)}' in payload")
    return value


def optional_at(payload: dict[str, Any], *path: str) -> Any:
    """Like field_at(), but an absent or null value yields None."""
    value = _walk(payload, path)
    return None if value is _MISSING else value


def nullable_at(payload: dict[str, Any], *path: str) -> Any:
    """Value of a required field which may be JSON null.

    Returns:
        The value, or None when the field (or an object on its path) is null.

    Raises:
        MalformedPayload: If a key along the path is absent.
    """
    current: Any = payload
    for key in path:
        if current is None:
            return None
        if not isinstance(current, dict) or key not in current:
            raise MalformedPayload(f"Missing field '{'.'.join(path)}' in payload")
        current = current[key]
    return current


def id_at(payload: dict[str, Any], key: str = "id") -> str:
    """A numeric id field rendered as a string."""
    value = field_at(payload, key)
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise MalformedPayload(f"Field '{key}' is not an id: {value!r}")
    return str(value)


def _walk(payload: Any, path: tuple[str, ...]) -> Any:
    current = payload
    for key in path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


class Collection(ABC, Generic[T]):
    """Lazy, provider-backed sequence.

    Iterating performs the network fetch; every new iteration fetches again,
    so two iterations never share stale data.
    """

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[T]:
        """Fetch and yield the elements in server order."""

    async def fetch_all(self) -> list[T]:
        """Fetch every element into a list."""
        return [item async for item in self]
