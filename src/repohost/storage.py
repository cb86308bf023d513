"""Storage contracts consumed by repohost, plus an in-memory implementation.

Persistence is somebody else's job: this module only fixes the narrow
read/write surface login and token handling rely on. InMemoryStorage backs
tests and single-process tools.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator

from .api_tokens import ApiTokens
from .users import User

__all__ = ["InMemoryStorage", "InMemoryUsers", "Storage", "Users"]


class Users(ABC):
    """Users keyed by (username, provider name)."""

    @abstractmethod
    def user(self, username: str, provider: str) -> User | None:
        """The stored user, None if there is none."""

    @abstractmethod
    def sign_up(self, user: User) -> User:
        """Store a user, returning the stored one.

        Signing up an already stored key returns the existing user unchanged.
        """

    @abstractmethod
    def __iter__(self) -> Iterator[User]:
        ...


class Storage(ABC):
    @abstractmethod
    def users(self) -> Users:
        ...

    @abstractmethod
    def api_tokens(self) -> ApiTokens:
        ...


class InMemoryUsers(Users):
    def __init__(self) -> None:
        self._users: dict[tuple[str, str], User] = {}

    def user(self, username: str, provider: str) -> User | None:
        return self._users.get((username, provider))

    def sign_up(self, user: User) -> User:
        return self._users.setdefault(user.key, user)

    def __iter__(self) -> Iterator[User]:
        return iter(list(self._users.values()))

    def __len__(self) -> int:
        return len(self._users)


class InMemoryStorage(Storage):
    def __init__(self) -> None:
        self._users = InMemoryUsers()
        self._api_tokens = ApiTokens()

    def users(self) -> InMemoryUsers:
        return self._users

    def api_tokens(self) -> ApiTokens:
        return self._api_tokens
