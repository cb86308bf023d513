"""API tokens issued to users for calling this system.

Not to be confused with AccessToken: an ApiToken authenticates a caller
towards us, an AccessToken authenticates us towards a hosting provider.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .users import User

__all__ = ["ApiToken", "ApiTokens"]


def _aware(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.astimezone()
    return moment


@dataclass(frozen=True)
class ApiToken:
    """A named, expiring API token.

    Equal (and hashing equal) exactly when name, secret bytes and expiration
    are all equal, so tokens can key caches and sessions.
    """

    name: str
    secret: bytes = field(repr=False)
    expiration: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        """Whether the token has expired at `now` (default: the current time).

        Naive datetimes, on either side, are taken as local time.
        """
        now = now or datetime.now(timezone.utc)
        return _aware(self.expiration) <= _aware(now)


class ApiTokens:
    """API tokens grouped by the user owning them.

    Iterating yields every token of every user held by this view.
    """

    def __init__(self, tokens: Mapping[User, list[ApiToken]] | None = None) -> None:
        self._tokens: dict[User, list[ApiToken]] = {
            user: list(user_tokens) for user, user_tokens in (tokens or {}).items()
        }

    def of_user(self, user: User) -> "ApiTokens":
        """View restricted to one user's tokens.

        Raises:
            KeyError: If the user holds no tokens.
        """
        if user not in self._tokens:
            raise KeyError(f"Not found for {user}")
        return ApiTokens({user: self._tokens[user]})

    def register(self, user: User, token: ApiToken) -> ApiToken:
        self._tokens.setdefault(user, []).append(token)
        return token

    def remove(self, token: ApiToken) -> bool:
        """Forget a token; False if it was not registered."""
        for user, user_tokens in self._tokens.items():
            if token in user_tokens:
                user_tokens.remove(token)
                if not user_tokens:
                    del self._tokens[user]
                return True
        return False

    def __iter__(self) -> Iterator[ApiToken]:
        for user_tokens in self._tokens.values():
            yield from user_tokens

    def __len__(self) -> int:
        return sum(len(user_tokens) for user_tokens in self._tokens.values())
