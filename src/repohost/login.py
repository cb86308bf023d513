"""Identities extracted from a provider's OAuth login.

A Login carries what the provider told us about the person logging in;
sign_up() turns it into a stored User, once.

The role is never stored on the Login: it is derived from the admin table
handed in by the caller (usually HostingConfig.admin_table()).
"""

import logging
from abc import ABC
from collections.abc import Collection, Mapping

from .storage import Storage
from .tokens import AccessToken
from .users import User

logger = logging.getLogger("repohost.login")

__all__ = [
    "ADMIN",
    "BitbucketLogin",
    "GithubLogin",
    "GitlabLogin",
    "Login",
    "USER",
    "resolve_role",
]

ADMIN = "admin"
USER = "user"


def resolve_role(
    provider: str, username: str, admins: Mapping[str, Collection[str]]
) -> str:
    """Role of a user, looked up in an explicit admin table.

    Args:
        provider: Provider name, e.g. "github"
        username: Username at that provider
        admins: Provider name -> usernames holding the admin role

    Returns:
        "admin" if the username is listed for the provider, "user" otherwise.
    """
    if username in admins.get(provider.lower(), ()):
        return ADMIN
    return USER


class Login(ABC):
    """An identity claimed through one provider.

    Attributes:
        username: Username at the provider
        email: Email address, may be empty
        access_token: OAuth token secret, as received
    """

    provider_name = ""

    def __init__(
        self,
        username: str,
        email: str,
        access_token: str,
        admins: Mapping[str, Collection[str]] | None = None,
    ) -> None:
        self.username = username
        self.email = email
        self.access_token = access_token
        self._admins = admins or {}

    def provider(self) -> str:
        return self.provider_name

    def role(self) -> str:
        return resolve_role(self.provider_name, self.username, self._admins)

    def user(self) -> User:
        """The User this login describes, not yet stored."""
        return User(
            username=self.username,
            email=self.email,
            provider_name=self.provider_name,
            access_token=AccessToken.for_provider(
                self.provider_name, self.access_token
            ),
            role=self.role(),
        )

    def sign_up(self, storage: Storage) -> User:
        """Store the user unless already known; return the stored user.

        Logging in repeatedly with the same identity never creates a
        second record.
        """
        users = storage.users()
        existing = users.user(self.username, self.provider_name)
        if existing is not None:
            logger.debug(
                "User %s (%s) already signed up", self.username, self.provider_name
            )
            return existing
        logger.info("Signing up user %s (%s)", self.username, self.provider_name)
        return users.sign_up(self.user())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.username!r})"


class GithubLogin(Login):
    provider_name = "github"


class GitlabLogin(Login):
    provider_name = "gitlab"


class BitbucketLogin(Login):
    provider_name = "bitbucket"
