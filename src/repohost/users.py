"""Users known to the system."""

from dataclasses import dataclass, field

from .providers import Provider, provider_for
from .resources import JsonResources
from .tokens import AccessToken

__all__ = ["User"]


@dataclass(frozen=True)
class User:
    """A person signed up through one hosting provider.

    Users are identified by (username, provider_name); the store never
    holds two users with the same key.

    Attributes:
        username: Username at the provider
        email: Email address, may be empty when the provider hides it
        provider_name: github, gitlab or bitbucket
        access_token: Token used for calls made on the user's behalf
        role: "user" or "admin"
    """

    username: str
    email: str
    provider_name: str
    access_token: AccessToken = field(default_factory=AccessToken.none, repr=False)
    role: str = "user"

    @property
    def key(self) -> tuple[str, str]:
        return (self.username, self.provider_name)

    def provider(self, resources: JsonResources | None = None) -> Provider:
        """The user's provider facade, authenticated with the user's token.

        Args:
            resources: Shared JsonResources to go through; the facade
                creates and owns its own when omitted
        """
        return provider_for(
            self.provider_name,
            resources=resources,
            user=self,
            token=self.access_token,
        )
