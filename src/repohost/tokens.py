"""Access tokens and the HTTP headers they render into.

Each provider expects its credential in a different header, with a
different value format:

    Github     Authorization: token <secret>
    Gitlab     Private-Token: <secret>
    Bitbucket  Authorization: Bearer <secret>

An unauthenticated (NONE) token renders no header at all.
"""

from dataclasses import dataclass, field
from enum import Enum


class TokenKind(str, Enum):
    """Provider kinds a token can be rendered for."""

    GITHUB = "github"
    GITLAB = "gitlab"
    BITBUCKET = "bitbucket"
    NONE = "none"


# kind -> (header name, value prefix)
_RENDERING: dict[TokenKind, tuple[str, str]] = {
    TokenKind.GITHUB: ("Authorization", "token "),
    TokenKind.GITLAB: ("Private-Token", ""),
    TokenKind.BITBUCKET: ("Authorization", "Bearer "),
}


@dataclass(frozen=True, eq=False)
class AccessToken:
    """A provider credential plus the header it must be sent in.

    Immutable. Two tokens are equal when they render the same header and
    value, whatever constructor produced them.

    Example:
        >>> token = AccessToken.github("ghp_123")
        >>> token.header(), token.value()
        ('Authorization', 'token ghp_123')
    """

    kind: TokenKind
    secret: str = field(default="", repr=False)

    @classmethod
    def github(cls, secret: str) -> "AccessToken":
        return cls(TokenKind.GITHUB, secret)

    @classmethod
    def gitlab(cls, secret: str) -> "AccessToken":
        return cls(TokenKind.GITLAB, secret)

    @classmethod
    def bitbucket(cls, secret: str) -> "AccessToken":
        return cls(TokenKind.BITBUCKET, secret)

    @classmethod
    def none(cls) -> "AccessToken":
        """Token for unauthenticated, public access."""
        return cls(TokenKind.NONE)

    @classmethod
    def for_provider(cls, provider: str, secret: str | None) -> "AccessToken":
        """Token of the given provider's kind; blank secrets give NONE.

        Raises:
            ValueError: If the provider name is not a known token kind.
        """
        if secret is None or not secret.strip():
            return cls.none()
        kind = TokenKind(provider.lower())
        if kind is TokenKind.NONE:
            return cls.none()
        return cls(kind, secret)

    def is_anonymous(self) -> bool:
        return self.kind is TokenKind.NONE

    def header(self) -> str | None:
        """HTTP header name, or None for the unauthenticated token."""
        if self.is_anonymous():
            return None
        return _RENDERING[self.kind][0]

    def value(self) -> str | None:
        """Fully formatted header value, or None for the unauthenticated token."""
        if self.is_anonymous():
            return None
        return _RENDERING[self.kind][1] + self.secret

    def headers(self) -> dict[str, str]:
        """Headers to merge into a request; empty for the unauthenticated token."""
        name = self.header()
        if name is None:
            return {}
        return {name: self.value()}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AccessToken):
            return NotImplemented
        return (self.header(), self.value()) == (other.header(), other.value())

    def __hash__(self) -> int:
        return hash((self.header(), self.value()))
