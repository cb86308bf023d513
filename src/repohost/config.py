"""Configuration management with pydantic-settings for repohost.

- pydantic-settings v2 for type-safe configuration
- Automatic .env file loading with proper precedence
- REPOHOST_ environment variable prefix
- Frozen config (thread-safe, immutable after load)
"""

import logging
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .__version__ import __version__

logger = logging.getLogger("repohost.config")

__all__ = [
    "DEFAULT_BITBUCKET_API_URL",
    "DEFAULT_GITHUB_API_URL",
    "DEFAULT_GITLAB_API_URL",
    "HostingConfig",
    "get_config",
    "reset_config",
]

DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_GITLAB_API_URL = "https://gitlab.com/api/v4"
DEFAULT_BITBUCKET_API_URL = "https://api.bitbucket.org/2.0"


class HostingConfig(BaseSettings):
    """Configuration for repohost.

    Loads from (in order of precedence):
    1. Environment variables prefixed with REPOHOST_ (highest priority)
    2. .env file in the working directory
    3. Default values (lowest priority)

    Attributes:
        github_api_url: Root of the Github REST API
        gitlab_api_url: Root of the Gitlab REST API (v4)
        bitbucket_api_url: Root of the Bitbucket Cloud REST API (2.0)
        connect_timeout: Connection establishment timeout in seconds
        read_timeout: Response read timeout in seconds
        write_timeout: Request body write timeout in seconds
        pool_timeout: Connection pool acquisition timeout in seconds
        max_connections: Total connection limit of the shared httpx client
        max_keepalive_connections: Keep-alive pool size
        max_pages: Upper bound on pages followed by one collection iteration
        user_agent: User-Agent header sent with every request
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format (json for production, text for development)
        admins: Provider name -> usernames holding the admin role
    """

    model_config = SettingsConfigDict(
        env_prefix="REPOHOST_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        validate_default=True,
        frozen=True,
        extra="ignore",
    )

    github_api_url: str = Field(
        default=DEFAULT_GITHUB_API_URL, description="Github REST API root"
    )
    gitlab_api_url: str = Field(
        default=DEFAULT_GITLAB_API_URL, description="Gitlab REST API root"
    )
    bitbucket_api_url: str = Field(
        default=DEFAULT_BITBUCKET_API_URL, description="Bitbucket REST API root"
    )

    connect_timeout: float = Field(default=5.0, gt=0, le=120)
    read_timeout: float = Field(default=30.0, gt=0, le=300)
    write_timeout: float = Field(default=5.0, gt=0, le=120)
    pool_timeout: float = Field(default=5.0, gt=0, le=120)

    max_connections: int = Field(default=100, ge=1, le=1000)
    max_keepalive_connections: int = Field(default=20, ge=0, le=1000)

    max_pages: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Safety limit on pages followed while iterating one collection",
    )

    user_agent: str = Field(default=f"repohost/{__version__}")

    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    admins: dict[str, list[str]] = Field(
        default_factory=dict,
        description='Admin usernames per provider, e.g. {"github": ["octocat"]}',
    )

    @field_validator("github_api_url", "gitlab_api_url", "bitbucket_api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """API roots must be http(s) and carry no trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"API URL must start with http:// or https://, got '{v}'")
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level '{v}'")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in {"json", "text"}:
            raise ValueError(f"Invalid log format '{v}'. Expected 'json' or 'text'.")
        return v

    @field_validator("admins", mode="after")
    @classmethod
    def normalize_admins(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        """Provider names are matched lower-case."""
        return {provider.lower(): list(users) for provider, users in v.items()}

    @model_validator(mode="after")
    def validate_pool(self) -> "HostingConfig":
        if self.max_keepalive_connections > self.max_connections:
            raise ValueError(
                f"REPOHOST_MAX_KEEPALIVE_CONNECTIONS ({self.max_keepalive_connections}) "
                f"must be <= REPOHOST_MAX_CONNECTIONS ({self.max_connections})"
            )
        return self

    def api_url(self, provider: str) -> str:
        """Get the configured API root of a provider by name.

        Raises:
            KeyError: If the provider name is unknown.
        """
        urls = {
            "github": self.github_api_url,
            "gitlab": self.gitlab_api_url,
            "bitbucket": self.bitbucket_api_url,
        }
        return urls[provider.lower()]

    def admin_table(self) -> dict[str, frozenset[str]]:
        """Admin usernames per provider, in the shape resolve_role() expects."""
        return {provider: frozenset(users) for provider, users in self.admins.items()}


@lru_cache(maxsize=1)
def get_config() -> HostingConfig:
    """Get global configuration singleton.

    First call loads from environment + .env file, subsequent calls return
    the cached instance.

    Raises:
        ValidationError: If configuration values are invalid.
    """
    return HostingConfig()


def reset_config() -> None:
    """Reset configuration singleton for testing.

    Warning:
        Only use in test code. Production code should not reset config.
    """
    get_config.cache_clear()
