"""repohost - One domain model over several source-code hosting providers.

Provides Github, Gitlab and Bitbucket behind the same interfaces through:
- Access tokens rendered into each provider's auth header
- An async JSON resource client (httpx) as the single I/O chokepoint
- Lazy, paginated collections of organizations, repos, issues, comments
  and collaborators
- Uniform error semantics (not authenticated, unexpected status,
  unsupported operation, malformed payload)

Python Version: 3.10+ required
"""

# Logging Configuration - Configure before other imports
from .logging_config import StructuredFormatter, configure_logging

# Initialize structured logging on module import
configure_logging()

from .__version__ import __version__

# API tokens and storage contracts
from .api_tokens import ApiToken, ApiTokens
from .collaborators import Collaborator, Collaborators

# Domain wrappers and collections
from .comments import Comment, Comments
from .commits import Commit, Commits

# Configuration
from .config import HostingConfig, get_config, reset_config
from .exceptions import (
    HostingError,
    MalformedPayload,
    NotAuthenticated,
    UnexpectedStatus,
    UnsupportedOperation,
)
from .issues import Issue, Issues, Roles
from .labels import Label, Labels

# Identities
from .login import BitbucketLogin, GithubLogin, GitlabLogin, Login, resolve_role
from .organizations import Organization, Organizations

# Provider facades
from .providers import PROVIDERS, Bitbucket, Github, Gitlab, Provider, provider_for
from .repos import Repo, Repos

# Resource access
from .resources import HttpxJsonResources, JsonResources, Resource
from .stars import Stars
from .storage import InMemoryStorage, Storage, Users
from .tokens import AccessToken, TokenKind
from .users import User

# Submodule exports for test mocking compatibility
# patch("repohost.metrics.requests_total") style mocking
from . import metrics

__all__ = [
    "__version__",
    # Configuration
    "HostingConfig",
    "get_config",
    "reset_config",
    # Logging
    "configure_logging",
    "StructuredFormatter",
    # Errors
    "HostingError",
    "NotAuthenticated",
    "UnexpectedStatus",
    "UnsupportedOperation",
    "MalformedPayload",
    # Resource access
    "AccessToken",
    "TokenKind",
    "JsonResources",
    "HttpxJsonResources",
    "Resource",
    # Domain
    "Comment",
    "Comments",
    "Issue",
    "Issues",
    "Roles",
    "Collaborator",
    "Collaborators",
    "Commit",
    "Commits",
    "Label",
    "Labels",
    "Stars",
    "Repo",
    "Repos",
    "Organization",
    "Organizations",
    # Providers
    "Provider",
    "Github",
    "Gitlab",
    "Bitbucket",
    "PROVIDERS",
    "provider_for",
    # Identities
    "User",
    "Login",
    "GithubLogin",
    "GitlabLogin",
    "BitbucketLogin",
    "resolve_role",
    # API tokens and storage
    "ApiToken",
    "ApiTokens",
    "Storage",
    "Users",
    "InMemoryStorage",
    "metrics",
]
