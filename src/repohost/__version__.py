"""Version information for repohost.

Single source of truth for version number.
Follows PEP 440 and semantic versioning principles.
"""

__version__ = "0.3.0"
__version_info__ = tuple(int(part) for part in __version__.split("."))

# Version history:
# 0.3.0 - Bitbucket workspaces and issue tracker, body-based pagination
# 0.2.0 - Gitlab groups, members and notes
# 0.1.0 - Github organizations, issues and collaborators
