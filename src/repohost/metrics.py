"""
Prometheus metrics definitions for repohost.

Counts and times every request sent through HttpxJsonResources, labelled by
provider, so dashboards can tell a slow Gitlab from a failing Bitbucket.

Project naming conventions: snake_case, repohost_ prefix.
"""

from urllib.parse import urlsplit

from prometheus_client import Counter, Histogram

# ==============================================================================
# COUNTERS - Monotonically increasing values
# ==============================================================================

requests_total = Counter(
    "repohost_requests_total",
    "Total HTTP requests sent to hosting providers",
    ["provider", "method", "status"],
    # provider: github, gitlab, bitbucket, other
    # status: HTTP status code as string
)

failures_total = Counter(
    "repohost_failures_total",
    "Requests that never produced an HTTP response",
    ["provider", "error"],
    # error: timeout, transport
)

# ==============================================================================
# HISTOGRAMS - Latency distributions
# ==============================================================================

request_duration_seconds = Histogram(
    "repohost_request_duration_seconds",
    "Time spent waiting on hosting provider responses",
    ["provider", "method"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)


def provider_label(uri: str) -> str:
    """Derive the provider label from a request URI's host."""
    host = (urlsplit(uri).hostname or "").lower()
    for name in ("github", "gitlab", "bitbucket"):
        if name in host:
            return name
    return "other"
