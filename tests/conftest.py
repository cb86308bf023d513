"""Shared pytest fixtures for repohost tests.

Fixture Organization:
    - Mock fixtures: MockJsonResources standing in for the HTTP layer
    - Sample data fixtures: Provider payloads as the real APIs return them
    - Logging fixtures: make repohost records visible to caplog
"""

import contextlib
import logging
import os
import sys
from pathlib import Path

import pytest
from hypothesis import HealthCheck, settings

# Add tests directory to sys.path so tests can import the mocks package
tests_dir = Path(__file__).parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

from mocks.payloads import github_repo_payload  # noqa: E402

GITHUB = "https://api.github.com"

# Hypothesis examples share the function-scoped autouse fixtures below
settings.register_profile(
    "repohost", suppress_health_check=[HealthCheck.function_scoped_fixture]
)
settings.load_profile("repohost")


def pytest_sessionstart(session):
    """Clear the Prometheus REGISTRY before pytest starts collecting tests.

    Prevents duplicate registration errors when repohost.metrics is imported
    more than once during collection.
    """
    try:
        from prometheus_client import REGISTRY

        collectors = list(REGISTRY._names_to_collectors.values())
        for collector in collectors:
            with contextlib.suppress(Exception):
                REGISTRY.unregister(collector)
    except ImportError:
        pass  # prometheus_client not installed


# =============================================================================
# Configuration Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Run every test on default settings, away from any local .env file."""
    from repohost.config import reset_config

    monkeypatch.chdir(tmp_path)
    for name in [key for key in os.environ if key.startswith("REPOHOST_")]:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


# =============================================================================
# Mock Fixtures
# =============================================================================


@pytest.fixture
def resources():
    """Empty MockJsonResources; every unregistered request answers 404."""
    from mocks.json_resources_mock import MockJsonResources

    return MockJsonResources()


@pytest.fixture
def repohost_caplog(caplog, monkeypatch):
    """caplog which also sees records of the non-propagating repohost logger."""
    monkeypatch.setattr(logging.getLogger("repohost"), "propagate", True)
    caplog.set_level(logging.DEBUG, logger="repohost")
    return caplog


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def github_issue_346():
    """Github issue #346 of amihaiemil/docker-java-api."""
    return {
        "url": f"{GITHUB}/repos/amihaiemil/docker-java-api/issues/346",
        "repository_url": f"{GITHUB}/repos/amihaiemil/docker-java-api",
        "id": 519413297,
        "number": 346,
        "title": "Test issue for integration tests",
        "user": {"login": "amihaiemil", "id": 7189867},
        "state": "open",
        "assignee": None,
        "body": "This issue is used in tests. Please leave it open.",
    }


@pytest.fixture
def gitlab_issue():
    return {
        "id": 76,
        "iid": 6,
        "project_id": 8,
        "title": "Consequatur vero maxime deserunt laboriosam est voluptas dolorem.",
        "description": "Ratione dolores corrupti mollitia soluta quia.",
        "state": "opened",
        "author": {"id": 1, "username": "root", "name": "Administrator"},
        "assignee": {"id": 2, "username": "mihai", "name": "Mihai"},
        "web_url": "https://gitlab.com/my-group/my-project/-/issues/6",
        "references": {"short": "#6", "full": "my-group/my-project#6"},
        "labels": ["bug", "puzzle"],
    }


@pytest.fixture
def bitbucket_issue():
    return {
        "id": 4,
        "title": "Build fails on Windows",
        "state": "open",
        "reporter": {"account_id": "5b10a2844c20165700ede21g"},
        "assignee": None,
        "content": {"raw": "Steps to reproduce..."},
        "repository": {"full_name": "team/project"},
    }


@pytest.fixture
def github_repo():
    """Factory for Github repo listing entries."""
    return github_repo_payload
