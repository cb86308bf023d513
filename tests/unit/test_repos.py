"""Unit tests for repository wrappers and repository listings."""

import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mocks.json_resources_mock import MockJsonResources
from mocks.payloads import github_repo_payload
from repohost.collaborators import BitbucketCollaborators, GitlabCollaborators
from repohost.comments import GitlabCommitComments
from repohost.commits import GithubCommits, GitlabCommits
from repohost.exceptions import NotAuthenticated, UnexpectedStatus, UnsupportedOperation
from repohost.issues import GithubIssues, GitlabIssues
from repohost.labels import GithubRepoLabels, GitlabRepoLabels
from repohost.repos import (
    BitbucketRepo,
    BitbucketRepos,
    GithubOrganizationRepos,
    GithubRepo,
    GitlabPersonalRepos,
    GitlabRepo,
)
from repohost.stars import GithubStars, GitlabStars

ORG_REPOS = "https://api.github.com/orgs/self-xdsd/repos?per_page=100"
GITLAB = "https://gitlab.com/api/v4"


class TestGithubOrganizationRepos:
    @pytest.mark.asyncio
    async def test_only_admin_repos(self, resources, github_repo):
        resources.on(
            "GET",
            ORG_REPOS,
            body=[
                github_repo("self-core", admin=True),
                github_repo("self-web", admin=False),
                github_repo("self-storage", admin=True),
            ],
        )

        repos = await GithubOrganizationRepos(resources, ORG_REPOS).fetch_all()

        assert [r.full_name() for r in repos] == ["self-xdsd/self-core", "self-xdsd/self-storage"]
        assert repos[0].uri == "https://api.github.com/repos/self-xdsd/self-core"
        assert all(isinstance(r, GithubRepo) for r in repos)

    @pytest.mark.asyncio
    async def test_missing_permissions_is_not_admin(self, resources):
        resources.on("GET", ORG_REPOS, body=[{"full_name": "o/r", "url": "https://api.github.com/repos/o/r"}])
        assert await GithubOrganizationRepos(resources, ORG_REPOS).fetch_all() == []

    @given(admins=st.lists(st.booleans(), max_size=30))
    @settings(max_examples=25, deadline=None)
    def test_k_of_n_in_order(self, admins):
        """N listed repos of which K are administered yield exactly those K."""
        resources = MockJsonResources()
        payloads = [github_repo_payload(f"repo-{i}", admin) for i, admin in enumerate(admins)]
        resources.on("GET", ORG_REPOS, body=payloads)

        repos = asyncio.run(GithubOrganizationRepos(resources, ORG_REPOS).fetch_all())

        expected = [p["full_name"] for p in payloads if p["permissions"]["admin"]]
        assert [r.full_name() for r in repos] == expected

    @pytest.mark.asyncio
    async def test_unauthenticated(self, resources):
        resources.on("GET", ORG_REPOS, status=401)
        with pytest.raises(NotAuthenticated):
            await GithubOrganizationRepos(resources, ORG_REPOS).fetch_all()

    @pytest.mark.asyncio
    async def test_server_error(self, resources):
        resources.on("GET", ORG_REPOS, status=500)
        with pytest.raises(UnexpectedStatus) as exc_info:
            await GithubOrganizationRepos(resources, ORG_REPOS).fetch_all()
        assert "500" in str(exc_info.value)
        assert "200 OK" in str(exc_info.value)


class TestRepoWrappers:
    def test_github_children(self, resources, github_repo):
        repo = GithubRepo(resources, "https://api.github.com/repos/o/r", github_repo("r", True, "o"))
        assert repo.provider() == "github"
        assert isinstance(repo.issues(), GithubIssues)
        assert repo.issues().uri == "https://api.github.com/repos/o/r/issues"
        assert repo.collaborators().uri == "https://api.github.com/repos/o/r/collaborators"
        assert repo.commit_comments("abc").uri == "https://api.github.com/repos/o/r/commits/abc/comments"

    def test_gitlab_full_name(self, resources):
        uri = f"{GITLAB}/projects/42"
        repo = GitlabRepo(resources, uri, {"id": 42, "path_with_namespace": "group/project"})
        assert repo.full_name() == "group/project"
        assert isinstance(repo.issues(), GitlabIssues)
        assert isinstance(repo.collaborators(), GitlabCollaborators)
        assert repo.collaborators().uri == f"{uri}/members"
        assert isinstance(repo.commit_comments("abc"), GitlabCommitComments)

    def test_bitbucket(self, resources):
        uri = "https://api.bitbucket.org/2.0/repositories/team/project"
        repo = BitbucketRepo(resources, uri, {"full_name": "team/project"})
        assert repo.full_name() == "team/project"
        assert repo.issues().uri == f"{uri}/issues"
        assert isinstance(repo.collaborators(), BitbucketCollaborators)
        assert repo.commits().uri == f"{uri}/commits"
        assert repo.commit_comments("abc").uri == f"{uri}/commit/abc/comments"

    def test_bitbucket_has_no_labels_nor_stars(self, resources):
        repo = BitbucketRepo(
            resources,
            "https://api.bitbucket.org/2.0/repositories/team/project",
            {"full_name": "team/project"},
        )
        with pytest.raises(UnsupportedOperation):
            repo.labels()
        with pytest.raises(UnsupportedOperation):
            repo.stars()

    def test_github_commits_labels_stars(self, resources, github_repo):
        repo = GithubRepo(resources, "https://api.github.com/repos/o/r", github_repo("r", True, "o"))
        assert isinstance(repo.commits(), GithubCommits)
        assert repo.commits().uri == "https://api.github.com/repos/o/r/commits"
        assert isinstance(repo.labels(), GithubRepoLabels)
        assert repo.labels().uri == "https://api.github.com/repos/o/r/labels"
        assert isinstance(repo.stars(), GithubStars)
        assert repo.stars().uri == "https://api.github.com/user/starred/o/r"

    def test_gitlab_commits_labels_stars(self, resources):
        uri = f"{GITLAB}/projects/42"
        repo = GitlabRepo(resources, uri, {"id": 42, "path_with_namespace": "group/project"})
        assert isinstance(repo.commits(), GitlabCommits)
        assert repo.commits().uri == f"{uri}/repository/commits"
        assert repo.commit_comments("abc").uri == f"{uri}/repository/commits/abc/comments"
        assert isinstance(repo.labels(), GitlabRepoLabels)
        assert repo.labels().uri == f"{uri}/labels"
        assert isinstance(repo.stars(), GitlabStars)
        assert repo.stars().uri == f"{uri}/star"


class TestGitlabPersonalRepos:
    @pytest.mark.asyncio
    async def test_lists_owned_projects(self, resources):
        resources.on("GET", f"{GITLAB}/user", body={"id": 7, "username": "mihai"})
        resources.on(
            "GET",
            f"{GITLAB}/users/7/projects?owned=true&per_page=100",
            body=[
                {
                    "id": 1,
                    "path_with_namespace": "mihai/one",
                    "_links": {"self": f"{GITLAB}/projects/1"},
                }
            ],
        )

        repos = await GitlabPersonalRepos(resources, GITLAB).fetch_all()

        assert [r.full_name() for r in repos] == ["mihai/one"]
        assert repos[0].uri == f"{GITLAB}/projects/1"

    @pytest.mark.asyncio
    async def test_unknown_user_is_empty(self, resources, repohost_caplog):
        resources.on("GET", f"{GITLAB}/user", status=401)
        assert await GitlabPersonalRepos(resources, GITLAB).fetch_all() == []
        assert "Can't get user id" in repohost_caplog.text


class TestBitbucketRepos:
    @pytest.mark.asyncio
    async def test_pages_through_next(self, resources):
        first = "https://api.bitbucket.org/2.0/repositories/team"
        second = f"{first}?page=2"

        def entry(slug):
            return {
                "full_name": f"team/{slug}",
                "links": {"self": {"href": f"{first}/{slug}"}},
            }

        resources.on("GET", first, body={"values": [entry("a")], "next": second})
        resources.on("GET", second, body={"values": [entry("b")]})

        repos = await BitbucketRepos(resources, first).fetch_all()

        assert [r.full_name() for r in repos] == ["team/a", "team/b"]
        assert repos[1].uri == f"{first}/b"
