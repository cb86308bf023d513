"""Unit tests for the Github, Gitlab and Bitbucket facades."""

import pytest

from repohost.config import HostingConfig
from repohost.exceptions import NotAuthenticated, UnexpectedStatus
from repohost.organizations import (
    BitbucketOrganizations,
    GithubOrganizations,
    GitlabOrganizations,
)
from repohost.providers import PROVIDERS, Bitbucket, Github, Gitlab, provider_for
from repohost.repos import (
    BitbucketRepo,
    BitbucketRepos,
    GithubOrganizationRepos,
    GithubPersonalRepos,
    GithubRepo,
    GitlabPersonalRepos,
    GitlabRepo,
)
from repohost.tokens import AccessToken, TokenKind
from repohost.users import User


class TestGithub:
    @pytest.mark.asyncio
    async def test_repo(self, resources, github_repo):
        uri = "https://api.github.com/repos/self-xdsd/self-core"
        resources.on("GET", uri, body=github_repo("self-core", True))

        repo = await Github(resources).repo("self-xdsd/self-core")

        assert isinstance(repo, GithubRepo)
        assert repo.uri == uri
        assert repo.full_name() == "self-xdsd/self-core"

    @pytest.mark.asyncio
    async def test_missing_repo_is_fatal(self, resources):
        with pytest.raises(UnexpectedStatus, match="but got: 404"):
            await Github(resources).repo("nobody/nothing")

    @pytest.mark.asyncio
    async def test_repo_unauthenticated(self, resources):
        resources.on("GET", "https://api.github.com/repos/o/private", status=401)
        with pytest.raises(NotAuthenticated):
            await Github(resources).repo("o/private")

    def test_collections(self, resources):
        github = Github(resources)
        assert github.name() == "github"
        assert isinstance(github.organizations(), GithubOrganizations)
        assert isinstance(github.repos(), GithubPersonalRepos)
        assert github.repos().uri == "https://api.github.com/user/repos?per_page=100"
        org_repos = github.organization_repos("self-xdsd")
        assert isinstance(org_repos, GithubOrganizationRepos)
        assert org_repos.uri == "https://api.github.com/orgs/self-xdsd/repos?per_page=100"

    @pytest.mark.asyncio
    async def test_with_token(self, resources):
        resources.on("GET", "https://api.github.com/user/orgs?per_page=100", body=[])
        github = Github(resources).with_token("ghp_abc")

        await github.organizations().fetch_all()

        assert isinstance(github, Github)
        assert resources.calls()[0].token == AccessToken.github("ghp_abc")

    @pytest.mark.asyncio
    async def test_with_blank_token_is_anonymous(self, resources):
        resources.on("GET", "https://api.github.com/user/orgs?per_page=100", body=[])
        await Github(resources).with_token("").organizations().fetch_all()
        assert resources.calls()[0].token.is_anonymous()

    def test_api_url_from_config(self, resources):
        config = HostingConfig(github_api_url="https://github.example.com/api/v3/")
        github = Github(resources, config=config)
        assert github.repo_uri("o/r") == "https://github.example.com/api/v3/repos/o/r"


class TestGitlab:
    @pytest.mark.asyncio
    async def test_repo_path_is_encoded(self, resources):
        uri = "https://gitlab.com/api/v4/projects/my-group%2Fmy-project"
        resources.on("GET", uri, body={"id": 8, "path_with_namespace": "my-group/my-project"})

        repo = await Gitlab(resources).repo("my-group/my-project")

        assert isinstance(repo, GitlabRepo)
        assert repo.full_name() == "my-group/my-project"
        assert repo.issues().uri == f"{uri}/issues"

    def test_collections(self, resources):
        gitlab = Gitlab(resources)
        assert isinstance(gitlab.organizations(), GitlabOrganizations)
        assert isinstance(gitlab.repos(), GitlabPersonalRepos)

    @pytest.mark.asyncio
    async def test_token_is_private_token(self, resources):
        gitlab = Gitlab(resources, token=AccessToken.gitlab("glpat"))
        await gitlab.resources.get("https://gitlab.com/api/v4/user")
        assert resources.calls()[0].token.headers() == {"Private-Token": "glpat"}


class TestBitbucket:
    @pytest.mark.asyncio
    async def test_repo(self, resources):
        uri = "https://api.bitbucket.org/2.0/repositories/team/project"
        resources.on("GET", uri, body={"full_name": "team/project"})

        repo = await Bitbucket(resources).repo("team/project")

        assert isinstance(repo, BitbucketRepo)
        assert repo.full_name() == "team/project"

    def test_collections(self, resources):
        bitbucket = Bitbucket(resources)
        assert isinstance(bitbucket.organizations(), BitbucketOrganizations)
        repos = bitbucket.repos()
        assert isinstance(repos, BitbucketRepos)
        assert repos.uri == "https://api.bitbucket.org/2.0/repositories?role=admin&pagelen=100"


class TestRegistry:
    def test_registered_names(self):
        assert set(PROVIDERS) == {"github", "gitlab", "bitbucket"}

    @pytest.mark.parametrize("name,cls", [("github", Github), ("GITLAB", Gitlab), ("bitbucket", Bitbucket)])
    def test_provider_for(self, resources, name, cls):
        assert isinstance(provider_for(name, resources=resources), cls)

    def test_unknown_provider(self, resources):
        with pytest.raises(ValueError, match="Unknown provider"):
            provider_for("sourceforge", resources=resources)

    @pytest.mark.asyncio
    async def test_user_provider_is_authenticated(self, resources):
        user = User("mihai", "mihai@example.com", "gitlab", AccessToken.gitlab("glpat"))

        gitlab = user.provider(resources)
        await gitlab.repos().fetch_all()

        assert isinstance(gitlab, Gitlab)
        assert gitlab.user is user
        assert resources.calls()[0].token.kind is TokenKind.GITLAB

    @pytest.mark.asyncio
    async def test_owned_resources_closed(self):
        async with Github() as github:
            client = github.resources._client
        assert client.is_closed
