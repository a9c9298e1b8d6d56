"""Unit tests for the PyGithub backed host."""

from typing import Any
from unittest.mock import MagicMock

import pytest

from pygitstack.config import Config
from pygitstack.githost import DoesNotExistError, GitHubHost, PullRequest, find_github_token


def config() -> Config:
    return Config({
        'repo': {
            'github_repo_owner': 'acme',
            'github_repo_name': 'widgets',
        },
    })


def gh_pull(number: int, head: str, base: str, body: Any = "") -> MagicMock:
    pull = MagicMock()
    pull.number = number
    pull.head.ref = head
    pull.base.ref = base
    pull.body = body
    pull.html_url = f"https://github.com/acme/widgets/pull/{number}"
    return pull


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def host(client: MagicMock) -> GitHubHost:
    return GitHubHost(config(), client)


class TestGitHubHost:
    """GitHubHost over a mocked PyGithub client."""

    def test_repo_lookup(self, host: GitHubHost, client: MagicMock) -> None:
        assert host.repo is client.get_repo.return_value
        client.get_repo.assert_called_once_with("acme/widgets")

    def test_get_pull_request(self, host: GitHubHost, client: MagicMock) -> None:
        repo = client.get_repo.return_value
        repo.get_pulls.return_value = [gh_pull(7, "feature", "main", None)]

        pr = host.get_pull_request("feature")

        repo.get_pulls.assert_called_once_with(state='open', head="acme:feature")
        assert pr == PullRequest(
            source_branch="feature",
            target_branch="main",
            description="",
            web_url="https://github.com/acme/widgets/pull/7",
            markdown_web_url="#7",
            number=7,
        )

    def test_get_missing_pull_request(self, host: GitHubHost, client: MagicMock) -> None:
        client.get_repo.return_value.get_pulls.return_value = [gh_pull(3, "feature-other", "main")]

        with pytest.raises(DoesNotExistError):
            host.get_pull_request("feature")

    def test_create_pull_request(self, host: GitHubHost, client: MagicMock) -> None:
        repo = client.get_repo.return_value
        repo.create_pull.return_value = gh_pull(9, "feature-2", "feature-1")

        pr = host.create_pull_request(PullRequest("feature-2", "feature-1"))

        repo.create_pull.assert_called_once_with(
            title="feature-2", body="", base="feature-1", head="feature-2")
        assert pr.number == 9
        assert pr.target_branch == "feature-1"

    def test_update_pull_request(self, host: GitHubHost, client: MagicMock) -> None:
        pull = gh_pull(7, "feature", "main", "old")
        client.get_repo.return_value.get_pulls.return_value = [pull]

        pr = host.update_pull_request(PullRequest("feature", "base-branch", "new body"))

        pull.edit.assert_called_once_with(base="base-branch", body="new body")
        assert pr.target_branch == "base-branch"
        assert pr.description == "new body"
        assert pr.web_url == "https://github.com/acme/widgets/pull/7"

    def test_update_missing_pull_request(self, host: GitHubHost, client: MagicMock) -> None:
        client.get_repo.return_value.get_pulls.return_value = []
        with pytest.raises(DoesNotExistError):
            host.update_pull_request(PullRequest("feature", "main"))


def test_token_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "abc123")
    assert find_github_token() == "abc123"


def test_token_from_gh_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Any) -> None:
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    hosts = tmp_path / ".config" / "gh"
    hosts.mkdir(parents=True)
    (hosts / "hosts.yml").write_text("github.com:\n  oauth_token: from-gh\n")

    assert find_github_token() == "from-gh"
