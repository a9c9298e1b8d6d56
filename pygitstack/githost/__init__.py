"""Pull request host interfaces and the GitHub implementation."""

import os
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import yaml
from github import Github
from github.GithubObject import NotSet
from github.PullRequest import PullRequest as PyGithubPullRequest
from github.Repository import Repository

from ..config.models import GitStackConfig
from ..util import ensure

# Get module logger
logger = logging.getLogger(__name__)

class DoesNotExistError(Exception):
    """Raised by a host when no open pull request exists for a branch."""

@dataclass
class PullRequest:
    """Pull request info."""
    source_branch: str
    target_branch: str
    description: str = ""
    web_url: str = ""
    markdown_web_url: str = ""
    number: int = 0

    def __str__(self) -> str:
        return f"PR #{self.number} {self.source_branch} -> {self.target_branch}"

@runtime_checkable
class HostInterface(Protocol):
    """What the push command needs from the pull request host."""

    def get_pull_request(self, branch_name: str) -> PullRequest:
        """Get the open PR for branch_name, raising DoesNotExistError if none."""
        ...

    def create_pull_request(self, pr: PullRequest) -> PullRequest:
        ...

    def update_pull_request(self, pr: PullRequest) -> PullRequest:
        """Update the target and description of the PR for pr.source_branch."""
        ...

def find_github_token() -> Optional[str]:
    """Find GitHub token from the environment or the gh CLI config."""
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    try:
        gh_config_path = Path.home() / ".config" / "gh" / "hosts.yml"
        if gh_config_path.exists():
            with open(gh_config_path, "r") as f:
                gh_config = yaml.safe_load(f)
                if gh_config and "github.com" in gh_config:
                    github_config: Dict[str, Any] = gh_config["github.com"]
                    token = github_config.get("oauth_token")
                    if isinstance(token, str):
                        return token
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error reading gh CLI config: {e}")
    return None

class GitHubHost:
    """GitHub implementation of HostInterface on top of PyGithub."""
    def __init__(self, config: GitStackConfig, github_client: Optional[Github] = None):
        """Initialize with config and a PyGithub client (real or fake)."""
        self.config = config
        self.client = github_client
        self._repo: Optional[Repository] = None

    @property
    def repo(self) -> Repository:
        """Get GitHub repository."""
        if self._repo is None:
            owner = ensure(self.config.repo.github_repo_owner, "github_repo_owner")
            name = ensure(self.config.repo.github_repo_name, "github_repo_name")
            self._repo = ensure(self.client, "GitHub client").get_repo(f"{owner}/{name}")
        return self._repo

    @repo.setter
    def repo(self, value: Repository) -> None:
        """Set the GitHub repository."""
        self._repo = value

    def _find_pull(self, branch_name: str) -> PyGithubPullRequest:
        owner = self.config.repo.github_repo_owner
        head_filter = f"{owner}:{branch_name}"
        logger.debug(f"Using head filter: {head_filter}")
        for gh_pr in self.repo.get_pulls(state='open', head=head_filter):
            if gh_pr.head.ref == branch_name:
                return gh_pr
        raise DoesNotExistError(f"no open pull request for branch {branch_name}")

    @staticmethod
    def _convert(gh_pr: PyGithubPullRequest) -> PullRequest:
        return PullRequest(
            source_branch=gh_pr.head.ref,
            target_branch=gh_pr.base.ref,
            description=gh_pr.body or "",
            web_url=gh_pr.html_url,
            markdown_web_url=f"#{gh_pr.number}",
            number=gh_pr.number,
        )

    def get_pull_request(self, branch_name: str) -> PullRequest:
        logger.info(f"> github get pull request : {branch_name}")
        return self._convert(self._find_pull(branch_name))

    def create_pull_request(self, pr: PullRequest) -> PullRequest:
        logger.info(f"> github create : {pr.source_branch} -> {pr.target_branch}")
        gh_pr = self.repo.create_pull(
            title=pr.source_branch,
            body=pr.description,
            base=pr.target_branch,
            head=pr.source_branch,
        )
        return self._convert(gh_pr)

    def update_pull_request(self, pr: PullRequest) -> PullRequest:
        gh_pr = self._find_pull(pr.source_branch)
        logger.info(f"> github update #{gh_pr.number} : {pr.source_branch} -> {pr.target_branch}")
        gh_pr.edit(
            base=pr.target_branch if pr.target_branch else NotSet,
            body=pr.description,
        )
        updated = self._convert(gh_pr)
        return replace(updated, target_branch=pr.target_branch or updated.target_branch,
                       description=pr.description)

__all__ = ['DoesNotExistError', 'PullRequest', 'HostInterface', 'GitHubHost', 'find_github_token']
