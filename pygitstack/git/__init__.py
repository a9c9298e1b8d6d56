"""Git interfaces and implementation."""

import os
import shlex
import logging
from typing import Dict, List, Optional
import git
from git.exc import GitCommandError, InvalidGitRepositoryError
from ..typing import Commit, CommitHash, GitInterface
from ..config.models import GitStackConfig

# Get module logger
logger = logging.getLogger(__name__)

# Tab separated: boundary mark, hash, parent hashes, branch decorations
LOG_FORMAT = "%m%x09%h%x09%p%x09%D"
REF_FORMAT = "%(refname:short)%09%(objectname:short)"

def parse_decorations(decorations: str) -> List[str]:
    """Turn a %D decoration string into local branch names."""
    branches: List[str] = []
    for ref in decorations.split(","):
        ref = ref.strip()
        if not ref or ref.startswith("tag: "):
            continue
        if ref.startswith("HEAD -> "):
            ref = ref[len("HEAD -> "):]
        elif ref == "HEAD":
            continue
        branches.append(ref)
    return branches

def parse_log(commit_log: str) -> List[Commit]:
    """Parse `git log --format=LOG_FORMAT` output into commits, newest first."""
    commits: List[Commit] = []
    for line in commit_log.splitlines():
        if not line.strip():
            continue
        parts = line.split("\t")
        if len(parts) < 2:
            logger.debug(f"parse_log: skipping malformed line '{line}'")
            continue
        parts += [""] * (4 - len(parts))
        mark, commit_hash, parents, decorations = parts[:4]
        commits.append(Commit.from_strings(
            commit_hash.strip(),
            parents.split(),
            parse_decorations(decorations),
            boundary=mark.strip() == "-",
        ))
    return commits

def parse_branch_refs(refs: str) -> Dict[str, CommitHash]:
    """Parse `git for-each-ref --format=REF_FORMAT` output into name -> hash."""
    result: Dict[str, CommitHash] = {}
    for line in refs.splitlines():
        if "\t" not in line:
            continue
        name, commit_hash = line.split("\t", 1)
        result[name.strip()] = CommitHash(commit_hash.strip())
    return result

def add_missing_branches(commits: List[Commit], refs: Dict[str, CommitHash],
                         default_branch: str) -> List[Commit]:
    """Make sure every local branch shows up in the log.

    Branches with no commits ahead of the default branch are excluded by the
    log range, so they are appended as boundary entries.
    """
    by_hash = {c.hash: c for c in commits}
    known = {b for c in commits for b in c.branches}
    for name, commit_hash in sorted(refs.items()):
        if name == default_branch or name in known:
            continue
        if commit_hash in by_hash:
            by_hash[commit_hash].branches.append(name)
        else:
            logger.debug(f"Branch {name} has no commits ahead of {default_branch}")
            entry = Commit(commit_hash, [], [name], boundary=True)
            by_hash[commit_hash] = entry
            commits.append(entry)
    return commits

class RealGit:
    """Real Git implementation."""
    def __init__(self, config: GitStackConfig, directory: Optional[str] = None):
        """Initialize with config."""
        self.config: GitStackConfig = config
        self.directory = directory

    def run_cmd(self, command: str) -> str:
        """Run git command."""
        cmd_str = command.strip()

        if self.config.tool.pretend and cmd_str.startswith('push'):
            # Pretend mode - just log
            logger.info(f"[PRETEND] > git {cmd_str}")
            return ""

        if self.config.user.log_git_commands:
            logger.info(f"> git {cmd_str}")
        try:
            repo = git.Repo(self.directory or os.getcwd(), search_parent_directories=True)
            cmd_parts = shlex.split(cmd_str)
            method = getattr(repo.git, cmd_parts[0].replace('-', '_'))
            result = method(*cmd_parts[1:])
            return result if isinstance(result, str) else str(result)
        except GitCommandError as e:
            raise Exception(f"Git command failed: {str(e)}")
        except InvalidGitRepositoryError:
            raise Exception("Not in a git repository")

    def must_git(self, command: str) -> str:
        """Run git command, failing on error."""
        return self.run_cmd(command)

    def get_short_commit_hash(self, ref: str) -> CommitHash:
        """Abbreviated hash of ref, as git prints it in logs."""
        return CommitHash(self.must_git(f"rev-parse --short {ref}").strip())

    def log_all(self, default_branch: str) -> List[Commit]:
        """Log every local branch down to the default branch's history."""
        commit_log = self.must_git(
            f"log --branches --boundary --decorate-refs=refs/heads "
            f"--format={LOG_FORMAT} ^{default_branch}")
        commits = parse_log(commit_log)
        refs = parse_branch_refs(self.must_git(f"for-each-ref --format={REF_FORMAT} refs/heads/"))
        commits = add_missing_branches(commits, refs, default_branch)
        logger.debug(f"log_all: {len(commits)} commits, {len(refs)} local branches")
        return commits

    def push_force_with_lease(self, branch_name: str) -> str:
        """Force push a branch, refusing if the remote moved since last fetch."""
        remote = self.config.repo.remote
        return self.must_git(f"push --force-with-lease {remote} {branch_name}:refs/heads/{branch_name}")

__all__ = ['RealGit', 'GitInterface', 'Commit', 'parse_log', 'parse_branch_refs',
           'parse_decorations', 'add_missing_branches']
