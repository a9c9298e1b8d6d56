"""Unit tests for git module: log parsing and the GitPython backed RealGit."""

import shutil
import subprocess
from pathlib import Path

import pytest

from pygitstack.commitstack import infer_stacks
from pygitstack.config import default_config
from pygitstack.git import (
    RealGit, add_missing_branches, parse_branch_refs, parse_decorations, parse_log,
)


class TestParseLog:
    """Tests for parse_log and friends."""

    def test_parse_entries(self) -> None:
        commit_log = (
            ">\tc3d4e5f\tb2c3d4e\tHEAD -> feature-2\n"
            ">\tb2c3d4e\ta1b2c3d\tfeature-1\n"
            "-\ta1b2c3d\t9f8e7d6\tmain\n"
        )
        commits = parse_log(commit_log)

        assert [c.hash for c in commits] == ["c3d4e5f", "b2c3d4e", "a1b2c3d"]
        assert commits[0].branches == ["feature-2"]
        assert commits[0].parents == ["b2c3d4e"]
        assert not commits[0].boundary
        assert commits[2].boundary
        assert commits[2].branches == ["main"]

    def test_merge_commit_parents(self) -> None:
        commits = parse_log(">\tabc1234\tdef5678 0123456\t\n")
        assert commits[0].parents == ["def5678", "0123456"]
        assert commits[0].branches == []

    def test_root_commit_without_trailing_fields(self) -> None:
        commits = parse_log(">\tabc1234\n")
        assert commits[0].parents == []
        assert commits[0].branches == []

    def test_blank_and_malformed_lines_skipped(self) -> None:
        assert parse_log("\n\nnot a log line\n") == []

    def test_decorations(self) -> None:
        assert parse_decorations("HEAD -> a, tag: v1.0, b/c, HEAD") == ["a", "b/c"]
        assert parse_decorations("") == []

    def test_branch_refs(self) -> None:
        refs = parse_branch_refs("main\t1111111\nfeature/x\t2222222\n\n")
        assert refs == {"main": "1111111", "feature/x": "2222222"}


class TestAddMissingBranches:
    """Branches the log range leaves out."""

    def test_branch_at_default_history_appended(self) -> None:
        commits = parse_log(">\tb1\ta1\tfeature\n")
        result = add_missing_branches(commits, {"main": "m0", "feature": "b1", "old": "m9"}, "main")

        old = [c for c in result if "old" in c.branches]
        assert len(old) == 1
        assert old[0].boundary
        assert not any("main" in c.branches for c in result)

    def test_undecorated_tip_gets_branch(self) -> None:
        commits = parse_log(">\tb1\ta1\t\n")
        add_missing_branches(commits, {"feature": "b1"}, "main")
        assert commits[0].branches == ["feature"]


def test_pretend_skips_push() -> None:
    """Pretend mode logs the push instead of running git."""
    config = default_config()
    config.tool.pretend = True
    assert RealGit(config, directory="/nonexistent").push_force_with_lease("feature") == ""


def run_cmd(cmd: str, cwd: Path) -> str:
    result = subprocess.run(cmd, shell=True, check=True, cwd=cwd, capture_output=True, text=True)
    return result.stdout.strip()


def commit(repo: Path, message: str) -> None:
    run_cmd(f"git -c user.name=Test -c user.email=test@example.com commit -q --allow-empty -m '{message}'", repo)


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """Repository with main <- feature-1 <- feature-2 and an unrelated branch."""
    run_cmd("git init -q", tmp_path)
    run_cmd("git symbolic-ref HEAD refs/heads/main", tmp_path)
    commit(tmp_path, "initial")
    run_cmd("git checkout -q -b feature-1", tmp_path)
    commit(tmp_path, "one")
    commit(tmp_path, "two")
    run_cmd("git checkout -q -b feature-2", tmp_path)
    commit(tmp_path, "three")
    run_cmd("git checkout -q -b other main", tmp_path)
    commit(tmp_path, "other")
    run_cmd("git branch merged main", tmp_path)
    run_cmd("git checkout -q feature-2", tmp_path)
    return tmp_path


@pytest.mark.skipif(shutil.which("git") is None, reason="git binary not available")
class TestRealGit:
    """RealGit against a temporary repository."""

    def test_short_commit_hash(self, repo: Path) -> None:
        git_cmd = RealGit(default_config(), directory=str(repo))
        assert git_cmd.get_short_commit_hash("HEAD") == run_cmd("git rev-parse --short HEAD", repo)

    def test_log_all_infers_stacks(self, repo: Path) -> None:
        git_cmd = RealGit(default_config(), directory=str(repo))
        inference = infer_stacks(git_cmd.log_all("main"), "main")

        stacks = {s.name: s for s in inference.inferred_stacks}
        assert set(stacks) == {"feature-1..feature-2", "merged", "other"}
        stack = stacks["feature-1..feature-2"]
        assert [b.name for b in stack.local_branches()] == ["feature-2", "feature-1"]
        assert stack.error is None
        assert stacks["other"].error is None
        assert "no commits ahead of main" in stacks["merged"].error

    def test_head_is_in_current_stack(self, repo: Path) -> None:
        git_cmd = RealGit(default_config(), directory=str(repo))
        head = git_cmd.get_short_commit_hash("HEAD")
        inference = infer_stacks(git_cmd.log_all("main"), "main")

        current = [s.name for s in inference.inferred_stacks if s.is_current(head)]
        assert current == ["feature-1..feature-2"]

    def test_git_failure_raises(self, repo: Path) -> None:
        git_cmd = RealGit(default_config(), directory=str(repo))
        with pytest.raises(Exception, match="Git command failed"):
            git_cmd.must_git("rev-parse --verify no-such-branch")
