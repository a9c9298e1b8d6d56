"""Common types used across the codebase."""

from dataclasses import dataclass, field
from typing import List, NewType, Protocol, runtime_checkable

# Abbreviated commit hash as printed by git (%h / rev-parse --short)
CommitHash = NewType('CommitHash', str)

@dataclass
class Commit:
    """One entry of the branch commit log.

    `boundary` marks commits that belong to the default branch's history and
    only show up as the edge of the walked region.
    """
    hash: CommitHash
    parents: List[CommitHash] = field(default_factory=list)
    branches: List[str] = field(default_factory=list)
    boundary: bool = False

    @classmethod
    def from_strings(cls, hash: str, parents: List[str], branches: List[str],
                     boundary: bool = False) -> 'Commit':
        return cls(CommitHash(hash), [CommitHash(p) for p in parents], list(branches), boundary)

@runtime_checkable
class GitInterface(Protocol):
    """What the stack commands need from git."""

    def run_cmd(self, command: str) -> str:
        ...

    def must_git(self, command: str) -> str:
        ...

    def get_short_commit_hash(self, ref: str) -> CommitHash:
        ...

    def log_all(self, default_branch: str) -> List[Commit]:
        ...

    def push_force_with_lease(self, branch_name: str) -> str:
        ...
