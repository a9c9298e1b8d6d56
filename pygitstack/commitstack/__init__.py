"""Branch stacks inferred from commit ancestry.

Every local branch (other than the default branch) is placed on top of its
nearest ancestor branch, or on the default branch when no other branch sits
between them. Branches linked this way form a Stack, ordered from the tip
(furthest from the default branch) to the base.

Topologies that cannot be turned into a single ordered chain (merges of
several branches, diverged branches sharing commits, branches pointing at the
same commit, history unrelated to the default branch) are not fatal: the
affected branches still form a Stack, which carries an error describing the
problem, and every other Stack is returned untouched.
"""

import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..typing import Commit, CommitHash, GitInterface

logger = logging.getLogger(__name__)

class NotFoundError(Exception):
    """Raised when a commit does not belong to any inferred stack."""

@dataclass(frozen=True)
class Branch:
    """A local branch and the commit it points at."""
    name: str
    tip: CommitHash

@dataclass
class Stack:
    """Ordered chain of branches, tip first.

    `commits` holds every commit owned by the stack's branches: the tips plus
    the commits walked below them down to the next branch or the default
    branch's history.
    """
    branches: List[Branch]
    error: Optional[str] = None
    commits: Set[CommitHash] = field(default_factory=set)

    @property
    def name(self) -> str:
        if len(self.branches) == 1:
            return self.branches[0].name
        return f"{self.branches[-1].name}..{self.branches[0].name}"

    def local_branches(self) -> List[Branch]:
        """Branches ordered tip -> base."""
        return list(self.branches)

    def all_branches(self) -> List[Branch]:
        """Every branch in the stack, for callers that only need membership."""
        return list(self.branches)

    def is_current(self, commit_hash: str) -> bool:
        """True when commit_hash is one of the commits this stack owns."""
        return commit_hash in self.commits

@dataclass
class Problem:
    """Human readable inference problem."""
    stack_name: str
    message: str

    def __str__(self) -> str:
        return f"{self.stack_name}: {self.message}"

@dataclass
class Inference:
    """Result of one inference run."""
    inferred_stacks: List[Stack] = field(default_factory=list)
    problems: List[Problem] = field(default_factory=list)

def get_current(stacks: Iterable[Stack], commit_hash: str) -> Stack:
    """Find the stack that owns commit_hash."""
    for stack in stacks:
        if stack.is_current(commit_hash):
            return stack
    raise NotFoundError(f"commit {commit_hash} is not on any stacked branch")

def compute_all(git_cmd: GitInterface, default_branch: str) -> Inference:
    """Read the branch log from git and infer every stack."""
    return infer_stacks(git_cmd.log_all(default_branch), default_branch)

@dataclass
class _Walk:
    """What one branch's ancestor walk found."""
    candidates: Set[str] = field(default_factory=set)
    owned: List[CommitHash] = field(default_factory=list)
    reaches_default: bool = False
    no_commits: bool = False

class _Groups:
    """Union-find over branch names."""
    def __init__(self, names: Iterable[str]):
        self.parent: Dict[str, str] = {name: name for name in names}

    def find(self, name: str) -> str:
        root = name
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[name] != root:
            self.parent[name], name = root, self.parent[name]
        return root

    def union(self, a: str, b: str) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra != rb:
            # Keep the smaller name as root so grouping is deterministic
            if rb < ra:
                ra, rb = rb, ra
            self.parent[rb] = ra

class _CommitGraph:
    """Parent and branch indexes over the log."""
    def __init__(self, log: List[Commit], default_branch: str):
        self.parents: Dict[CommitHash, List[CommitHash]] = {}
        self.branches_at: Dict[CommitHash, List[str]] = defaultdict(list)
        self.boundary: Set[CommitHash] = set()
        self.tips: Dict[str, CommitHash] = {}

        for commit in log:
            self.parents[commit.hash] = list(commit.parents)
            if commit.boundary:
                self.boundary.add(commit.hash)
            for name in commit.branches:
                if name == default_branch:
                    self.boundary.add(commit.hash)
                    continue
                if name in self.tips:
                    logger.debug(f"Branch {name} listed twice in log, keeping first tip")
                    continue
                self.tips[name] = commit.hash
                self.branches_at[commit.hash].append(name)

    def walk(self, name: str) -> _Walk:
        """Walk down from a branch tip to the nearest branches or the default branch."""
        tip = self.tips[name]
        result = _Walk(owned=[tip])
        if tip in self.boundary:
            result.reaches_default = True
            result.no_commits = True
            return result

        seen = {tip}
        queue = deque(self.parents.get(tip, []))
        while queue:
            commit_hash = queue.popleft()
            if commit_hash in seen:
                continue
            seen.add(commit_hash)
            if commit_hash in self.boundary:
                result.reaches_default = True
                continue
            others = self.branches_at.get(commit_hash)
            if others:
                result.candidates.update(others)
                continue
            if commit_hash not in self.parents:
                # History outside the log, nothing to follow
                continue
            result.owned.append(commit_hash)
            queue.extend(self.parents[commit_hash])
        return result

def _closure(edges: Dict[str, Set[str]]) -> Dict[str, Set[str]]:
    """Every node reachable through edges, per node."""
    closure: Dict[str, Set[str]] = {}
    for start in edges:
        pending: List[Tuple[str, bool]] = [(start, False)]
        in_progress: Set[str] = set()
        while pending:
            node, expanded = pending.pop()
            if node in closure:
                continue
            if expanded:
                reachable: Set[str] = set()
                for nxt in edges.get(node, ()):
                    reachable.add(nxt)
                    reachable |= closure.get(nxt, set())
                closure[node] = reachable
                continue
            if node in in_progress:
                continue
            in_progress.add(node)
            pending.append((node, True))
            pending.extend((nxt, False) for nxt in edges.get(node, ()) if nxt not in closure)
    return closure

def _depths(parents: Dict[str, Set[str]]) -> Dict[str, int]:
    """Longest distance from each branch down to the default branch."""
    depths: Dict[str, int] = {}
    for start in sorted(parents):
        pending: List[Tuple[str, bool]] = [(start, False)]
        in_progress: Set[str] = set()
        while pending:
            node, expanded = pending.pop()
            if node in depths:
                continue
            if expanded:
                below = [depths.get(p, 0) for p in parents.get(node, ())]
                depths[node] = 1 + max(below) if below else 0
                continue
            if node in in_progress:
                continue
            in_progress.add(node)
            pending.append((node, True))
            pending.extend((p, False) for p in parents.get(node, ()) if p not in depths)
    return depths

def _reduce(candidates: Set[str], ancestors: Dict[str, Set[str]]) -> Set[str]:
    """Drop candidates that are ancestors of other candidates."""
    return {
        c for c in candidates
        if not any(c in ancestors.get(other, set()) for other in candidates if other != c)
    }

def infer_stacks(log: List[Commit], default_branch: str) -> Inference:
    """Group the branches in log into ordered stacks.

    Args:
        log: Commits of every local branch, down to boundary commits in the
            default branch's history, annotated with branch names.
        default_branch: Trunk branch the stacks are computed against.

    Returns:
        Inference with one Stack per group of related branches and a flat
        list of the problems found along the way.
    """
    graph = _CommitGraph(log, default_branch)
    names = sorted(graph.tips)
    walks = {name: graph.walk(name) for name in names}
    groups = _Groups(names)
    messages: List[Tuple[str, str]] = []

    for commit_hash, at in sorted(graph.branches_at.items()):
        if len(at) > 1:
            for other in at[1:]:
                groups.union(at[0], other)
            messages.append((at[0], f"branches {', '.join(sorted(at))} point at the same commit {commit_hash}"))

    candidates = {name: walks[name].candidates for name in names}
    ancestors = _closure(candidates)
    parents: Dict[str, Set[str]] = {}
    for name in names:
        walk = walks[name]
        reduced = _reduce(walk.candidates, ancestors)
        parents[name] = reduced
        for parent in reduced:
            groups.union(name, parent)

        if walk.no_commits:
            messages.append((name, f"branch {name} has no commits ahead of {default_branch}"))
        elif not reduced and not walk.reaches_default:
            messages.append((name, f"branch {name} is not reachable from {default_branch}"))
        elif len({graph.tips[p] for p in reduced}) > 1:
            messages.append((name, f"branch {name} merges several branches ({', '.join(sorted(reduced))}) and cannot be placed"))

    children: Dict[str, List[str]] = defaultdict(list)
    for name in names:
        for parent in parents[name]:
            children[parent].append(name)
    for parent, kids in sorted(children.items()):
        if len({graph.tips[k] for k in kids}) > 1:
            messages.append((parent, f"branches {', '.join(sorted(kids))} are all stacked on {parent}"))

    owner: Dict[CommitHash, str] = {}
    reported: Set[Tuple[str, str]] = set()
    for name in names:
        for commit_hash in walks[name].owned:
            first = owner.setdefault(commit_hash, name)
            if first == name:
                continue
            groups.union(first, name)
            if commit_hash not in graph.branches_at and (first, name) not in reported:
                reported.add((first, name))
                messages.append((name, f"branches {first} and {name} diverged but share commit {commit_hash}"))

    depths = _depths(parents)
    members: Dict[str, List[str]] = defaultdict(list)
    for name in names:
        members[groups.find(name)].append(name)
    errors: Dict[str, List[str]] = defaultdict(list)
    for name, message in messages:
        errors[groups.find(name)].append(message)

    stacks: List[Stack] = []
    for root, group in members.items():
        ordered = sorted(group, key=lambda n: (-depths.get(n, 0), n))
        commits: Set[CommitHash] = set()
        for name in group:
            commits.update(walks[name].owned)
        stacks.append(Stack(
            branches=[Branch(n, graph.tips[n]) for n in ordered],
            error="; ".join(errors[root]) if errors[root] else None,
            commits=commits,
        ))
    stacks.sort(key=lambda s: s.name)

    problems = [
        Problem(stack.name, message)
        for stack in stacks if stack.error
        for message in errors[groups.find(stack.branches[0].name)]
    ]
    logger.debug(f"infer_stacks: {len(names)} branches, {len(stacks)} stacks, {len(problems)} problems")
    return Inference(inferred_stacks=stacks, problems=problems)

__all__ = ['Branch', 'Stack', 'Problem', 'Inference', 'NotFoundError',
           'infer_stacks', 'compute_all', 'get_current']
