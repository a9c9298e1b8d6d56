"""Push a stack and reconcile its pull requests."""

import logging
import threading
import time
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence, TypeVar

from ..commitstack import Branch, Stack
from ..description import format_pull_request_description
from ..executor import DEFAULT_MAX_WORKERS, map_concurrently
from ..githost import DoesNotExistError, HostInterface, PullRequest
from ..typing import GitInterface

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')

class StackError(Exception):
    """Raised when asked to push a stack the inference could not order."""

class PushError(Exception):
    """A host or git call failed during one phase of a push."""
    def __init__(self, phase: str, branch: str, cause: Exception):
        super().__init__(f"{phase} failed for branch {branch}: {cause}")
        self.phase = phase
        self.branch = branch
        self.cause = cause

def desired_targets(stack: Stack, default_branch: str) -> Dict[str, str]:
    """Map each branch to the branch its pull request should target."""
    branches = stack.local_branches()
    targets: Dict[str, str] = {}
    for i, branch in enumerate(branches):
        if i == len(branches) - 1:
            targets[branch.name] = default_branch
        else:
            targets[branch.name] = branches[i + 1].name
    return targets

def _run_phase(phase: str, items: Sequence[T], fn: Callable[[T], R],
               branch_of: Callable[[T], str], concurrency: int,
               cancel: threading.Event) -> List[R]:
    def task(item: T) -> R:
        try:
            return fn(item)
        except Exception as e:
            logger.error(f"{phase} failed for {branch_of(item)}: {e}")
            raise PushError(phase, branch_of(item), e) from e

    start_time = time.time()
    logger.info(f"{phase} ({len(items)} branches)")
    results = map_concurrently(items, task, max_workers=concurrency, cancel=cancel)
    logger.debug(f"{phase} took {time.time() - start_time:.2f} seconds")
    return results

def push_stack(stack: Stack, default_branch: str, git_cmd: GitInterface, host: HostInterface,
               concurrency: int = DEFAULT_MAX_WORKERS,
               cancel: Optional[threading.Event] = None) -> List[PullRequest]:
    """Push every branch of stack and create or update its pull requests.

    Runs in phases, each one finishing before the next starts:

    1. fetch each branch's pull request, creating missing ones and retargeting
       existing ones that point at the wrong branch;
    2. force push every branch with a lease;
    3. rewrite every description's stack section and reset the targets.

    Any failure stops the push. Nothing is rolled back: pull requests created
    or retargeted before the failure stay that way, and running push again
    converges.

    Returns:
        The pull requests in stack order, tip first.
    """
    if stack.error is not None:
        raise StackError(f"cannot push when stack has an error: {stack.error}")

    targets = desired_targets(stack, default_branch)
    branches = stack.local_branches()
    if cancel is None:
        cancel = threading.Event()

    def reconcile(branch: Branch) -> PullRequest:
        want = targets[branch.name]
        try:
            pr = host.get_pull_request(branch.name)
        except DoesNotExistError:
            logger.info(f"Creating pull request for {branch.name} -> {want}")
            return host.create_pull_request(PullRequest(
                source_branch=branch.name,
                target_branch=want,
                description="",
            ))
        if pr.target_branch != want:
            logger.info(f"Retargeting {branch.name} from {pr.target_branch} to {want}")
            return host.update_pull_request(replace(pr, target_branch=want))
        return pr

    prs = _run_phase("Reconcile pull requests", branches, reconcile,
                     lambda b: b.name, concurrency, cancel)

    _run_phase("Push branches", branches, lambda b: git_cmd.push_force_with_lease(b.name),
               lambda b: b.name, concurrency, cancel)

    def republish(pr: PullRequest) -> PullRequest:
        return host.update_pull_request(replace(
            pr,
            target_branch=targets[pr.source_branch],
            description=format_pull_request_description(pr, prs),
        ))

    return _run_phase("Update pull requests", prs, republish,
                      lambda pr: pr.source_branch, concurrency, cancel)

__all__ = ['push_stack', 'desired_targets', 'StackError', 'PushError']
