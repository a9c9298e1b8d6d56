"""Stack section of pull request descriptions.

The section lists every pull request of the stack and sits between two marker
lines, so it can be regenerated on every push without touching the text a
human wrote around it.
"""

import re
from typing import List, Sequence

from .githost import PullRequest

BEGIN_MARKER = "<!-- DO NOT EDIT: generated by git stack push (start)-->"
END_MARKER = "<!-- DO NOT EDIT: generated by git stack push (end) -->"

SECTION_PATTERN = re.compile(re.escape(BEGIN_MARKER) + r".*?" + re.escape(END_MARKER), re.DOTALL)

STACK_HEADER = "Pull request stack:"

def format_stack_markdown(current_pr: PullRequest, prs: Sequence[PullRequest]) -> str:
    """List prs (tip first) with labels relative to current_pr."""
    if len(prs) <= 1:
        return ""

    current_index = next(
        (i for i, pr in enumerate(prs) if pr.source_branch == current_pr.source_branch), None)

    lines: List[str] = [STACK_HEADER]
    for i, pr in enumerate(prs):
        label = ""
        if current_index is not None:
            if i == current_index:
                label = "Current: "
            elif i == current_index - 1:
                label = "Next: "
            elif i == current_index + 1:
                label = "Prev: "
        lines.append(f"- {label}{pr.markdown_web_url}")
    return "\n".join(lines)

def format_pull_request_description(current_pr: PullRequest, prs: Sequence[PullRequest]) -> str:
    """Regenerate the stack section of current_pr's description.

    An existing section is replaced in place; otherwise the section is
    appended after a blank line.
    """
    section = f"{BEGIN_MARKER}\n{format_stack_markdown(current_pr, prs)}\n{END_MARKER}"
    description = current_pr.description or ""
    if SECTION_PATTERN.search(description):
        return SECTION_PATTERN.sub(lambda _: section, description)
    return f"{description.rstrip()}\n\n{section}"
