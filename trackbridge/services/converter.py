"""GitHub -> YouTrack payload conversion.

Pure functions: no I/O, no clock, and no failure mode. Missing optional
fields are left out of the output rather than raising.
"""

import re
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set

from trackbridge.models.github import GitHubComment, GitHubIssue
from trackbridge.models.youtrack import CustomField, TaskCreationRequest, TaskUpdateRequest

DEFAULT_OPEN_STATE = "To do"
DEFAULT_CLOSED_STATE = "Done"
DEFAULT_PRIORITY = "Normal"

COMMENT_ID_MARKER = "GitHub Comment ID"
_COMMENT_ID_RE = re.compile(rf"{COMMENT_ID_MARKER}:\s*(\d+)", re.IGNORECASE)

_FOOTER_RULE = "\n\n---\n"


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    """Render a timestamp in UTC, independent of the host locale."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _issue_footer(issue: GitHubIssue) -> str:
    lines = []
    if issue.html_url:
        lines.append(f"**GitHub Issue:** [#{issue.number}]({issue.html_url})")
    else:
        lines.append(f"**GitHub Issue:** #{issue.number}")
    if issue.user is not None:
        lines.append(f"**Reporter:** {issue.user.login}")

    for label, value in (
        ("Created", issue.created_at),
        ("Updated", issue.updated_at),
        ("Closed", issue.closed_at),
    ):
        rendered = format_timestamp(value)
        if rendered:
            lines.append(f"**{label}:** {rendered}")

    if issue.labels:
        lines.append(f"**Labels:** {', '.join(issue.label_names)}")
    if issue.assignees:
        lines.append(f"**Assignees:** {', '.join(issue.assignee_logins)}")
    return "\n".join(lines)


def build_description(issue: GitHubIssue) -> str:
    """Issue body (empty for a null body) followed by the provenance footer."""
    return f"{issue.body or ''}{_FOOTER_RULE}{_issue_footer(issue)}"


def state_name(
    issue: GitHubIssue,
    *,
    open_state: str = DEFAULT_OPEN_STATE,
    closed_state: str = DEFAULT_CLOSED_STATE,
) -> str:
    return closed_state if issue.is_closed else open_state


def _state_field(issue: GitHubIssue, open_state: str, closed_state: str) -> CustomField:
    return CustomField(
        field_type="StateIssueCustomField",
        name="State",
        value=state_name(issue, open_state=open_state, closed_state=closed_state),
    )


def to_creation_payload(
    issue: GitHubIssue,
    *,
    open_state: str = DEFAULT_OPEN_STATE,
    closed_state: str = DEFAULT_CLOSED_STATE,
    priority: str = DEFAULT_PRIORITY,
) -> TaskCreationRequest:
    """Build the YouTrack creation request for an issue"""
    return TaskCreationRequest(
        summary=issue.title,
        description=build_description(issue),
        custom_fields=[
            CustomField(field_type="SingleEnumIssueCustomField", name="Priority", value=priority),
            _state_field(issue, open_state, closed_state),
        ],
    )


def to_update_payload(
    issue: GitHubIssue,
    *,
    open_state: str = DEFAULT_OPEN_STATE,
    closed_state: str = DEFAULT_CLOSED_STATE,
) -> TaskUpdateRequest:
    """Build the YouTrack update request; same issue snapshot -> same payload"""
    labels = ", ".join(issue.label_names) or "none"
    description = (
        f"{build_description(issue)}\n"
        f"**GitHub State:** {'closed' if issue.is_closed else 'open'}\n"
        f"**GitHub Labels:** {labels}"
    )
    return TaskUpdateRequest(
        summary=issue.title,
        description=description,
        custom_fields=[_state_field(issue, open_state, closed_state)],
    )


def format_comment(comment: GitHubComment, *, with_marker: bool = True) -> str:
    """Comment body plus an attribution footer.

    With ``with_marker`` the text ends in ``GitHub Comment ID: <id>`` which
    ``parse_comment_ids`` reads back to avoid posting a comment twice.
    """
    text = comment.body or ""
    text += _FOOTER_RULE

    author = comment.user.login if comment.user else "unknown"
    if comment.user and comment.user.html_url:
        text += f"**GitHub Comment by:** [{author}]({comment.user.html_url})\n"
    else:
        text += f"**GitHub Comment by:** {author}\n"

    created = format_timestamp(comment.created_at)
    if created:
        text += f"**Created:** {created}\n"
    if comment.updated_at is not None and comment.updated_at != comment.created_at:
        text += f"**Updated:** {format_timestamp(comment.updated_at)}\n"

    if with_marker:
        text += f"\n{COMMENT_ID_MARKER}: {comment.id}"
    return text


def parse_comment_ids(texts: Iterable[Optional[str]]) -> Set[int]:
    """Collect every GitHub comment id embedded in existing YouTrack comments."""
    found: Set[int] = set()
    for text in texts:
        if not text:
            continue
        found.update(int(m) for m in _COMMENT_ID_RE.findall(text))
    return found


def missing_comments(
    comments: List[GitHubComment], existing_texts: Iterable[Optional[str]]
) -> List[GitHubComment]:
    """GitHub comments not yet mirrored, in their original order."""
    present = parse_comment_ids(existing_texts)
    return [c for c in comments if c.id not in present]
