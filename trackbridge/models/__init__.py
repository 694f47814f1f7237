"""Data models"""

from trackbridge.models.base import Base
from trackbridge.models.github import GitHubComment, GitHubIssue, GitHubLabel, GitHubUser
from trackbridge.models.mapping import IssueTaskMapping
from trackbridge.models.synced_issue import SyncedIssue
from trackbridge.models.youtrack import (
    CustomField,
    TaskCreationRequest,
    TaskUpdateRequest,
    YouTrackComment,
    YouTrackTask,
)

__all__ = [
    "Base",
    "GitHubIssue",
    "GitHubComment",
    "GitHubLabel",
    "GitHubUser",
    "IssueTaskMapping",
    "SyncedIssue",
    "YouTrackTask",
    "YouTrackComment",
    "CustomField",
    "TaskCreationRequest",
    "TaskUpdateRequest",
]
