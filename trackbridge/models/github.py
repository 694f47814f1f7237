"""GitHub issue and comment models (read-only upstream data)"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class GitHubUser(BaseModel):
    login: str
    html_url: str = ""


class GitHubLabel(BaseModel):
    name: str
    color: str = ""


class GitHubIssue(BaseModel):
    """Issue as returned by the GitHub REST API (unknown keys are ignored)"""

    id: int
    number: int
    title: str
    body: Optional[str] = None
    state: str = "open"
    html_url: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    user: Optional[GitHubUser] = None
    labels: List[GitHubLabel] = []
    assignees: List[GitHubUser] = []
    comments: int = 0
    # Present only when the "issue" is really a pull request.
    pull_request: Optional[Dict[str, Any]] = None

    @property
    def is_closed(self) -> bool:
        return self.state == "closed"

    @property
    def is_pull_request(self) -> bool:
        return self.pull_request is not None

    @property
    def label_names(self) -> List[str]:
        return [label.name for label in self.labels]

    @property
    def assignee_logins(self) -> List[str]:
        return [a.login for a in self.assignees]


class GitHubComment(BaseModel):
    id: int
    body: Optional[str] = None
    html_url: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[GitHubUser] = None
