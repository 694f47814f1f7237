"""GitHub REST API client (upstream, read-only)"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from trackbridge.errors import TransportFailure
from trackbridge.models.github import GitHubComment, GitHubIssue

logger = logging.getLogger(__name__)

PER_PAGE = 100


class GitHubClient:
    """Wrapper for the GitHub issue endpoints of one repository"""

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        api_url: str = "https://api.github.com",
        *,
        timeout: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.owner = owner
        self.repo = repo
        self._client = http_client or httpx.Client(
            base_url=api_url.rstrip("/"),
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {token}",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=timeout,
        )

    def close(self):
        self._client.close()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *args: Any):
        self.close()

    @property
    def repo_full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def _paginate(self, path: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Fetch every page of a list endpoint (stops on a short page)."""
        items: List[Dict[str, Any]] = []
        page = 1
        while True:
            response = self._client.get(path, params={**params, "per_page": PER_PAGE, "page": page})
            response.raise_for_status()
            batch = response.json()
            items.extend(batch)
            if len(batch) < PER_PAGE:
                return items
            page += 1

    def list_issues(self, since: Optional[datetime] = None) -> List[GitHubIssue]:
        """All issues (open and closed), optionally only those updated since a time"""
        params: Dict[str, Any] = {"state": "all", "sort": "created", "direction": "asc"}
        if since is not None:
            if since.tzinfo is None:
                since = since.replace(tzinfo=timezone.utc)
            params["since"] = since.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

        logger.info(
            f"Fetching issues from {self.repo_full_name}"
            + (f" since {params['since']}" if "since" in params else "")
        )
        try:
            raw = self._paginate(f"/repos/{self.owner}/{self.repo}/issues", params)
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch issues for {self.repo_full_name}: {e}")
            raise TransportFailure(f"listing issues of {self.repo_full_name} failed: {e}") from e

        # The issues endpoint also returns pull requests.
        issues = [GitHubIssue.model_validate(item) for item in raw if "pull_request" not in item]
        logger.info(f"Fetched {len(issues)} issues from {self.repo_full_name}")
        return issues

    def get_issue(self, number: int) -> Optional[GitHubIssue]:
        """Get a single issue, or None if missing, inaccessible or a pull request"""
        try:
            response = self._client.get(f"/repos/{self.owner}/{self.repo}/issues/{number}")
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to get issue #{number} from {self.repo_full_name}: {e}")
            return None
        issue = GitHubIssue.model_validate(response.json())
        if issue.is_pull_request:
            return None
        return issue

    def list_comments(self, number: int) -> List[GitHubComment]:
        """All comments of an issue, oldest first"""
        try:
            raw = self._paginate(f"/repos/{self.owner}/{self.repo}/issues/{number}/comments", {})
        except httpx.HTTPError as e:
            logger.error(f"Failed to get comments for issue #{number}: {e}")
            raise TransportFailure(f"listing comments of issue #{number} failed: {e}") from e
        return [GitHubComment.model_validate(item) for item in raw]

    def check_credential(self) -> bool:
        try:
            response = self._client.get("/user")
            response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.error(f"GitHub token validation failed: {e}")
            return False
