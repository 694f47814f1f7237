"""YouTrack REST API client (downstream)"""

import logging
from typing import Any, Dict, Optional

import httpx

from trackbridge.models.youtrack import (
    TaskCreationRequest,
    TaskUpdateRequest,
    YouTrackComment,
    YouTrackTask,
)

logger = logging.getLogger(__name__)

TASK_FIELDS = (
    "id,idReadable,summary,description,created,updated,resolved,"
    "customFields(name,value(name)),"
    "comments(id,text,created,updated,author(login,fullName))"
)


class YouTrackClient:
    """Wrapper for YouTrack issue operations within one project.

    Every call except project lookup reports failure as None/False and logs
    the error; nothing is retried.
    """

    def __init__(
        self,
        url: str,
        token: str,
        project_name: str,
        *,
        timeout: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.url = url.rstrip("/")
        self.project_name = project_name
        self._project_id: Optional[str] = None
        self._tag_ids: Dict[str, str] = {}
        self._client = http_client or httpx.Client(
            base_url=f"{self.url}/api",
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    def close(self):
        self._client.close()

    def __enter__(self) -> "YouTrackClient":
        return self

    def __exit__(self, *args: Any):
        self.close()

    def check_credential(self) -> bool:
        try:
            response = self._client.get("/users/me", params={"fields": "id,login"})
            response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.error(f"YouTrack token validation failed: {e}")
            return False

    def get_project_id(self) -> str:
        """Resolve (and cache) the internal id of the configured project"""
        if self._project_id is None:
            response = self._client.get("/admin/projects", params={"fields": "id,name,shortName"})
            response.raise_for_status()
            for project in response.json():
                if self.project_name in (project.get("name"), project.get("shortName")):
                    self._project_id = project["id"]
                    break
            else:
                raise LookupError(f"YouTrack project '{self.project_name}' not found")
        return self._project_id

    def create_task(self, request: TaskCreationRequest) -> Optional[YouTrackTask]:
        try:
            body = request.to_api(self.get_project_id())
            response = self._client.post(
                "/issues", params={"fields": "id,idReadable,summary,description"}, json=body
            )
            response.raise_for_status()
        except (httpx.HTTPError, LookupError) as e:
            logger.error(f"Failed to create YouTrack task '{request.summary}': {e}")
            return None
        try:
            task = YouTrackTask.model_validate(response.json())
        except ValueError as e:
            logger.error(f"Unreadable response creating YouTrack task '{request.summary}': {e}")
            return None
        logger.info(f"Created YouTrack task {task.id_readable or task.id}")
        return task

    def update_task(self, task_id: str, request: TaskUpdateRequest) -> bool:
        try:
            response = self._client.post(
                f"/issues/{task_id}", params={"fields": "id"}, json=request.to_api()
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to update YouTrack task {task_id}: {e}")
            return False
        logger.info(f"Updated YouTrack task {task_id}")
        return True

    def get_task(self, task_id: str) -> Optional[YouTrackTask]:
        try:
            response = self._client.get(f"/issues/{task_id}", params={"fields": TASK_FIELDS})
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch YouTrack task {task_id}: {e}")
            return None
        return YouTrackTask.model_validate(response.json())

    def add_comment(self, task_id: str, text: str) -> Optional[YouTrackComment]:
        try:
            response = self._client.post(
                f"/issues/{task_id}/comments",
                params={"fields": "id,text,created,updated"},
                json={
                    "text": text,
                    "$type": "IssueComment",
                    "issue": {"id": task_id, "$type": "Issue"},
                },
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to add comment to YouTrack task {task_id}: {e}")
            return None
        return YouTrackComment.model_validate(response.json())

    def _tag_id(self, name: str) -> str:
        """Find a tag by exact name, creating it when it does not exist yet"""
        if name in self._tag_ids:
            return self._tag_ids[name]
        response = self._client.get("/tags", params={"fields": "id,name", "query": name})
        response.raise_for_status()
        tag_id = next((t["id"] for t in response.json() if t.get("name") == name), None)
        if tag_id is None:
            created = self._client.post("/tags", params={"fields": "id,name"}, json={"name": name})
            created.raise_for_status()
            tag_id = created.json()["id"]
            logger.info(f"Created YouTrack tag '{name}'")
        self._tag_ids[name] = tag_id
        return tag_id

    def add_tag(self, task_id: str, name: str) -> bool:
        """Attach a tag; attaching one that is already present is harmless"""
        try:
            tag_id = self._tag_id(name)
            response = self._client.post(
                f"/issues/{task_id}/tags",
                params={"fields": "id"},
                json={"id": tag_id, "$type": "Tag"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to add tag '{name}' to YouTrack task {task_id}: {e}")
            return False
        return True
