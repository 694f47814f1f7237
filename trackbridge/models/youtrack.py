"""YouTrack task models and request payloads"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class YouTrackUser(BaseModel):
    login: str = ""
    full_name: str = Field("", alias="fullName")

    model_config = ConfigDict(populate_by_name=True)


class YouTrackComment(BaseModel):
    id: str
    text: Optional[str] = None
    created: Optional[int] = None
    updated: Optional[int] = None
    author: Optional[YouTrackUser] = None


class YouTrackTask(BaseModel):
    id: str
    id_readable: str = Field("", alias="idReadable")
    summary: str = ""
    description: Optional[str] = None
    created: Optional[int] = None
    updated: Optional[int] = None
    resolved: Optional[int] = None
    custom_fields: List[Dict[str, Any]] = Field(default_factory=list, alias="customFields")
    comments: List[YouTrackComment] = []

    model_config = ConfigDict(populate_by_name=True)


class CustomField(BaseModel):
    """An issue custom field value, e.g. State=Done"""

    field_type: str
    name: str
    value: Optional[str] = None

    def to_api(self) -> Dict[str, Any]:
        return {
            "$type": self.field_type,
            "name": self.name,
            "value": {"name": self.value} if self.value is not None else None,
        }


class TaskUpdateRequest(BaseModel):
    summary: str
    description: str
    custom_fields: List[CustomField] = []

    def to_api(self) -> Dict[str, Any]:
        return {
            "$type": "Issue",
            "summary": self.summary,
            "description": self.description,
            "customFields": [f.to_api() for f in self.custom_fields],
        }


class TaskCreationRequest(TaskUpdateRequest):
    """Creation body; the client fills in the target project"""

    def to_api(self, project_id: str = "") -> Dict[str, Any]:
        data = super().to_api()
        data["project"] = {"id": project_id, "$type": "Project"}
        return data
