"""Issue -> task mapping record"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    """Timezone-aware UTC 'now'."""
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class IssueTaskMapping(BaseModel):
    """One GitHub issue and the YouTrack task created for it.

    Serialized with camelCase keys so existing mapping files stay readable.
    """

    github_issue_id: int = Field(alias="githubIssueId")
    github_issue_number: int = Field(alias="githubIssueNumber")
    youtrack_task_id: str = Field(alias="youtrackTaskId")
    youtrack_task_id_readable: str = Field("", alias="youtrackTaskIdReadable")
    last_synced_at: datetime = Field(alias="lastSyncedAt")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("last_synced_at")
    @classmethod
    def _normalize_last_synced_at(cls, value: datetime) -> datetime:
        return as_utc(value)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    def __repr__(self):
        return (
            f"<IssueTaskMapping(github=#{self.github_issue_number}, "
            f"youtrack='{self.youtrack_task_id_readable or self.youtrack_task_id}')>"
        )
