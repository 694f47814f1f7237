"""Synced issue table (SQL mapping store)"""

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint

from trackbridge.models.base import Base
from trackbridge.models.mapping import IssueTaskMapping, as_utc, utcnow


class SyncedIssue(Base):
    """Mapping of a GitHub issue to its YouTrack task"""

    __tablename__ = "synced_issues"
    __table_args__ = (
        UniqueConstraint("github_issue_id", name="uq_synced_issues_github_issue_id"),
        UniqueConstraint("youtrack_task_id", name="uq_synced_issues_youtrack_task_id"),
    )

    # Autoincrement id doubles as insertion order.
    id = Column(Integer, primary_key=True, index=True)

    # GitHub issue
    github_issue_id = Column(Integer, nullable=False)
    github_issue_number = Column(Integer, nullable=False, index=True)

    # YouTrack task
    youtrack_task_id = Column(String, nullable=False)
    youtrack_task_id_readable = Column(String, nullable=False, default="")

    # Sync metadata
    last_synced_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def to_mapping(self) -> IssueTaskMapping:
        return IssueTaskMapping(
            github_issue_id=self.github_issue_id,
            github_issue_number=self.github_issue_number,
            youtrack_task_id=self.youtrack_task_id,
            youtrack_task_id_readable=self.youtrack_task_id_readable or "",
            # SQLite drops tzinfo; stored values are always UTC.
            last_synced_at=as_utc(self.last_synced_at),
        )

    def apply(self, mapping: IssueTaskMapping):
        self.github_issue_id = mapping.github_issue_id
        self.github_issue_number = mapping.github_issue_number
        self.youtrack_task_id = mapping.youtrack_task_id
        self.youtrack_task_id_readable = mapping.youtrack_task_id_readable
        self.last_synced_at = mapping.last_synced_at

    def __repr__(self):
        return f"<SyncedIssue(github_id={self.github_issue_id}, youtrack_id={self.youtrack_task_id})>"
