"""Durable GitHub issue -> YouTrack task mapping table"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import List, Optional, Protocol

from sqlalchemy.exc import IntegrityError

from trackbridge.models.base import init_db, make_engine, make_session_factory
from trackbridge.models.mapping import IssueTaskMapping
from trackbridge.models.synced_issue import SyncedIssue

logger = logging.getLogger(__name__)


class MappingStore(Protocol):
    """Lookup/upsert contract shared by every backend.

    Every mutation is durable before the call returns.
    """

    def get(self, github_issue_id: int) -> Optional[IssueTaskMapping]: ...

    def get_by_number(self, github_issue_number: int) -> Optional[IssueTaskMapping]: ...

    def get_by_youtrack_id(self, youtrack_task_id: str) -> Optional[IssueTaskMapping]: ...

    def upsert(self, mapping: IssueTaskMapping) -> None: ...

    def all(self) -> List[IssueTaskMapping]: ...

    def delete(self, github_issue_id: int) -> bool: ...


class JsonMappingStore:
    """Whole-table JSON file store.

    The file is read once at construction and rewritten in full on every
    mutation (temp file + atomic rename). A missing file means an empty table.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)
        self._lock = threading.RLock()
        self._mappings: List[IssueTaskMapping] = self._load()

    def _load(self) -> List[IssueTaskMapping]:
        if not self.path.exists():
            logger.info(f"Mapping file {self.path} not found, starting with an empty table")
            return []
        with self.path.open("r", encoding="utf-8") as fh:
            raw = json.load(fh)
        if not isinstance(raw, list):
            raise ValueError(f"Mapping file {self.path} must contain a JSON array")
        mappings = [IssueTaskMapping.model_validate(item) for item in raw]
        logger.info(f"Loaded {len(mappings)} mappings from {self.path}")
        return mappings

    def _save(self):
        data = [m.to_json() for m in self._mappings]
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def get(self, github_issue_id: int) -> Optional[IssueTaskMapping]:
        with self._lock:
            return next((m for m in self._mappings if m.github_issue_id == github_issue_id), None)

    def get_by_number(self, github_issue_number: int) -> Optional[IssueTaskMapping]:
        with self._lock:
            return next(
                (m for m in self._mappings if m.github_issue_number == github_issue_number), None
            )

    def get_by_youtrack_id(self, youtrack_task_id: str) -> Optional[IssueTaskMapping]:
        with self._lock:
            return next((m for m in self._mappings if m.youtrack_task_id == youtrack_task_id), None)

    def upsert(self, mapping: IssueTaskMapping) -> None:
        with self._lock:
            for idx, existing in enumerate(self._mappings):
                if existing.github_issue_id == mapping.github_issue_id:
                    self._mappings[idx] = mapping
                    break
            else:
                self._mappings.append(mapping)
            self._save()

    def all(self) -> List[IssueTaskMapping]:
        with self._lock:
            return list(self._mappings)

    def delete(self, github_issue_id: int) -> bool:
        with self._lock:
            remaining = [m for m in self._mappings if m.github_issue_id != github_issue_id]
            if len(remaining) == len(self._mappings):
                return False
            self._mappings = remaining
            self._save()
            return True


class SqlMappingStore:
    """SQLAlchemy-backed store; one row per mapping, committed per mutation."""

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine = make_engine(database_url)
        init_db(self.engine)
        self.SessionLocal = make_session_factory(self.engine)

    def _first(self, *criteria) -> Optional[IssueTaskMapping]:
        db = self.SessionLocal()
        try:
            row = db.query(SyncedIssue).filter(*criteria).first()
            return row.to_mapping() if row else None
        finally:
            db.close()

    def get(self, github_issue_id: int) -> Optional[IssueTaskMapping]:
        return self._first(SyncedIssue.github_issue_id == github_issue_id)

    def get_by_number(self, github_issue_number: int) -> Optional[IssueTaskMapping]:
        return self._first(SyncedIssue.github_issue_number == github_issue_number)

    def get_by_youtrack_id(self, youtrack_task_id: str) -> Optional[IssueTaskMapping]:
        return self._first(SyncedIssue.youtrack_task_id == youtrack_task_id)

    def upsert(self, mapping: IssueTaskMapping) -> None:
        db = self.SessionLocal()
        try:
            row = (
                db.query(SyncedIssue)
                .filter(SyncedIssue.github_issue_id == mapping.github_issue_id)
                .first()
            )
            if row is None:
                row = SyncedIssue()
                db.add(row)
            row.apply(mapping)
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.error(
                f"Mapping for GitHub issue #{mapping.github_issue_number} conflicts with an existing row"
            )
            raise
        finally:
            db.close()

    def all(self) -> List[IssueTaskMapping]:
        db = self.SessionLocal()
        try:
            return [row.to_mapping() for row in db.query(SyncedIssue).order_by(SyncedIssue.id).all()]
        finally:
            db.close()

    def delete(self, github_issue_id: int) -> bool:
        db = self.SessionLocal()
        try:
            row = db.query(SyncedIssue).filter(SyncedIssue.github_issue_id == github_issue_id).first()
            if row is None:
                return False
            db.delete(row)
            db.commit()
            return True
        finally:
            db.close()


def create_mapping_store(settings, mapping_file: Optional[str] = None) -> MappingStore:
    """Build the configured store; an explicit mapping file wins over the database URL."""
    if mapping_file is None and settings.mapping_database_url:
        logger.info("Using SQL mapping store")
        return SqlMappingStore(settings.mapping_database_url)
    path = mapping_file or settings.mapping_file
    logger.info(f"Using JSON mapping file {path}")
    return JsonMappingStore(path)
