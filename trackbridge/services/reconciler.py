"""Issue reconciliation: full import and incremental sync passes"""

import enum
import logging
import threading
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Callable, Iterator, List, Optional

from trackbridge.errors import MissingMappings, TransportFailure
from trackbridge.models.github import GitHubIssue
from trackbridge.models.mapping import IssueTaskMapping, as_utc, utcnow
from trackbridge.services import converter
from trackbridge.services.mapping_store import MappingStore

logger = logging.getLogger(__name__)


class ItemOutcome(str, enum.Enum):
    """What a pass did with a single GitHub issue"""

    IMPORTED = "imported"
    SKIPPED = "skipped"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    NOT_IMPORTED = "not_imported"
    ERROR = "error"


@dataclass
class ImportSummary:
    imported: int = 0
    skipped: int = 0
    errors: int = 0
    total: int = 0

    def record(self, outcome: ItemOutcome):
        if outcome == ItemOutcome.IMPORTED:
            self.imported += 1
        elif outcome == ItemOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.errors += 1

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class SyncSummary:
    updated: int = 0
    unchanged: int = 0
    errors: int = 0
    total: int = 0
    # Fetched issues that have no mapping yet (left for the import command).
    not_imported: int = 0

    def record(self, outcome: ItemOutcome):
        if outcome == ItemOutcome.UPDATED:
            self.updated += 1
        elif outcome == ItemOutcome.UNCHANGED:
            self.unchanged += 1
        elif outcome == ItemOutcome.NOT_IMPORTED:
            self.not_imported += 1
        else:
            self.errors += 1

    def as_dict(self) -> dict:
        return asdict(self)


class StripedLock:
    """Fixed pool of locks; a GitHub issue id always maps to the same lock."""

    def __init__(self, stripes: int = 64):
        self._locks = [threading.Lock() for _ in range(stripes)]

    @contextmanager
    def hold(self, key: int) -> Iterator[None]:
        with self._locks[hash(key) % len(self._locks)]:
            yield


class ReconciliationEngine:
    """Moves GitHub issues into YouTrack, one issue at a time.

    Scheduled passes and webhook-triggered work share one engine so that the
    per-issue lock serializes them.
    """

    def __init__(
        self,
        github,
        youtrack,
        store: MappingStore,
        *,
        open_state: str = converter.DEFAULT_OPEN_STATE,
        closed_state: str = converter.DEFAULT_CLOSED_STATE,
        priority: str = converter.DEFAULT_PRIORITY,
        clock: Callable[[], datetime] = utcnow,
        locks: Optional[StripedLock] = None,
    ):
        self.github = github
        self.youtrack = youtrack
        self.store = store
        self.open_state = open_state
        self.closed_state = closed_state
        self.priority = priority
        self._clock = clock
        self._locks = locks or StripedLock()

    def _creation_payload(self, issue: GitHubIssue):
        return converter.to_creation_payload(
            issue,
            open_state=self.open_state,
            closed_state=self.closed_state,
            priority=self.priority,
        )

    def _update_payload(self, issue: GitHubIssue):
        return converter.to_update_payload(
            issue, open_state=self.open_state, closed_state=self.closed_state
        )

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def run_import(self) -> ImportSummary:
        """Import every GitHub issue that has no mapping yet"""
        logger.info("Starting import of GitHub issues to YouTrack")
        issues = self.github.list_issues()
        summary = ImportSummary(total=len(issues))

        for issue in issues:
            summary.record(self._guarded(self._import_issue, issue))

        logger.info(f"Import completed: {summary.as_dict()}")
        return summary

    def import_issue_number(self, number: int) -> ImportSummary:
        """Import a single issue by number (webhook path)"""
        summary = ImportSummary(total=1)
        issue = self.github.get_issue(number)
        if issue is None:
            logger.error(f"Could not fetch GitHub issue #{number} for import")
            summary.record(ItemOutcome.ERROR)
            return summary
        summary.record(self._guarded(self._import_issue, issue))
        return summary

    def _import_issue(self, issue: GitHubIssue) -> ItemOutcome:
        with self._locks.hold(issue.id):
            existing = self.store.get(issue.id)
            if existing is not None:
                logger.info(
                    f"Skipping issue #{issue.number} "
                    f"(already imported as {existing.youtrack_task_id_readable or existing.youtrack_task_id})"
                )
                return ItemOutcome.SKIPPED

            logger.info(f"Importing issue #{issue.number}: {issue.title}")
            task = self.youtrack.create_task(self._creation_payload(issue))
            if task is None:
                logger.error(f"Error importing issue #{issue.number}")
                return ItemOutcome.ERROR

            # Record the mapping before anything else can fail, so the task is
            # never created twice for the same issue.
            self.store.upsert(
                IssueTaskMapping(
                    github_issue_id=issue.id,
                    github_issue_number=issue.number,
                    youtrack_task_id=task.id,
                    youtrack_task_id_readable=task.id_readable,
                    last_synced_at=self._clock(),
                )
            )

            if issue.comments > 0:
                try:
                    comments = self.github.list_comments(issue.number)
                except TransportFailure as e:
                    logger.warning(f"Comments of issue #{issue.number} were not imported: {e}")
                    comments = []
                for comment in comments:
                    if self.youtrack.add_comment(task.id, converter.format_comment(comment)) is None:
                        logger.warning(f"Comment {comment.id} of issue #{issue.number} was not imported")

            self._apply_labels(issue, task.id)

            logger.info(f"Imported issue #{issue.number} as {task.id_readable or task.id}")
            return ItemOutcome.IMPORTED

    # ------------------------------------------------------------------
    # Incremental sync
    # ------------------------------------------------------------------

    @staticmethod
    def watermark(mappings: List[IssueTaskMapping]) -> datetime:
        """Earliest last-sync time; anything changed after it may be stale."""
        return min(m.last_synced_at for m in mappings)

    def run_sync(self, target_number: Optional[int] = None) -> SyncSummary:
        """Push changes of already-imported issues.

        Without a target, issues updated since the watermark are fetched in a
        single listing. With a target, only that issue is fetched.
        """
        pass_start = self._clock()

        if target_number is not None:
            issue = self.github.get_issue(target_number)
            if issue is None:
                logger.error(f"Could not fetch GitHub issue #{target_number} for sync")
                summary = SyncSummary(total=1)
                summary.record(ItemOutcome.ERROR)
                return summary
            issues = [issue]
        else:
            mappings = self.store.all()
            if not mappings:
                raise MissingMappings("No mappings found. Please run the import command first.")
            since = self.watermark(mappings)
            logger.info(f"Found {len(mappings)} mappings; fetching issues updated since {since.isoformat()}")
            issues = self.github.list_issues(since=since)

        summary = SyncSummary(total=len(issues))
        for issue in issues:
            summary.record(self._guarded(self._sync_issue, issue, pass_start))

        logger.info(f"Sync completed: {summary.as_dict()}")
        return summary

    def _sync_issue(self, issue: GitHubIssue, pass_start: datetime) -> ItemOutcome:
        with self._locks.hold(issue.id):
            mapping = self.store.get(issue.id)
            if mapping is None:
                logger.info(f"Issue #{issue.number} is new and not yet imported. Skipping.")
                return ItemOutcome.NOT_IMPORTED

            if issue.updated_at is not None and as_utc(issue.updated_at) <= mapping.last_synced_at:
                logger.info(f"Issue #{issue.number} has not been updated since last sync. Skipping.")
                return ItemOutcome.UNCHANGED

            mapping = self._push_update(issue, mapping)
            if mapping is None:
                return ItemOutcome.ERROR

            try:
                self._sync_comments(issue, mapping)
            except TransportFailure as e:
                # Keep the old watermark so the next pass retries this issue.
                logger.error(f"Comment sync failed for issue #{issue.number}: {e}")
                return ItemOutcome.ERROR

            self._apply_labels(issue, mapping.youtrack_task_id)

            self.store.upsert(
                mapping.model_copy(
                    update={"last_synced_at": max(mapping.last_synced_at, as_utc(pass_start))}
                )
            )
            logger.info(
                f"Synced issue #{issue.number} to {mapping.youtrack_task_id_readable or mapping.youtrack_task_id}"
            )
            return ItemOutcome.UPDATED

    def _push_update(self, issue: GitHubIssue, mapping: IssueTaskMapping) -> Optional[IssueTaskMapping]:
        """Update the mapped task, or create a replacement when the update fails"""
        if self.youtrack.update_task(mapping.youtrack_task_id, self._update_payload(issue)):
            return mapping

        logger.warning(
            f"Updating {mapping.youtrack_task_id_readable or mapping.youtrack_task_id} failed; "
            f"creating a replacement task for issue #{issue.number}"
        )
        task = self.youtrack.create_task(self._creation_payload(issue))
        if task is None:
            logger.error(f"Replacement task for issue #{issue.number} could not be created")
            return None

        repointed = mapping.model_copy(
            update={"youtrack_task_id": task.id, "youtrack_task_id_readable": task.id_readable}
        )
        self.store.upsert(repointed)
        return repointed

    def _sync_comments(self, issue: GitHubIssue, mapping: IssueTaskMapping):
        """Post GitHub comments that the task does not carry yet"""
        task = self.youtrack.get_task(mapping.youtrack_task_id)
        if task is None:
            raise TransportFailure(f"YouTrack task {mapping.youtrack_task_id} could not be fetched")

        comments = self.github.list_comments(issue.number)
        if not comments or len(task.comments) >= len(comments):
            return

        logger.info(f"Syncing comments for issue #{issue.number}")
        for comment in converter.missing_comments(comments, (c.text for c in task.comments)):
            if self.youtrack.add_comment(mapping.youtrack_task_id, converter.format_comment(comment)) is not None:
                logger.info(f"Added comment {comment.id} from issue #{issue.number}")

    def _apply_labels(self, issue: GitHubIssue, task_id: str):
        for name in issue.label_names:
            if not self.youtrack.add_tag(task_id, name):
                logger.warning(f"Label '{name}' of issue #{issue.number} was not applied")

    def _guarded(self, step, issue: GitHubIssue, *args) -> ItemOutcome:
        """Run one per-issue step; a failure counts as an error for that issue only."""
        try:
            return step(issue, *args)
        except Exception as e:
            logger.error(f"Failed to process issue #{issue.number}: {e}")
            return ItemOutcome.ERROR
