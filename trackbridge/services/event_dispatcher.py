"""GitHub webhook event handling"""

import enum
import json
import logging
from typing import Any, Dict, Optional

from trackbridge.security import verify_signature
from trackbridge.services.mapping_store import MappingStore

logger = logging.getLogger(__name__)

# Issue actions that change something YouTrack mirrors.
ISSUE_UPDATE_ACTIONS = frozenset(
    {"edited", "closed", "reopened", "labeled", "unlabeled", "assigned", "unassigned"}
)
COMMENT_ACTIONS = frozenset({"created", "edited"})


class EventOutcome(str, enum.Enum):
    """What the dispatcher did with a delivery"""

    IMPORTED = "imported"
    SYNCED = "synced"
    ALREADY_IMPORTED = "already_imported"
    IGNORED = "ignored"


class EventDispatcher:
    """Verifies signed deliveries and routes them to the reconciliation engine.

    Handling runs the same engine code as the scheduled passes, limited to the
    single issue named in the payload.
    """

    def __init__(self, engine, store: MappingStore, secret: str):
        self.engine = engine
        self.store = store
        self._secret = secret

    def verify(self, body: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Check the signature and decode the JSON body.

        Raises SignatureInvalid before the body is even parsed, and ValueError
        for a body that is not a JSON object.
        """
        verify_signature(self._secret, body, signature)
        payload = json.loads(body)
        if not isinstance(payload, dict):
            raise ValueError("webhook payload must be a JSON object")
        return payload

    def dispatch(self, event: str, payload: Dict[str, Any], delivery_id: Optional[str] = None) -> EventOutcome:
        """Handle one verified delivery and report what was done"""
        action = payload.get("action")
        logger.info(f"Received webhook event {event}.{action} (delivery {delivery_id})")

        if event == "issues":
            return self._on_issue(action, payload.get("issue") or {})
        if event == "issue_comment":
            return self._on_comment(action, payload.get("issue") or {})

        logger.info(f"Ignoring unsupported event: {event}")
        return EventOutcome.IGNORED

    def _on_issue(self, action: Optional[str], issue: Dict[str, Any]) -> EventOutcome:
        if "pull_request" in issue:
            return EventOutcome.IGNORED
        if action == "opened":
            return self._import_if_unmapped(issue)
        if action in ISSUE_UPDATE_ACTIONS:
            if self.store.get(issue["id"]) is None:
                logger.info(f"Issue #{issue['number']} not yet imported, importing now")
                return self._import_if_unmapped(issue)
            self.engine.run_sync(target_number=issue["number"])
            return EventOutcome.SYNCED

        logger.info(f"Ignoring unsupported issue action: {action}")
        return EventOutcome.IGNORED

    def _on_comment(self, action: Optional[str], issue: Dict[str, Any]) -> EventOutcome:
        if action not in COMMENT_ACTIONS or "pull_request" in issue:
            return EventOutcome.IGNORED
        if self.store.get(issue["id"]) is None:
            logger.info(f"Issue #{issue['number']} not yet imported, ignoring comment")
            return EventOutcome.IGNORED
        self.engine.run_sync(target_number=issue["number"])
        return EventOutcome.SYNCED

    def _import_if_unmapped(self, issue: Dict[str, Any]) -> EventOutcome:
        existing = self.store.get(issue["id"])
        if existing is not None:
            logger.info(
                f"Issue #{issue['number']} already imported as "
                f"{existing.youtrack_task_id_readable or existing.youtrack_task_id}"
            )
            return EventOutcome.ALREADY_IMPORTED
        self.engine.import_issue_number(issue["number"])
        return EventOutcome.IMPORTED
