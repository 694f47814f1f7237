"""Construction of clients, mapping store and engine from settings"""

import logging
from dataclasses import dataclass
from typing import Optional

from trackbridge.config import Settings
from trackbridge.errors import CredentialInvalid
from trackbridge.services.github_client import GitHubClient
from trackbridge.services.mapping_store import MappingStore, create_mapping_store
from trackbridge.services.reconciler import ReconciliationEngine
from trackbridge.services.youtrack_client import YouTrackClient

logger = logging.getLogger(__name__)


@dataclass
class Components:
    github: GitHubClient
    youtrack: YouTrackClient
    store: MappingStore
    engine: ReconciliationEngine

    def close(self):
        self.github.close()
        self.youtrack.close()


def build_components(settings: Settings, mapping_file: Optional[str] = None) -> Components:
    """Wire explicit client instances into a reconciliation engine"""
    github = GitHubClient(
        settings.github_token,
        settings.github_owner,
        settings.github_repo,
        settings.github_api_url,
        timeout=settings.http_timeout_seconds,
    )
    youtrack = YouTrackClient(
        settings.youtrack_url,
        settings.youtrack_token,
        settings.youtrack_project_name,
        timeout=settings.http_timeout_seconds,
    )
    store = create_mapping_store(settings, mapping_file)
    engine = ReconciliationEngine(
        github,
        youtrack,
        store,
        open_state=settings.youtrack_open_state,
        closed_state=settings.youtrack_closed_state,
        priority=settings.youtrack_default_priority,
    )
    return Components(github=github, youtrack=youtrack, store=store, engine=engine)


def verify_credentials(github, youtrack):
    """Raise CredentialInvalid unless both trackers accept their tokens"""
    logger.info("Validating API tokens...")
    if not github.check_credential():
        raise CredentialInvalid("GitHub token is invalid. Please check your configuration.")
    if not youtrack.check_credential():
        raise CredentialInvalid("YouTrack token is invalid. Please check your configuration.")
    logger.info("API tokens validated successfully.")
