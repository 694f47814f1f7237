"""Services"""

from trackbridge.services.github_client import GitHubClient
from trackbridge.services.mapping_store import JsonMappingStore, SqlMappingStore
from trackbridge.services.reconciler import ReconciliationEngine
from trackbridge.services.youtrack_client import YouTrackClient

__all__ = ["GitHubClient", "JsonMappingStore", "ReconciliationEngine", "SqlMappingStore", "YouTrackClient"]
