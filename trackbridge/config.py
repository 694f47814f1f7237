"""Application configuration"""

from typing import List

from pydantic_settings import BaseSettings

from trackbridge.errors import ConfigInvalid


class Settings(BaseSettings):
    """Application settings"""

    # GitHub (upstream)
    github_token: str = ""
    github_owner: str = ""
    github_repo: str = ""
    github_api_url: str = "https://api.github.com"

    # YouTrack (downstream)
    youtrack_url: str = ""
    youtrack_token: str = ""
    youtrack_project_name: str = ""
    # Workflow values written into the State / Priority custom fields.
    youtrack_open_state: str = "To do"
    youtrack_closed_state: str = "Done"
    youtrack_default_priority: str = "Normal"

    # Mapping storage
    # JSON file rewritten on every change. When MAPPING_DATABASE_URL is set the
    # SQL-backed store is used instead (e.g. "sqlite:///./trackbridge.db").
    mapping_file: str = "issue-task-mapping.json"
    mapping_database_url: str | None = None

    # Sync
    sync_interval_minutes: int = 60
    # Run the periodic sync inside the webhook server process too.
    sync_schedule_enabled: bool = False

    # Webhook server
    webhook_host: str = "0.0.0.0"
    webhook_port: int = 3000
    webhook_path: str = "/webhook"
    webhook_secret: str = ""

    http_timeout_seconds: float = 30.0

    # Logging
    log_level: str = "INFO"

    # Auth (optional)
    # When enabled, the admin API is protected by HTTP Basic auth.
    # /health and the webhook path stay open (the webhook is HMAC-signed).
    auth_enabled: bool = False
    auth_username: str | None = None
    auth_password: str | None = None

    class Config:
        env_file = ".env"
        case_sensitive = False


def validate_settings(settings: Settings, *, require_webhook: bool = False) -> List[str]:
    """Return a list of human-readable configuration problems (empty if valid)."""
    problems: List[str] = []

    if not settings.github_token:
        problems.append("GITHUB_TOKEN is required")
    if not settings.github_owner:
        problems.append("GITHUB_OWNER is required")
    if not settings.github_repo:
        problems.append("GITHUB_REPO is required")

    if not settings.youtrack_url:
        problems.append("YOUTRACK_URL is required")
    if not settings.youtrack_token:
        problems.append("YOUTRACK_TOKEN is required")
    if not settings.youtrack_project_name:
        problems.append("YOUTRACK_PROJECT_NAME is required")

    if settings.sync_interval_minutes <= 0:
        problems.append("SYNC_INTERVAL_MINUTES must be a positive number")

    if require_webhook:
        if settings.webhook_port <= 0:
            problems.append("WEBHOOK_PORT must be a positive number")
        if not settings.webhook_secret:
            problems.append("WEBHOOK_SECRET is required for secure webhook operation")
        if not settings.webhook_path.startswith("/"):
            problems.append("WEBHOOK_PATH must start with '/'")

    if settings.auth_enabled and not (settings.auth_username and settings.auth_password):
        problems.append("AUTH_ENABLED=true requires AUTH_USERNAME and AUTH_PASSWORD to be set")

    return problems


def require_valid_settings(settings: Settings, *, require_webhook: bool = False) -> Settings:
    """Raise ConfigInvalid unless the settings pass validation."""
    problems = validate_settings(settings, require_webhook=require_webhook)
    if problems:
        raise ConfigInvalid(problems)
    return settings
