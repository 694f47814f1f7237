"""Command line entry point: import, sync and webhook commands"""

import argparse
import logging
import sys
import threading
from typing import List, Optional

from trackbridge.bootstrap import build_components, verify_credentials
from trackbridge.config import Settings, require_valid_settings
from trackbridge.errors import ConfigInvalid, CredentialInvalid, MissingMappings, TransportFailure
from trackbridge.main import configure_logging, create_app
from trackbridge.scheduler import SyncScheduler

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trackbridge",
        description="Synchronize GitHub issues into a YouTrack project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s import                     # Create YouTrack tasks for all GitHub issues
  %(prog)s sync                       # Push changes since the last sync
  %(prog)s sync --continuous          # Keep syncing every SYNC_INTERVAL_MINUTES
  %(prog)s webhook                    # Serve GitHub webhooks on WEBHOOK_PORT

Configuration:
  Set GITHUB_TOKEN, GITHUB_OWNER, GITHUB_REPO, YOUTRACK_URL,
  YOUTRACK_TOKEN and YOUTRACK_PROJECT_NAME in the environment or .env.
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("import", "Import all GitHub issues into YouTrack"),
        ("sync", "Sync changes of already imported issues"),
        ("webhook", "Start the webhook server"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "-m",
            "--mapping-file",
            default=None,
            help="Path to the issue/task mapping file (default: MAPPING_FILE)",
        )
        if name == "sync":
            sub.add_argument(
                "--continuous",
                action="store_true",
                help="Run continuously at the configured interval",
            )

    return parser


def _print_summary(title: str, summary: dict):
    print(f"\n{title}:")
    for key, value in summary.items():
        print(f"  {key.replace('_', ' ').capitalize()}: {value}")


def _wait_until_interrupted():
    stop = threading.Event()
    try:
        while not stop.wait(1.0):
            pass
    except KeyboardInterrupt:
        print("\nStopping continuous sync.")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = Settings()
    configure_logging(settings.log_level)

    try:
        require_valid_settings(settings, require_webhook=args.command == "webhook")
    except ConfigInvalid as e:
        print("ERROR: invalid configuration")
        for problem in e.problems:
            print(f"  - {problem}")
        return 1

    components = build_components(settings, args.mapping_file)
    try:
        try:
            verify_credentials(components.github, components.youtrack)
        except CredentialInvalid as e:
            print(f"ERROR: {e}")
            return 1

        engine = components.engine

        if args.command == "import":
            try:
                summary = engine.run_import()
            except TransportFailure as e:
                print(f"ERROR: {e}")
                return 1
            _print_summary("Import summary", summary.as_dict())
            return 0

        if args.command == "sync":
            if args.continuous:
                if not engine.store.all():
                    print("ERROR: No mappings found. Please run the import command first.")
                    return 1
                print(f"Starting continuous sync every {settings.sync_interval_minutes} minutes")
                scheduler = SyncScheduler(engine, settings.sync_interval_minutes)
                scheduler.start(run_immediately=True)
                try:
                    _wait_until_interrupted()
                finally:
                    scheduler.stop()
                return 0
            try:
                summary = engine.run_sync()
            except MissingMappings as e:
                print(f"ERROR: {e}")
                return 1
            except TransportFailure as e:
                print(f"ERROR: {e}")
                return 1
            _print_summary("Sync summary", summary.as_dict())
            return 0

        # webhook
        import uvicorn

        app = create_app(settings, engine)
        print(
            f"Webhook server listening on {settings.webhook_host}:{settings.webhook_port}"
            f"{settings.webhook_path}"
        )
        uvicorn.run(
            app,
            host=settings.webhook_host,
            port=settings.webhook_port,
            log_level=settings.log_level.lower(),
        )
        return 0
    finally:
        components.close()


if __name__ == "__main__":
    sys.exit(main())
