"""Main application entry point."""

import argparse
import asyncio
import signal
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .config import ConfigLoader, SyncConfig, get_settings, load_config_from_env
from .core import SyncStats
from .history import SyncHistoryStore
from .scheduler import SyncScheduler
from .service import SyncService
from .utils.logging import setup_logging, get_logger


class FolderSyncApp:
    """Main Folder Sync application."""

    def __init__(
        self,
        config_file: Optional[str] = None,
        log_level: Optional[str] = None,
        log_format: Optional[str] = None
    ):
        """Initialize the application.

        Args:
            config_file: Sync configuration file, searched for when omitted
            log_level: Overrides the configured log level
            log_format: Overrides the configured log format
        """
        self.log_level = log_level
        self.log_format = log_format
        self.settings = get_settings()
        self.config_file = config_file or self.settings.sync.config_file
        self.logger = get_logger("FolderSync")
        self.running = False
        self.config: Optional[SyncConfig] = None
        self.history: Optional[SyncHistoryStore] = None
        self.service: Optional[SyncService] = None
        self.scheduler: Optional[SyncScheduler] = None

    def load(self) -> SyncService:
        """Load configuration and history and build the sync service."""
        self.config = load_config_from_env(self.config_file)
        setup_logging(
            log_level=self.log_level or self.config.log_level,
            log_format=self.log_format or self.config.log_format
        )
        ConfigLoader().validate_config(self.config)

        self.history = SyncHistoryStore(
            path=self.settings.sync.history_file,
            max_records=self.config.history_limit
        )
        self.history.load()

        self.service = SyncService(config=self.config, history=self.history)
        return self.service

    async def startup(self):
        """Application startup."""
        self.logger.info(
            "Starting Folder Sync",
            version=self.settings.version,
            environment=self.settings.environment
        )

        service = self.load()
        self.scheduler = SyncScheduler(service)
        await self.scheduler.start()

        self.running = True
        self.logger.info(
            "Folder Sync started successfully",
            interval=self.config.schedule.interval.value,
            next_run=self.scheduler.next_run_time.isoformat() if self.scheduler.next_run_time else None
        )

    async def shutdown(self):
        """Application shutdown."""
        self.logger.info("Shutting down Folder Sync")
        self.running = False

        if self.scheduler and self.scheduler.is_running:
            await self.scheduler.stop()

        if self.history:
            self.history.close()

        self.logger.info("Folder Sync stopped")

    async def run(self):
        """Run the main application loop."""
        await self.startup()

        try:
            while self.running:
                # Keep application running while the scheduler handles sync jobs
                await asyncio.sleep(1)
        finally:
            await self.shutdown()

    async def run_once(self) -> bool:
        """Run a single sync and return whether it succeeded."""
        service = self.load()
        try:
            record = await service.run_once(on_progress=self._log_progress)
        finally:
            self.history.close()

        if not record.success:
            permission_error = getattr(service.last_error, "is_permission_error", False)
            self.logger.error(
                "Sync failed",
                files_transferred=record.files_transferred,
                error=record.error_message,
                permission_error=permission_error
            )
        return record.success

    def _log_progress(self, stats: SyncStats) -> None:
        self.logger.debug(
            "Sync progress",
            files_copied=stats.files_copied,
            total_files=stats.total_files
        )


def setup_signal_handlers(app: FolderSyncApp):
    """Set up signal handlers for graceful shutdown."""
    def signal_handler(signum, frame):
        app.logger.info("Received signal", signal=signum)
        app.running = False

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="folder-sync",
        description="Mirror new files from source folders into a destination tree."
    )
    parser.add_argument("--config", help="Path to a YAML or JSON sync configuration")
    parser.add_argument("--once", action="store_true", help="Run a single sync and exit")
    parser.add_argument("--log-level", help="Override the configured log level")
    parser.add_argument("--log-format", choices=["json", "console"], help="Override the log format")
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # FOLDERSYNC_* overrides may come from a local .env file
    load_dotenv()

    setup_logging(log_level=args.log_level, log_format=args.log_format)

    logger = get_logger("main")
    logger.info("Initializing Folder Sync application")

    app = FolderSyncApp(
        config_file=args.config,
        log_level=args.log_level,
        log_format=args.log_format
    )

    if args.once:
        return 0 if await app.run_once() else 1

    setup_signal_handlers(app)
    await app.run()
    return 0


def cli() -> None:
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
        sys.exit(0)


if __name__ == "__main__":
    cli()
