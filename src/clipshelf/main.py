#!/usr/bin/env python3

import argparse
import logging
import signal
import sys
import time
from typing import Optional

from clipshelf.clipboard import ClipboardResource, get_clipboard
from clipshelf.config import RedisConfig, Settings
from clipshelf.database import InMemoryPersistence, PersistenceAdapter, RedisPersistence
from clipshelf.exceptions import PersistenceFailure
from clipshelf.models import ClipboardKind
from clipshelf.services import ClipboardService, HistoryStore, IgnoreList

logger = logging.getLogger(__name__)


class ClipShelfApp:
    """Wires the clipboard, persistence and services together.

    UI collaborators talk to this object: they call its operations and
    subscribe to ``store``, ``ignore_list`` and ``poller`` for state changes.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        persistence: Optional[PersistenceAdapter] = None,
        clipboard: Optional[ClipboardResource] = None,
        use_redis: bool = True,
    ):
        self.settings = settings or Settings.from_env()
        self.persistence = persistence or self._create_persistence(use_redis)
        self._load_settings()

        self.clipboard = clipboard or get_clipboard()
        self.store = HistoryStore(self.persistence, history_limit=self.settings.history_limit)
        self.ignore_list = IgnoreList(
            self.persistence,
            ignore_password_managers=self.settings.ignore_password_managers,
            ignore_custom_apps=self.settings.ignore_custom_apps,
        )
        self.store.load()
        self.ignore_list.load()

        self.poller = ClipboardService(
            self.clipboard,
            self.store,
            self.ignore_list,
            poll_interval=self.settings.poll_interval,
            max_payload_bytes=self.settings.max_payload_bytes,
        )
        self.running = False

    @staticmethod
    def _create_persistence(use_redis: bool) -> PersistenceAdapter:
        if use_redis:
            try:
                persistence = RedisPersistence(RedisConfig.from_env())
                persistence.ping()
                logger.info("Redis connected - history will persist")
                return persistence
            except PersistenceFailure as e:
                logger.warning(f"Redis unavailable, continuing without persistence: {e}")
        return InMemoryPersistence()

    def _load_settings(self) -> None:
        try:
            self.settings.apply_persisted(self.persistence.load_settings())
        except (PersistenceFailure, ValueError) as e:
            logger.warning(f"Could not load stored settings: {e}")

    def _save_settings(self) -> None:
        try:
            self.persistence.save_settings(self.settings.persisted())
        except PersistenceFailure as e:
            logger.error(f"Could not save settings: {e}")

    # ---------------------------------------------------------------------
    # Configuration surface
    # ---------------------------------------------------------------------
    def set_history_limit(self, limit: int) -> None:
        self.store.set_history_limit(limit)
        self.settings.history_limit = limit
        self._save_settings()

    def set_ignore_password_managers(self, enabled: bool) -> None:
        self.settings.ignore_password_managers = enabled
        self.ignore_list.ignore_password_managers = enabled
        self._save_settings()

    def set_ignore_custom_apps(self, enabled: bool) -> None:
        self.settings.ignore_custom_apps = enabled
        self.ignore_list.ignore_custom_apps = enabled
        self._save_settings()

    # ---------------------------------------------------------------------
    # Write-back
    # ---------------------------------------------------------------------
    def copy_to_clipboard(self, item_id: str, plain_text: bool = False) -> bool:
        """Place a stored item back on the clipboard without re-capturing it."""
        with self.store.lock:
            item = self.store.get(item_id)
            if item is None:
                return False

            if plain_text:
                ok = self.clipboard.write_payload(ClipboardKind.TEXT, item.primary_text)
            elif item.kind == ClipboardKind.IMAGE:
                ok = self.clipboard.write_payload(item.kind, item.binary_payload)
            elif item.kind == ClipboardKind.FILE:
                ok = self.clipboard.write_payload(item.kind, item.source_path)
            else:
                ok = self.clipboard.write_payload(
                    item.kind, item.primary_text, rich_text=item.rich_text_payload)

            self.poller.suppress_next_change()

        if ok:
            logger.info(f"Copied {item.kind.value} item back to clipboard")
        else:
            logger.warning(f"Could not copy item {item_id} to clipboard")
        return ok

    # ---------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------
    def start(self) -> None:
        if self.running:
            return
        self.running = True
        self.poller.start()
        logger.info("ClipShelf running. Press Ctrl+C to stop")

    def stop(self) -> None:
        if not self.running:
            return
        self.running = False

        self.poller.stop()

        if self.settings.clear_on_exit:
            self.store.clear_all(keep_pinned=True)

        self.persistence.close()
        logger.info("ClipShelf stopped")

    def run_forever(self) -> None:
        self.start()

        try:
            while self.running:
                time.sleep(1.0)
        except KeyboardInterrupt:
            logger.info("Stopping...")
        finally:
            self.stop()


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="ClipShelf - clipboard history engine"
    )

    parser.add_argument(
        "-i", "--poll-interval",
        type=float,
        default=None,
        help="Clipboard polling interval in seconds (default: 0.5)"
    )

    parser.add_argument(
        "-l", "--history-limit",
        type=_positive_int,
        default=None,
        help="Maximum number of unpinned history entries (default: 20)"
    )

    parser.add_argument(
        "--clear-on-exit",
        action="store_true",
        help="Remove unpinned entries when shutting down"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose debug logging"
    )

    parser.add_argument(
        "--no-redis",
        action="store_true",
        help="Disable Redis history persistence"
    )

    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    settings = Settings.from_env()
    if args.poll_interval is not None:
        settings.poll_interval = args.poll_interval
    if args.clear_on_exit:
        settings.clear_on_exit = True

    app = ClipShelfApp(settings=settings, use_redis=not args.no_redis)
    if args.history_limit is not None:
        app.set_history_limit(args.history_limit)

    def signal_handler(signum, frame):
        app.stop()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        app.run_forever()
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
