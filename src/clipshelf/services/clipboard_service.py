"""Clipboard poller for ClipShelf.

Polls the clipboard change token on a fixed interval and routes every new
change through the ignore policy, the classifier and the history store.
"""

import logging
import threading
from typing import Callable, Optional

from clipshelf.clipboard.base import ClipboardResource
from clipshelf.config import DEFAULT_MAX_PAYLOAD_BYTES, DEFAULT_POLL_INTERVAL
from clipshelf.exceptions import ClassificationSkipped
from clipshelf.services.classifier import classify
from clipshelf.services.history_store import HistoryStore
from clipshelf.services.ignore_policy import IgnoreList
from clipshelf.utils.observable import Publisher

logger = logging.getLogger(__name__)


class ClipboardService:
    """Background poller feeding clipboard changes into the history store."""

    def __init__(
        self,
        clipboard: ClipboardResource,
        store: HistoryStore,
        ignore_list: IgnoreList,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
        auto_start: bool = False,
    ) -> None:
        self._clipboard = clipboard
        self._store = store
        self._ignore_list = ignore_list
        self.poll_interval = poll_interval
        self.max_payload_bytes = max_payload_bytes
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._poll_thread: Optional[threading.Thread] = None
        self._is_running = False
        self._is_monitoring = True
        self._monitoring_publisher: Publisher[bool] = Publisher()
        self._last_token = self._clipboard.change_token()

        if auto_start:
            self.start()

    # ---------------------------------------------------------------------
    # Monitoring state
    # ---------------------------------------------------------------------
    @property
    def is_monitoring(self) -> bool:
        return self._is_monitoring

    @is_monitoring.setter
    def is_monitoring(self, value: bool) -> None:
        with self._store.lock:
            if value == self._is_monitoring:
                return
            if value:
                # changes made while paused are never ingested
                self._last_token = self._clipboard.change_token()
            self._is_monitoring = value
        logger.info("Clipboard monitoring %s", "resumed" if value else "paused")
        self._monitoring_publisher.publish(value)

    def subscribe(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        return self._monitoring_publisher.subscribe(callback)

    def suppress_next_change(self) -> None:
        """Adopt the current change token without ingesting its content.

        Call right after writing to the clipboard so the write is not
        captured as a new copy.
        """
        with self._store.lock:
            self._last_token = self._clipboard.change_token()

    # ---------------------------------------------------------------------
    # Lifecycle management
    # ---------------------------------------------------------------------
    def start(self) -> None:
        with self._lock:
            if self._is_running:
                logger.debug("ClipboardService already running")
                return

            logger.info("Starting ClipboardService polling (interval=%ss)", self.poll_interval)
            self._stop_event.clear()
            self._is_running = True
            self._poll_thread = threading.Thread(
                target=self._poll_loop, name="clipshelf-poller", daemon=True)
            self._poll_thread.start()

    def stop(self) -> None:
        with self._lock:
            if not self._is_running:
                return

            logger.info("Stopping ClipboardService polling")
            self._is_running = False
            self._stop_event.set()

        # join thread outside the lock
        if self._poll_thread is not None:
            self._poll_thread.join(timeout=max(1.0, self.poll_interval * 2))
            self._poll_thread = None

    @property
    def is_running(self) -> bool:
        return self._is_running

    # ---------------------------------------------------------------------
    # Polling
    # ---------------------------------------------------------------------
    def _poll_loop(self) -> None:
        while not self._stop_event.wait(self.poll_interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Clipboard poll tick failed")

    def tick(self) -> bool:
        """Run one poll step. Returns ``True`` when an item was added."""
        if not self._is_monitoring:
            return False

        with self._store.lock:
            token = self._clipboard.change_token()
            if token == self._last_token:
                return False
            self._last_token = token

            try:
                app_id = self._clipboard.foreground_application_id()
            except Exception:
                logger.warning("Could not resolve the focused application", exc_info=True)
                app_id = None
            if self._ignore_list.is_ignored(app_id):
                logger.debug("Clipboard change ignored, %s has focus", app_id)
                return False

            payload = self._clipboard.read_payload()
            try:
                item = classify(payload, self.max_payload_bytes)
            except ClassificationSkipped as exc:
                logger.warning("Clipboard change skipped: %s", exc)
                return False

            if item is None:
                logger.debug("Clipboard change had nothing to classify")
                return False

            logger.info("Clipboard copied: %s", item.kind.value)
            return self._store.insert(item)

    # ---------------------------------------------------------------------
    # Context manager helpers
    # ---------------------------------------------------------------------
    def __enter__(self) -> "ClipboardService":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
