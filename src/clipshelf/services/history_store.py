"""Bounded, deduplicated, pin-aware clipboard history.

Ordering: pinned entries first, then newest first within each partition.
Only unpinned entries count against ``history_limit`` and only they are
evicted automatically.
"""

import logging
import threading
from typing import Callable, List, Optional, Tuple

from clipshelf.config import DEFAULT_HISTORY_LIMIT
from clipshelf.database.base import PersistenceAdapter
from clipshelf.exceptions import PersistenceFailure
from clipshelf.models import ClipboardItem, ClipboardKind
from clipshelf.utils.observable import Publisher

logger = logging.getLogger(__name__)

History = Tuple[ClipboardItem, ...]


def is_equivalent(a: ClipboardItem, b: ClipboardItem) -> bool:
    """Kind-specific content equality; items of different kinds never match."""
    if a.kind != b.kind:
        return False
    if a.kind in (ClipboardKind.TEXT, ClipboardKind.COLOR):
        return a.primary_text == b.primary_text
    if a.kind == ClipboardKind.FILE:
        return a.source_path == b.source_path
    return a.binary_payload == b.binary_payload


def sort_history(items: List[ClipboardItem]) -> List[ClipboardItem]:
    newest_first = sorted(items, key=lambda item: (item.created_at, item.item_id), reverse=True)
    return sorted(newest_first, key=lambda item: not item.is_pinned)


class HistoryStore:

    def __init__(self, persistence: PersistenceAdapter,
                 history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self._check_limit(history_limit)
        self._persistence = persistence
        self._history_limit = history_limit
        self._items: List[ClipboardItem] = []
        self._publisher: Publisher[History] = Publisher()
        # also held by the clipboard poller across read -> classify -> insert
        self.lock = threading.RLock()

    @staticmethod
    def _check_limit(limit: int) -> None:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValueError(f"history limit must be a positive integer, got {limit!r}")

    @property
    def history(self) -> History:
        with self.lock:
            return tuple(self._items)

    @property
    def history_limit(self) -> int:
        return self._history_limit

    def subscribe(self, callback: Callable[[History], None]) -> Callable[[], None]:
        return self._publisher.subscribe(callback)

    def get(self, item_id: str) -> Optional[ClipboardItem]:
        with self.lock:
            for item in self._items:
                if item.item_id == item_id:
                    return item
        return None

    def load(self) -> None:
        try:
            items = self._persistence.load_history()
        except PersistenceFailure as exc:
            logger.error("Could not load history, starting empty: %s", exc)
            items = []

        with self.lock:
            self._items = list(items)
            self._evict()
            self._items = sort_history(self._items)
            logger.info("Loaded %d history items", len(self._items))
            self._publisher.publish(tuple(self._items))

    def insert(self, item: ClipboardItem) -> bool:
        """Add a freshly classified item.

        Returns ``False`` when a pinned entry already holds equivalent content;
        the history is left untouched in that case.
        """
        with self.lock:
            matches = [existing for existing in self._items if is_equivalent(existing, item)]
            if any(existing.is_pinned for existing in matches):
                logger.debug("Ignoring copy of pinned %s content", item.kind.value)
                return False

            replaced = {existing.item_id for existing in matches}
            self._items = [existing for existing in self._items if existing.item_id not in replaced]
            self._items.insert(0, item)
            self._evict()
            self._changed()
            logger.debug("Inserted %s item %s", item.kind.value, item.item_id)
            return True

    def toggle_pin(self, item_id: str) -> bool:
        with self.lock:
            for index, item in enumerate(self._items):
                if item.item_id == item_id:
                    self._items[index] = item.model_copy(update={"is_pinned": not item.is_pinned})
                    break
            else:
                logger.debug("toggle_pin: no item %s", item_id)
                return False
            self._changed()
            return True

    def delete(self, item_id: str) -> bool:
        with self.lock:
            remaining = [item for item in self._items if item.item_id != item_id]
            if len(remaining) == len(self._items):
                logger.debug("delete: no item %s", item_id)
                return False
            self._items = remaining
            self._changed()
            return True

    def clear_all(self, keep_pinned: bool = True) -> int:
        with self.lock:
            before = len(self._items)
            if keep_pinned:
                self._items = [item for item in self._items if item.is_pinned]
            else:
                self._items = []
            removed = before - len(self._items)
            self._changed()
            logger.info("Cleared %d history items (keep_pinned=%s)", removed, keep_pinned)
            return removed

    def set_history_limit(self, limit: int) -> None:
        self._check_limit(limit)
        with self.lock:
            self._history_limit = limit
            if self._evict():
                self._changed()

    def _evict(self) -> int:
        unpinned = [item for item in self._items if not item.is_pinned]
        excess = len(unpinned) - self._history_limit
        if excess <= 0:
            return 0

        oldest_first = sorted(unpinned, key=lambda item: (item.created_at, item.item_id))
        evicted = {item.item_id for item in oldest_first[:excess]}
        self._items = [item for item in self._items if item.item_id not in evicted]
        logger.debug("Evicted %d items over limit %d", excess, self._history_limit)
        return excess

    def _changed(self) -> None:
        self._items = sort_history(self._items)
        snapshot = tuple(self._items)
        self._publisher.publish(snapshot)
        try:
            self._persistence.save_history(snapshot)
        except PersistenceFailure as exc:
            logger.error("Could not persist history, keeping in-memory state: %s", exc)
