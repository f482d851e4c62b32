"""Service layer for ClipShelf."""

from .classifier import classify
from .clipboard_service import ClipboardService
from .history_store import HistoryStore, is_equivalent
from .ignore_policy import BUILT_IN_IGNORED_APPS, IgnoreList, should_ignore

__all__ = [
    "BUILT_IN_IGNORED_APPS",
    "ClipboardService",
    "HistoryStore",
    "IgnoreList",
    "classify",
    "is_equivalent",
    "should_ignore",
]
