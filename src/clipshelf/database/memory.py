from typing import Dict, Iterable, List

from clipshelf.database.base import PersistenceAdapter
from clipshelf.models import ClipboardItem, IgnoredApp


class InMemoryPersistence(PersistenceAdapter):
    """Process-local storage used when Redis is disabled or unreachable."""

    def __init__(self) -> None:
        self._history: List[ClipboardItem] = []
        self._ignored: List[IgnoredApp] = []
        self._settings: Dict[str, str] = {}

    def load_history(self) -> List[ClipboardItem]:
        return [item.model_copy(deep=True) for item in self._history]

    def save_history(self, items: Iterable[ClipboardItem]) -> None:
        self._history = [item.model_copy(deep=True) for item in items]

    def load_ignore_list(self) -> List[IgnoredApp]:
        return list(self._ignored)

    def save_ignore_list(self, apps: Iterable[IgnoredApp]) -> None:
        self._ignored = list(apps)

    def load_settings(self) -> Dict[str, str]:
        return dict(self._settings)

    def save_settings(self, values: Dict[str, str]) -> None:
        self._settings.update(values)
