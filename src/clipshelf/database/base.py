from abc import ABC, abstractmethod
from typing import Dict, Iterable, List

from clipshelf.models import ClipboardItem, IgnoredApp


class PersistenceAdapter(ABC):
    """Durable storage for history, the ignore list and persisted settings.

    Implementations raise :class:`clipshelf.exceptions.PersistenceFailure`
    when a load or save cannot complete.
    """

    @abstractmethod
    def load_history(self) -> List[ClipboardItem]:
        pass

    @abstractmethod
    def save_history(self, items: Iterable[ClipboardItem]) -> None:
        pass

    @abstractmethod
    def load_ignore_list(self) -> List[IgnoredApp]:
        pass

    @abstractmethod
    def save_ignore_list(self, apps: Iterable[IgnoredApp]) -> None:
        pass

    @abstractmethod
    def load_settings(self) -> Dict[str, str]:
        pass

    @abstractmethod
    def save_settings(self, values: Dict[str, str]) -> None:
        pass

    def close(self) -> None:
        pass
