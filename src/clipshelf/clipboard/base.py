from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Union

from clipshelf.models import ClipboardKind


@dataclass(frozen=True)
class RawPayload:
    """Every representation the clipboard offered at one moment."""
    file_paths: List[str] = field(default_factory=list)
    image_bytes: Optional[bytes] = None
    rich_text: Optional[bytes] = None
    text: Optional[str] = None


class ClipboardResource(ABC):

    @abstractmethod
    def change_token(self) -> int:
        """Return a value that increases whenever the clipboard contents change."""

    @abstractmethod
    def read_payload(self) -> RawPayload:
        pass

    @abstractmethod
    def write_payload(
        self,
        kind: ClipboardKind,
        content: Union[str, bytes],
        rich_text: Optional[bytes] = None,
    ) -> bool:
        pass

    @abstractmethod
    def foreground_application_id(self) -> Optional[str]:
        pass
