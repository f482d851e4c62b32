from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from ulid import ULID


class ClipboardKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"
    COLOR = "color"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_item_id() -> str:
    return f"i_{ULID.from_datetime(_utcnow())}"


class ClipboardItem(BaseModel):
    """Typed clipboard snapshot retained in history.

    Items are immutable; pinning replaces the entry with a copy whose
    ``is_pinned`` is flipped, and only the history store does that.
    """
    model_config = ConfigDict(frozen=True)

    item_id: str = Field(default_factory=_new_item_id)
    kind: ClipboardKind
    primary_text: str
    binary_payload: Optional[bytes] = None
    source_path: Optional[str] = None
    rich_text_payload: Optional[bytes] = None
    is_pinned: bool = False
    created_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def check_fields_for_kind(self) -> "ClipboardItem":
        if self.kind in (ClipboardKind.TEXT, ClipboardKind.COLOR):
            if self.binary_payload is not None:
                raise ValueError(f"{self.kind.value} items carry no binary payload")
            if self.source_path is not None:
                raise ValueError(f"{self.kind.value} items carry no source path")
        if self.kind == ClipboardKind.IMAGE and self.binary_payload is None:
            raise ValueError("image items require a binary payload")
        if self.kind == ClipboardKind.FILE and self.source_path is None:
            raise ValueError("file items require a source path")
        if self.kind != ClipboardKind.TEXT and self.rich_text_payload is not None:
            raise ValueError("only text items carry rich text")
        return self


class IgnoredApp(BaseModel):
    model_config = ConfigDict(frozen=True)

    application_id: str
    display_name: str = ""
