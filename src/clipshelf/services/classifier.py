"""Classification of raw clipboard payloads into history items.

The first representation that applies wins: file reference, then image
bytes, then plain text. Nothing is ever combined across representations.
"""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from clipshelf.clipboard.base import RawPayload
from clipshelf.config import DEFAULT_MAX_PAYLOAD_BYTES
from clipshelf.exceptions import PayloadTooLarge
from clipshelf.models import ClipboardItem, ClipboardKind
from clipshelf.utils.file_manager import build_thumbnail, read_file_bytes

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "tiff", "heic"})
IMAGE_LABEL = "Image"

_COLOR_PATTERN = re.compile(r"^#?([0-9A-Fa-f]{6})$")


def classify(payload: RawPayload,
             max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES) -> Optional[ClipboardItem]:
    """Build a :class:`ClipboardItem` from ``payload`` or return ``None``.

    Raises:
        PayloadTooLarge: image data (inline or read from a file) exceeds
            ``max_payload_bytes``.
    """
    created_at = datetime.now(timezone.utc)

    if payload.file_paths:
        return _classify_file(Path(payload.file_paths[0]), max_payload_bytes, created_at)

    if payload.image_bytes:
        if len(payload.image_bytes) > max_payload_bytes:
            raise PayloadTooLarge(len(payload.image_bytes), max_payload_bytes)
        return ClipboardItem(
            kind=ClipboardKind.IMAGE,
            primary_text=IMAGE_LABEL,
            binary_payload=payload.image_bytes,
            created_at=created_at,
        )

    if payload.text is not None:
        return _classify_text(payload.text, payload.rich_text, created_at)

    return None


def _classify_file(path: Path, max_payload_bytes: int,
                   created_at: datetime) -> Optional[ClipboardItem]:
    extension = path.suffix.lstrip(".").lower()

    if extension in IMAGE_EXTENSIONS:
        try:
            data = read_file_bytes(path, max_payload_bytes)
        except OSError as exc:
            logger.warning("Could not read copied image %s: %s", path, exc)
            return None
        return ClipboardItem(
            kind=ClipboardKind.IMAGE,
            primary_text=path.name,
            binary_payload=data,
            source_path=str(path),
            created_at=created_at,
        )

    return ClipboardItem(
        kind=ClipboardKind.FILE,
        primary_text=path.name or str(path),
        binary_payload=build_thumbnail(path, max_payload_bytes),
        source_path=str(path),
        created_at=created_at,
    )


def _classify_text(text: str, rich_text: Optional[bytes],
                   created_at: datetime) -> Optional[ClipboardItem]:
    trimmed = text.strip()
    if not trimmed:
        return None

    match = _COLOR_PATTERN.match(trimmed)
    if match:
        return ClipboardItem(
            kind=ClipboardKind.COLOR,
            primary_text=f"#{match.group(1).upper()}",
            created_at=created_at,
        )

    return ClipboardItem(
        kind=ClipboardKind.TEXT,
        primary_text=trimmed,
        rich_text_payload=rich_text or None,
        created_at=created_at,
    )
