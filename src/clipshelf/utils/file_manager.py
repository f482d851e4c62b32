import io
import logging
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from clipshelf.exceptions import PayloadTooLarge

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE: Tuple[int, int] = (64, 64)


def read_file_bytes(path: Path, max_bytes: int) -> bytes:
    """Read ``path`` whole, refusing files larger than ``max_bytes``."""
    file_size = path.stat().st_size
    if file_size > max_bytes:
        raise PayloadTooLarge(file_size, max_bytes)
    return path.read_bytes()


def build_thumbnail(path: Path, max_bytes: int,
                    size: Tuple[int, int] = THUMBNAIL_SIZE) -> Optional[bytes]:
    """Return a PNG thumbnail of ``path`` or ``None`` when it is not an image."""
    try:
        if path.stat().st_size > max_bytes:
            logger.debug("Skipping thumbnail for oversized file %s", path)
            return None
        with Image.open(path) as image:
            image.thumbnail(size)
            if image.mode not in ("RGB", "RGBA", "L", "LA", "P"):
                image = image.convert("RGBA")
            output = io.BytesIO()
            image.save(output, format="PNG")
            return output.getvalue()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
        return None
