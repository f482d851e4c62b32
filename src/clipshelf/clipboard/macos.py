import logging
from typing import List, Optional, Union

try:
    from AppKit import (NSPasteboard, NSPasteboardTypeFileURL, NSPasteboardTypePNG,
                        NSPasteboardTypeRTF, NSPasteboardTypeString, NSPasteboardTypeTIFF,
                        NSWorkspace)
    from Foundation import NSURL, NSData
    HAS_APPKIT = True
except ImportError:
    HAS_APPKIT = False

from clipshelf.clipboard.base import ClipboardResource, RawPayload
from clipshelf.exceptions import ClipboardUnavailable
from clipshelf.models import ClipboardKind

logger = logging.getLogger(__name__)


class MacOSClipboard(ClipboardResource):
    """``NSPasteboard`` access; ``changeCount`` serves as the change token."""

    def __init__(self) -> None:
        if not HAS_APPKIT:
            raise ClipboardUnavailable(
                "pyobjc-framework-Cocoa is required for clipboard access on macOS")
        self._pasteboard = NSPasteboard.generalPasteboard()

    def change_token(self) -> int:
        return int(self._pasteboard.changeCount())

    def read_payload(self) -> RawPayload:
        types = self._pasteboard.types() or []

        file_paths: List[str] = []
        if NSPasteboardTypeFileURL in types:
            urls = self._pasteboard.readObjectsForClasses_options_([NSURL], None) or []
            file_paths = [str(url.path()) for url in urls if url.isFileURL()]

        image_bytes: Optional[bytes] = None
        for pb_type in (NSPasteboardTypePNG, NSPasteboardTypeTIFF):
            if pb_type in types:
                data = self._pasteboard.dataForType_(pb_type)
                if data:
                    image_bytes = bytes(data)
                    break

        rich_text: Optional[bytes] = None
        if NSPasteboardTypeRTF in types:
            data = self._pasteboard.dataForType_(NSPasteboardTypeRTF)
            if data:
                rich_text = bytes(data)

        text = None
        if NSPasteboardTypeString in types:
            text = self._pasteboard.stringForType_(NSPasteboardTypeString)

        return RawPayload(
            file_paths=file_paths,
            image_bytes=image_bytes,
            rich_text=rich_text,
            text=str(text) if text is not None else None,
        )

    def write_payload(
        self,
        kind: ClipboardKind,
        content: Union[str, bytes],
        rich_text: Optional[bytes] = None,
    ) -> bool:
        self._pasteboard.clearContents()

        if kind in (ClipboardKind.TEXT, ClipboardKind.COLOR):
            text = content.decode("utf-8", errors="ignore") if isinstance(content, bytes) else content
            if rich_text:
                rtf = NSData.dataWithBytes_length_(rich_text, len(rich_text))
                self._pasteboard.setData_forType_(rtf, NSPasteboardTypeRTF)
            return bool(self._pasteboard.setString_forType_(text, NSPasteboardTypeString))

        elif kind == ClipboardKind.IMAGE:
            ns_data = NSData.dataWithBytes_length_(content, len(content))
            pb_type = NSPasteboardTypeTIFF if content[:4] in (b"II*\x00", b"MM\x00*") else NSPasteboardTypePNG
            return bool(self._pasteboard.setData_forType_(ns_data, pb_type))

        elif kind == ClipboardKind.FILE:
            file_url = NSURL.fileURLWithPath_(str(content))
            return bool(self._pasteboard.writeObjects_([file_url]))

        return False

    def foreground_application_id(self) -> Optional[str]:
        app = NSWorkspace.sharedWorkspace().frontmostApplication()
        if app is None:
            return None
        bundle_id = app.bundleIdentifier()
        return str(bundle_id) if bundle_id else None
