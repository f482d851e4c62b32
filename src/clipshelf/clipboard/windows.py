import io
import logging
import os
import time
from typing import List, Optional, Union

import pywintypes
import win32api
import win32clipboard as wc
import win32con
import win32gui
import win32process
from PIL import Image, ImageGrab

from clipshelf.clipboard.base import ClipboardResource, RawPayload
from clipshelf.clipboard.hdrop import pack_dropfiles
from clipshelf.models import ClipboardKind

logger = logging.getLogger(__name__)

PROCESS_QUERY_LIMITED_INFORMATION = 0x1000


class WindowsClipboard(ClipboardResource):

    def __init__(self) -> None:
        self._rtf_format = wc.RegisterClipboardFormat("Rich Text Format")

    def change_token(self) -> int:
        return wc.GetClipboardSequenceNumber()

    def _open(self) -> bool:
        for _ in range(3):
            try:
                wc.OpenClipboard()
                return True
            except Exception:
                time.sleep(0.05)
        return False

    def read_payload(self) -> RawPayload:
        file_paths: List[str] = []
        image_bytes = self._from_imagegrab()
        rich_text: Optional[bytes] = None
        text: Optional[str] = None

        if not self._open():
            logger.debug("Clipboard is locked by another process")
            return RawPayload(image_bytes=image_bytes)

        try:
            if wc.IsClipboardFormatAvailable(win32con.CF_HDROP):
                files = wc.GetClipboardData(win32con.CF_HDROP)
                if isinstance(files, str):
                    files = [files]
                file_paths = [os.path.normpath(path) for path in files or []]

            if wc.IsClipboardFormatAvailable(self._rtf_format):
                data = wc.GetClipboardData(self._rtf_format)
                rich_text = data if isinstance(data, bytes) else str(data).encode("utf-8")

            if wc.IsClipboardFormatAvailable(wc.CF_UNICODETEXT):
                text = wc.GetClipboardData(wc.CF_UNICODETEXT)
        finally:
            try:
                wc.CloseClipboard()
            except Exception:
                pass

        return RawPayload(
            file_paths=file_paths,
            image_bytes=image_bytes,
            rich_text=rich_text,
            text=text,
        )

    def _from_imagegrab(self) -> Optional[bytes]:
        try:
            clipboard_data = ImageGrab.grabclipboard()
        except OSError:
            return None

        # file drops come back as a list of paths; CF_HDROP handles those
        if clipboard_data is None or isinstance(clipboard_data, (list, tuple)):
            return None

        output = io.BytesIO()
        clipboard_data.save(output, format="PNG")
        return output.getvalue()

    def write_payload(
        self,
        kind: ClipboardKind,
        content: Union[str, bytes],
        rich_text: Optional[bytes] = None,
    ) -> bool:
        if not self._open():
            return False

        try:
            wc.EmptyClipboard()

            if kind in (ClipboardKind.TEXT, ClipboardKind.COLOR):
                text = content.decode("utf-8", errors="ignore") if isinstance(content, bytes) else content
                wc.SetClipboardData(wc.CF_UNICODETEXT, text)
                if rich_text:
                    wc.SetClipboardData(self._rtf_format, rich_text)
                return True

            elif kind == ClipboardKind.IMAGE:
                image = Image.open(io.BytesIO(content))
                if image.mode == "RGBA":
                    background = Image.new("RGB", image.size, (255, 255, 255))
                    background.paste(image, mask=image.split()[3])
                    image = background
                elif image.mode != "RGB":
                    image = image.convert("RGB")

                output = io.BytesIO()
                image.save(output, "BMP")
                bmp_data = output.getvalue()
                # strip the 14-byte BITMAPFILEHEADER to get a DIB
                wc.SetClipboardData(win32con.CF_DIB, bmp_data[14:])
                return True

            elif kind == ClipboardKind.FILE:
                wc.SetClipboardData(win32con.CF_HDROP, pack_dropfiles([str(content)]))
                return True

            return False
        except Exception:
            logger.exception("Writing %s to clipboard failed", kind.value)
            return False
        finally:
            try:
                wc.CloseClipboard()
            except Exception:
                pass

    def foreground_application_id(self) -> Optional[str]:
        hwnd = win32gui.GetForegroundWindow()
        if not hwnd:
            return None

        try:
            _, pid = win32process.GetWindowThreadProcessId(hwnd)
            handle = win32api.OpenProcess(PROCESS_QUERY_LIMITED_INFORMATION, False, pid)
        except pywintypes.error as exc:
            # elevated or protected processes refuse the query
            logger.debug("Cannot open foreground process: %s", exc)
            return None

        try:
            exe_path = win32process.GetModuleFileNameEx(handle, 0)
        except pywintypes.error as exc:
            logger.debug("Cannot read foreground executable: %s", exc)
            return None
        finally:
            win32api.CloseHandle(handle)

        return os.path.basename(exe_path).lower() or None
