import hashlib
import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Union
from urllib.parse import unquote, urlparse

from clipshelf.clipboard.base import ClipboardResource, RawPayload
from clipshelf.models import ClipboardKind

logger = logging.getLogger(__name__)


class LinuxClipboard(ClipboardResource):
    """Clipboard access through ``wl-clipboard`` or ``xclip``.

    Neither tool exposes a change counter, so the token is derived locally:
    every call reads the clipboard, hashes all representations and bumps the
    counter when the digest differs from the previous one.
    """
    _FILE_TARGETS = {"x-special/gnome-copied-files", "text/uri-list"}
    _IMAGE_TARGETS = (
        "image/png",
        "image/jpeg",
        "image/jpg",
        "image/bmp",
        "image/webp",
        "image/tiff",
    )
    _RICH_TARGETS = ("text/rtf", "text/richtext", "text/html")
    _TEXT_TARGETS = (
        "text/plain;charset=utf-8",
        "utf8_string",
        "text/plain",
        "string",
    )

    def __init__(self) -> None:
        self._counter = 0
        self._last_digest: Optional[str] = None
        self._cached: RawPayload = RawPayload()

    def change_token(self) -> int:
        payload = self._read()
        if payload is None:
            # a failed read says nothing about the contents; keep the old token
            return self._counter

        digest = self._digest(payload)
        if digest != self._last_digest:
            self._last_digest = digest
            self._counter += 1
        self._cached = payload
        return self._counter

    def read_payload(self) -> RawPayload:
        return self._cached

    def _read(self) -> Optional[RawPayload]:
        """Read every representation, or ``None`` when the clipboard could not be read."""
        strategies = (
            self._from_wayland,
            self._from_xclip,
        )

        for strategy in strategies:
            try:
                result = strategy()
            except subprocess.TimeoutExpired:
                logger.debug("Clipboard strategy %s timed out", strategy.__name__)
                return None
            except OSError:
                logger.debug("Clipboard strategy %s failed", strategy.__name__, exc_info=True)
                result = None
            if result is not None:
                return result

        return None

    def _from_wayland(self) -> Optional[RawPayload]:
        if not os.environ.get("WAYLAND_DISPLAY") or not shutil.which("wl-paste"):
            return None

        types = self._parse_type_list(
            self._run_command(["wl-paste", "--list-types"], timeout=1.5, strict=True)
        )

        def reader(target: str) -> Optional[bytes]:
            command = ["wl-paste", "--type", target]
            if target.lower().startswith("text/"):
                command.append("--no-newline")
            return self._run_command(command, timeout=1.5, strict=True)

        return self._extract_from_types(types, reader)

    def _from_xclip(self) -> Optional[RawPayload]:
        if not shutil.which("xclip"):
            return None

        types = self._parse_type_list(
            self._run_command(
                ["xclip", "-selection", "clipboard", "-t", "TARGETS", "-o"],
                timeout=1.5,
                strict=True,
            )
        )

        def reader(target: str) -> Optional[bytes]:
            return self._run_command(
                ["xclip", "-selection", "clipboard", "-t", target, "-o"],
                timeout=1.5,
                strict=True,
            )

        return self._extract_from_types(types, reader)

    def _extract_from_types(
        self,
        types: List[str],
        reader: Callable[[str], Optional[bytes]],
    ) -> RawPayload:
        available = {target.lower(): target for target in types}

        file_paths: List[str] = []
        for target_lower, target in available.items():
            if target_lower in self._FILE_TARGETS:
                data = reader(target)
                if data:
                    file_paths = [str(path) for path in self._parse_paths(data)]
                    break

        image_bytes = self._read_first(available, self._IMAGE_TARGETS, reader)
        rich_text = self._read_first(available, self._RICH_TARGETS, reader)
        text_bytes = self._read_first(available, self._TEXT_TARGETS, reader)
        text = text_bytes.decode("utf-8", errors="ignore") if text_bytes else None

        return RawPayload(
            file_paths=file_paths,
            image_bytes=image_bytes,
            rich_text=rich_text,
            text=text,
        )

    @staticmethod
    def _read_first(available, candidates, reader) -> Optional[bytes]:
        for candidate in candidates:
            if candidate in available:
                data = reader(available[candidate])
                if data:
                    return data
        return None

    @staticmethod
    def _digest(payload: RawPayload) -> str:
        md5 = hashlib.md5()
        md5.update("\n".join(payload.file_paths).encode("utf-8"))
        md5.update(b"\x00")
        md5.update(payload.image_bytes or b"")
        md5.update(b"\x00")
        md5.update((payload.text or "").encode("utf-8"))
        return md5.hexdigest()

    def _parse_type_list(self, data: Optional[bytes]) -> List[str]:
        if not data:
            return []
        text = data.decode("utf-8", errors="ignore")
        return [line.strip() for line in text.splitlines() if line.strip()]

    def _parse_paths(self, data: bytes) -> List[Path]:
        text = data.decode("utf-8", errors="ignore")
        lines = [line.strip() for line in text.replace(
            "\r", "\n").split("\n") if line.strip()]
        if lines and lines[0].lower() in {"copy", "cut"}:
            lines = lines[1:]

        paths: List[Path] = []
        for entry in lines:
            if entry.startswith("#"):
                continue
            parsed = urlparse(entry)
            if parsed.scheme == "file":
                candidate = Path(unquote(parsed.path))
            else:
                candidate = Path(unquote(entry))

            paths.append(candidate)

        return paths

    def _run_command(self, command: List[str], timeout: float,
                     strict: bool = False) -> Optional[bytes]:
        """Run ``command`` and return its stdout, ``None`` when it fails.

        With ``strict`` a timeout propagates so clipboard reads can tell a
        stuck tool apart from an empty selection.
        """
        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True,
                timeout=timeout,
            )
            return result.stdout
        except subprocess.TimeoutExpired:
            if strict:
                raise
            return None
        except (subprocess.CalledProcessError, FileNotFoundError):
            return None

    def write_payload(
        self,
        kind: ClipboardKind,
        content: Union[str, bytes],
        rich_text: Optional[bytes] = None,
    ) -> bool:
        if kind in (ClipboardKind.TEXT, ClipboardKind.COLOR):
            mime = "text/plain;charset=utf-8"
            data = content.encode("utf-8") if isinstance(content, str) else content
        elif kind == ClipboardKind.IMAGE:
            mime = "image/png"
            data = content if isinstance(content, bytes) else Path(content).read_bytes()
        elif kind == ClipboardKind.FILE:
            mime = "text/uri-list"
            data = Path(str(content)).as_uri().encode("utf-8")
        else:
            return False

        if shutil.which("wl-copy") and os.environ.get("WAYLAND_DISPLAY"):
            command = ["wl-copy", "--type", mime]
        elif shutil.which("xclip"):
            command = ["xclip", "-selection", "clipboard", "-t", mime]
        else:
            logger.warning("Neither wl-copy nor xclip is available")
            return False

        # xclip keeps running to own the selection, so stdout must not be piped
        try:
            subprocess.run(
                command,
                input=data,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=True,
                timeout=2.0,
            )
            return True
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError):
            logger.warning("Writing %s to clipboard failed", kind.value)
            return False

    def foreground_application_id(self) -> Optional[str]:
        if not shutil.which("xdotool"):
            return None

        output = self._run_command(
            ["xdotool", "getactivewindow", "getwindowpid"], timeout=1.0)
        if not output:
            return None

        pid = output.decode("utf-8", errors="ignore").strip()
        if not pid.isdigit():
            return None

        try:
            return Path(f"/proc/{pid}/comm").read_text(encoding="utf-8").strip() or None
        except OSError:
            return None
