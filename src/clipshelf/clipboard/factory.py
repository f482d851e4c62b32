import platform
from typing import Type

from clipshelf.clipboard.base import ClipboardResource


def get_clipboard_class() -> Type[ClipboardResource]:
    system = platform.system()

    if system == "Windows":
        from clipshelf.clipboard.windows import WindowsClipboard
        return WindowsClipboard
    elif system == "Linux":
        from clipshelf.clipboard.linux import LinuxClipboard
        return LinuxClipboard
    elif system == "Darwin":
        from clipshelf.clipboard.macos import MacOSClipboard
        return MacOSClipboard
    else:
        raise NotImplementedError(f"Platform '{system}' is not supported")


def get_clipboard() -> ClipboardResource:
    clipboard_class = get_clipboard_class()
    return clipboard_class()
