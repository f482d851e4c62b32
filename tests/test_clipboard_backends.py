import struct
import subprocess

from clipshelf.clipboard.base import RawPayload
from clipshelf.clipboard.hdrop import DROPFILES_SIZE, pack_dropfiles
from clipshelf.clipboard.linux import LinuxClipboard


def scripted_reads(clipboard, monkeypatch, reads):
    queue = list(reads)
    monkeypatch.setattr(clipboard, "_read", lambda: queue.pop(0))


def test_failed_read_keeps_the_linux_token(monkeypatch):
    clipboard = LinuxClipboard()
    hello = RawPayload(text="hello")
    scripted_reads(clipboard, monkeypatch, [hello, None, hello])

    first = clipboard.change_token()

    assert clipboard.change_token() == first
    assert clipboard.change_token() == first
    assert clipboard.read_payload() == hello


def test_new_content_bumps_the_linux_token(monkeypatch):
    clipboard = LinuxClipboard()
    scripted_reads(clipboard, monkeypatch, [RawPayload(text="a"), RawPayload(text="b")])

    assert clipboard.change_token() < clipboard.change_token()


def test_timed_out_clipboard_tool_is_a_failed_read(monkeypatch):
    def stuck(command, **kwargs):
        raise subprocess.TimeoutExpired(command, kwargs.get("timeout"))

    monkeypatch.setenv("WAYLAND_DISPLAY", "wayland-0")
    monkeypatch.setattr("clipshelf.clipboard.linux.shutil.which", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr("clipshelf.clipboard.linux.subprocess.run", stuck)

    assert LinuxClipboard()._read() is None


def test_dropfiles_block_lists_paths_as_wide_strings():
    data = pack_dropfiles([r"C:\Users\me\report.pdf"])

    offset, x, y, non_client, wide = struct.unpack_from("<IiiII", data)
    assert (offset, x, y, non_client, wide) == (DROPFILES_SIZE, 0, 0, 0, 1)
    assert data[offset:].decode("utf-16-le") == "C:\\Users\\me\\report.pdf\0\0"
