import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest

# ensure src is importable without an install
REPO_ROOT = Path(__file__).resolve().parent.parent
SRC = REPO_ROOT / "src"
sys.path.insert(0, str(SRC))

from clipshelf.clipboard.base import ClipboardResource, RawPayload  # noqa: E402
from clipshelf.database import InMemoryPersistence  # noqa: E402
from clipshelf.models import ClipboardItem, ClipboardKind  # noqa: E402
from clipshelf.services import HistoryStore, IgnoreList  # noqa: E402

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClipboard(ClipboardResource):
    """In-memory clipboard whose token bumps on every copy, like a real pasteboard."""

    def __init__(self) -> None:
        self.token = 0
        self.payload = RawPayload()
        self.focused: Optional[str] = None
        self.writes: List[tuple] = []

    def copy(self, **representations) -> None:
        self.payload = RawPayload(**representations)
        self.token += 1

    def change_token(self) -> int:
        return self.token

    def read_payload(self) -> RawPayload:
        return self.payload

    def write_payload(self, kind: ClipboardKind, content: Union[str, bytes],
                      rich_text: Optional[bytes] = None) -> bool:
        self.writes.append((kind, content, rich_text))
        if kind in (ClipboardKind.TEXT, ClipboardKind.COLOR):
            self.copy(text=content, rich_text=rich_text)
        elif kind == ClipboardKind.IMAGE:
            self.copy(image_bytes=content)
        else:
            self.copy(file_paths=[content])
        return True

    def foreground_application_id(self) -> Optional[str]:
        return self.focused


class FakePipeline:

    def __init__(self, client: "FakeRedis") -> None:
        self._client = client
        self._commands: List[tuple] = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self._commands.append((name, args, kwargs))
            return self
        return queue

    def execute(self) -> list:
        return [getattr(self._client, name)(*args, **kwargs)
                for name, args, kwargs in self._commands]


class FakeRedis:
    """Just enough of ``redis.Redis(decode_responses=True)`` for the adapter."""

    def __init__(self) -> None:
        self.hashes: Dict[str, Dict[str, str]] = {}
        self.lists: Dict[str, List[str]] = {}
        self.closed = False

    def ping(self) -> bool:
        return True

    def hset(self, key: str, mapping: Dict[str, str]) -> int:
        self.hashes.setdefault(key, {}).update({k: str(v) for k, v in mapping.items()})
        return len(mapping)

    def hgetall(self, key: str) -> Dict[str, str]:
        return dict(self.hashes.get(key, {}))

    def rpush(self, key: str, *values: str) -> int:
        self.lists.setdefault(key, []).extend(values)
        return len(self.lists[key])

    def lrange(self, key: str, start: int, end: int) -> List[str]:
        values = self.lists.get(key, [])
        return list(values[start:] if end == -1 else values[start:end + 1])

    def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            removed += int(self.hashes.pop(key, None) is not None)
            removed += int(self.lists.pop(key, None) is not None)
        return removed

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    def close(self) -> None:
        self.closed = True


def make_item(text: str, seconds: int = 0, *, kind: ClipboardKind = ClipboardKind.TEXT,
              pinned: bool = False, **fields) -> ClipboardItem:
    return ClipboardItem(
        kind=kind,
        primary_text=text,
        created_at=BASE_TIME + timedelta(seconds=seconds),
        is_pinned=pinned,
        **fields,
    )


def contents(store: HistoryStore) -> List[str]:
    return [item.primary_text for item in store.history]


@pytest.fixture
def persistence() -> InMemoryPersistence:
    return InMemoryPersistence()


@pytest.fixture
def store(persistence) -> HistoryStore:
    return HistoryStore(persistence, history_limit=3)


@pytest.fixture
def fake_clipboard() -> FakeClipboard:
    return FakeClipboard()


@pytest.fixture
def ignore_list(persistence) -> IgnoreList:
    return IgnoreList(persistence)


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()
