import base64
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import redis
from pydantic import ValidationError

from clipshelf.config import RedisConfig
from clipshelf.database.base import PersistenceAdapter
from clipshelf.exceptions import PersistenceFailure
from clipshelf.models import ClipboardItem, ClipboardKind, IgnoredApp

logger = logging.getLogger(__name__)

# Key layout (``<prefix>`` defaults to ``clipshelf``):
#   <prefix>:history       list of item ids, head first
#   <prefix>:item:<id>     hash with one field per ClipboardItem attribute;
#                          optional attributes that are None are left out
#   <prefix>:ignored       hash application id -> display name
#   <prefix>:settings      hash of persisted settings
_BINARY_FIELDS = ("binaryPayload", "richTextPayload")


class RedisPersistence(PersistenceAdapter):

    def __init__(self, config: Optional[RedisConfig] = None,
                 client: Optional[redis.Redis] = None):
        self.config = config or RedisConfig.from_env()
        self.prefix = self.config.key_prefix
        self.client = client or redis.Redis(
            host=self.config.host,
            port=self.config.port,
            db=self.config.db,
            password=self.config.password,
            decode_responses=True,
        )

    def _key(self, *parts: str) -> str:
        return ":".join((self.prefix,) + parts)

    def ping(self) -> None:
        try:
            self.client.ping()
        except redis.RedisError as exc:
            raise PersistenceFailure(f"Redis unreachable: {exc}") from exc

    @staticmethod
    def _encode_item(item: ClipboardItem) -> Dict[str, str]:
        data = {
            "itemId": item.item_id,
            "kind": item.kind.value,
            "primaryText": item.primary_text,
            "isPinned": "1" if item.is_pinned else "0",
            "createdAt": item.created_at.isoformat(),
        }
        if item.binary_payload is not None:
            data["binaryPayload"] = base64.b64encode(item.binary_payload).decode("utf-8")
        if item.rich_text_payload is not None:
            data["richTextPayload"] = base64.b64encode(item.rich_text_payload).decode("utf-8")
        if item.source_path is not None:
            data["sourcePath"] = item.source_path
        return data

    @staticmethod
    def _decode_item(data: Dict[str, str]) -> ClipboardItem:
        decoded: Dict[str, Any] = {
            field: base64.b64decode(data[field]) if field in data else None
            for field in _BINARY_FIELDS
        }
        created_at = datetime.fromisoformat(data["createdAt"])
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return ClipboardItem(
            item_id=data["itemId"],
            kind=ClipboardKind(data["kind"]),
            primary_text=data["primaryText"],
            binary_payload=decoded["binaryPayload"],
            rich_text_payload=decoded["richTextPayload"],
            source_path=data.get("sourcePath"),
            is_pinned=data.get("isPinned") == "1",
            created_at=created_at,
        )

    def load_history(self) -> List[ClipboardItem]:
        try:
            item_ids = self.client.lrange(self._key("history"), 0, -1)
            records = [(item_id, self.client.hgetall(self._key("item", item_id)))
                       for item_id in item_ids]
        except redis.RedisError as exc:
            raise PersistenceFailure(f"Could not load history: {exc}") from exc

        items = []
        for item_id, data in records:
            if not data:
                logger.warning("History references missing item %s", item_id)
                continue
            try:
                items.append(self._decode_item(data))
            except (KeyError, ValueError, ValidationError) as exc:
                logger.warning("Skipping malformed history item %s: %s", item_id, exc)
        return items

    def save_history(self, items: Iterable[ClipboardItem]) -> None:
        items = list(items)
        history_key = self._key("history")
        try:
            old_ids = self.client.lrange(history_key, 0, -1)

            pipe = self.client.pipeline(transaction=True)
            stale_keys = [self._key("item", item_id) for item_id in old_ids]
            pipe.delete(history_key, *stale_keys)
            for item in items:
                pipe.hset(self._key("item", item.item_id), mapping=self._encode_item(item))
            if items:
                pipe.rpush(history_key, *[item.item_id for item in items])
            pipe.execute()
        except redis.RedisError as exc:
            raise PersistenceFailure(f"Could not save history: {exc}") from exc

    def load_ignore_list(self) -> List[IgnoredApp]:
        try:
            data = self.client.hgetall(self._key("ignored"))
        except redis.RedisError as exc:
            raise PersistenceFailure(f"Could not load ignore list: {exc}") from exc

        return [IgnoredApp(application_id=app_id, display_name=name)
                for app_id, name in sorted(data.items())]

    def save_ignore_list(self, apps: Iterable[IgnoredApp]) -> None:
        mapping = {app.application_id: app.display_name for app in apps}
        key = self._key("ignored")
        try:
            pipe = self.client.pipeline(transaction=True)
            pipe.delete(key)
            if mapping:
                pipe.hset(key, mapping=mapping)
            pipe.execute()
        except redis.RedisError as exc:
            raise PersistenceFailure(f"Could not save ignore list: {exc}") from exc

    def load_settings(self) -> Dict[str, str]:
        try:
            return dict(self.client.hgetall(self._key("settings")))
        except redis.RedisError as exc:
            raise PersistenceFailure(f"Could not load settings: {exc}") from exc

    def save_settings(self, values: Dict[str, str]) -> None:
        if not values:
            return
        try:
            self.client.hset(self._key("settings"), mapping=values)
        except redis.RedisError as exc:
            raise PersistenceFailure(f"Could not save settings: {exc}") from exc

    def close(self) -> None:
        self.client.close()
