from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Dict, Optional, Tuple
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, PositiveInt

DEFAULT_HISTORY_LIMIT = 20
DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_MAX_PAYLOAD_BYTES = 50 * 1024 * 1024


def _to_bool(value: Optional[str], default: bool = True) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """User-facing configuration surface of the engine."""
    model_config = ConfigDict(validate_assignment=True)

    history_limit: PositiveInt = DEFAULT_HISTORY_LIMIT
    ignore_password_managers: bool = True
    ignore_custom_apps: bool = True
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    max_payload_bytes: PositiveInt = DEFAULT_MAX_PAYLOAD_BYTES
    clear_on_exit: bool = False

    # keys stored by the persistence adapter; the rest come from env/CLI
    PERSISTED_FIELDS: ClassVar[Tuple[str, ...]] = ("history_limit", "ignore_password_managers", "ignore_custom_apps")

    @classmethod
    def from_env(cls, *, env_path: Optional[Path] = None) -> "Settings":
        load_dotenv(env_path)

        values: Dict[str, Any] = {}
        limit = os.getenv("CLIPSHELF_HISTORY_LIMIT")
        if limit:
            values["history_limit"] = int(limit)
        interval = os.getenv("CLIPSHELF_POLL_INTERVAL")
        if interval:
            values["poll_interval"] = float(interval)
        max_bytes = os.getenv("CLIPSHELF_MAX_PAYLOAD_BYTES")
        if max_bytes:
            values["max_payload_bytes"] = int(max_bytes)

        values["ignore_password_managers"] = _to_bool(
            os.getenv("CLIPSHELF_IGNORE_PASSWORD_MANAGERS"), default=True)
        values["ignore_custom_apps"] = _to_bool(
            os.getenv("CLIPSHELF_IGNORE_CUSTOM_APPS"), default=True)
        values["clear_on_exit"] = _to_bool(
            os.getenv("CLIPSHELF_CLEAR_ON_EXIT"), default=False)

        return cls(**values)

    def persisted(self) -> Dict[str, str]:
        return {name: str(getattr(self, name)) for name in self.PERSISTED_FIELDS}

    def apply_persisted(self, stored: Dict[str, str]) -> None:
        if "history_limit" in stored:
            self.history_limit = int(stored["history_limit"])
        for name in ("ignore_password_managers", "ignore_custom_apps"):
            if name in stored:
                setattr(self, name, _to_bool(stored[name]))


@dataclass(frozen=True)
class RedisConfig:
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    key_prefix: str = "clipshelf"

    @classmethod
    def from_env(cls, *, env_path: Optional[Path] = None) -> "RedisConfig":
        load_dotenv(env_path)

        prefix = os.getenv("CLIPSHELF_KEY_PREFIX", cls.key_prefix)

        uri = os.getenv("REDIS_URI")
        if uri:
            return cls.from_uri(uri, key_prefix=prefix)

        host = os.getenv("REDIS_HOST", cls.host)
        port_raw = os.getenv("REDIS_PORT")
        db_raw = os.getenv("REDIS_DB")
        password = os.getenv("REDIS_PASSWORD") or None

        port = int(port_raw) if port_raw else cls.port
        db = int(db_raw) if db_raw else cls.db

        return cls(host=host, port=port, db=db, password=password, key_prefix=prefix)

    @classmethod
    def from_uri(cls, uri: str, *, key_prefix: str = "clipshelf") -> "RedisConfig":
        parsed = urlparse(uri)
        if parsed.scheme not in {"redis", "rediss"}:
            raise ValueError(
                f"Unsupported Redis URI scheme: {parsed.scheme!r}")

        host = parsed.hostname or cls.host
        port = parsed.port or cls.port
        password = parsed.password or None
        db_fragment = parsed.path.lstrip("/")
        db = int(db_fragment) if db_fragment else cls.db

        return cls(host=host, port=port, db=db, password=password, key_prefix=key_prefix)
