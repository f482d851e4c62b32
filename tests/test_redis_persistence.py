import pytest
import redis

from clipshelf.config import RedisConfig
from clipshelf.database import RedisPersistence
from clipshelf.exceptions import PersistenceFailure
from clipshelf.models import ClipboardKind, IgnoredApp

from conftest import make_item


def make_history():
    return [
        make_item("pinned note", 5, pinned=True),
        make_item("hello", 4, rich_text_payload=b"{\\rtf1\\b hello}"),
        make_item("#1A2B3C", 3, kind=ClipboardKind.COLOR),
        make_item("Image", 2, kind=ClipboardKind.IMAGE, binary_payload=bytes(range(256))),
        make_item("shot.png", 1, kind=ClipboardKind.IMAGE, binary_payload=b"\x89PNG\x00\xff",
                  source_path="/home/me/shot.png"),
        make_item("report.pdf", 0, kind=ClipboardKind.FILE, source_path="/home/me/report.pdf"),
        make_item("thumb.bmp", 0, kind=ClipboardKind.FILE, source_path="/home/me/thumb.bmp",
                  binary_payload=b"\x89PNG thumb"),
    ]


@pytest.fixture
def adapter(fake_redis):
    return RedisPersistence(RedisConfig(), client=fake_redis)


def test_history_round_trip_is_lossless(adapter):
    items = make_history()

    adapter.save_history(items)

    assert adapter.load_history() == items


def test_absent_fields_are_left_out_of_the_hash(adapter, fake_redis):
    item = make_item("plain")

    adapter.save_history([item])

    stored = fake_redis.hashes[f"clipshelf:item:{item.item_id}"]
    assert "binaryPayload" not in stored
    assert "sourcePath" not in stored
    assert "richTextPayload" not in stored


def test_saving_replaces_previous_history(adapter, fake_redis):
    old = make_item("old")
    new = make_item("new", 1)
    adapter.save_history([old])

    adapter.save_history([new])

    assert adapter.load_history() == [new]
    assert f"clipshelf:item:{old.item_id}" not in fake_redis.hashes


def test_empty_history_round_trip(adapter):
    adapter.save_history([make_item("gone")])
    adapter.save_history([])

    assert adapter.load_history() == []


def test_malformed_entries_are_skipped(adapter, fake_redis):
    good = make_item("good")
    adapter.save_history([good])
    fake_redis.rpush("clipshelf:history", "i_broken", "i_missing")
    fake_redis.hset("clipshelf:item:i_broken", mapping={"itemId": "i_broken", "kind": "sound"})

    assert adapter.load_history() == [good]


def test_ignore_list_round_trip(adapter):
    apps = [
        IgnoredApp(application_id="org.example.secrets", display_name="Secrets"),
        IgnoredApp(application_id="org.example.vault", display_name="Vault"),
    ]

    adapter.save_ignore_list(apps)
    assert adapter.load_ignore_list() == apps

    adapter.save_ignore_list([])
    assert adapter.load_ignore_list() == []


def test_settings_round_trip(adapter):
    adapter.save_settings({"history_limit": "50", "ignore_custom_apps": "False"})

    assert adapter.load_settings() == {"history_limit": "50", "ignore_custom_apps": "False"}


def test_key_prefix_is_configurable(fake_redis):
    adapter = RedisPersistence(RedisConfig(key_prefix="test"), client=fake_redis)

    adapter.save_history([make_item("a")])

    assert "test:history" in fake_redis.lists


class BrokenRedis:

    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise redis.ConnectionError("connection refused")
        return fail


@pytest.mark.parametrize("call", [
    lambda adapter: adapter.load_history(),
    lambda adapter: adapter.save_history([make_item("a")]),
    lambda adapter: adapter.load_ignore_list(),
    lambda adapter: adapter.save_ignore_list([]),
    lambda adapter: adapter.load_settings(),
    lambda adapter: adapter.save_settings({"history_limit": "3"}),
    lambda adapter: adapter.ping(),
])
def test_redis_errors_become_persistence_failures(call):
    adapter = RedisPersistence(RedisConfig(), client=BrokenRedis())

    with pytest.raises(PersistenceFailure):
        call(adapter)


def test_config_from_uri():
    config = RedisConfig.from_uri("redis://:secret@cache.local:6380/2")

    assert (config.host, config.port, config.db, config.password) == ("cache.local", 6380, 2, "secret")


def test_config_rejects_unknown_scheme():
    with pytest.raises(ValueError):
        RedisConfig.from_uri("http://cache.local")
