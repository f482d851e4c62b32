import pytest

from clipshelf.config import Settings
from clipshelf.database import InMemoryPersistence
from clipshelf.main import ClipShelfApp, parse_args
from clipshelf.models import ClipboardKind

from conftest import contents, make_item


def make_app(fake_clipboard, persistence=None, **settings):
    return ClipShelfApp(
        settings=Settings(**settings),
        persistence=persistence or InMemoryPersistence(),
        clipboard=fake_clipboard,
    )


def test_copy_back_does_not_create_a_duplicate(fake_clipboard):
    app = make_app(fake_clipboard)
    fake_clipboard.copy(text="alpha", rich_text=b"{\\rtf1 alpha}")
    app.poller.tick()
    fake_clipboard.copy(text="beta")
    app.poller.tick()
    before = [item.item_id for item in app.store.history]
    alpha = app.store.history[1]

    assert app.copy_to_clipboard(alpha.item_id) is True
    app.poller.tick()

    assert [item.item_id for item in app.store.history] == before
    assert fake_clipboard.writes[-1] == (ClipboardKind.TEXT, "alpha", b"{\\rtf1 alpha}")


def test_copy_as_plain_text(fake_clipboard):
    app = make_app(fake_clipboard)
    fake_clipboard.copy(image_bytes=b"\x89PNG data")
    app.poller.tick()
    image = app.store.history[0]

    app.copy_to_clipboard(image.item_id, plain_text=True)

    assert fake_clipboard.writes[-1] == (ClipboardKind.TEXT, "Image", None)
    assert len(app.store.history) == 1


def test_copy_unknown_item_fails(fake_clipboard):
    app = make_app(fake_clipboard)

    assert app.copy_to_clipboard("i_missing") is False
    assert fake_clipboard.writes == []


def test_history_limit_is_applied_and_persisted(fake_clipboard):
    persistence = InMemoryPersistence()
    app = make_app(fake_clipboard, persistence)
    for value in "abcd":
        fake_clipboard.copy(text=value)
        app.poller.tick()

    app.set_history_limit(2)

    assert contents(app.store) == ["d", "c"]
    assert persistence.load_settings()["history_limit"] == "2"

    restarted = make_app(fake_clipboard, persistence)
    assert restarted.store.history_limit == 2
    assert contents(restarted.store) == ["d", "c"]


def test_ignore_switch_is_persisted(fake_clipboard):
    persistence = InMemoryPersistence()
    app = make_app(fake_clipboard, persistence)

    app.set_ignore_password_managers(False)

    assert app.ignore_list.ignore_password_managers is False
    assert make_app(fake_clipboard, persistence).settings.ignore_password_managers is False


def test_clear_on_exit_keeps_pinned_items(fake_clipboard):
    persistence = InMemoryPersistence()
    persistence.save_history([make_item("keep", 1, pinned=True), make_item("drop", 0)])
    app = make_app(fake_clipboard, persistence, clear_on_exit=True, poll_interval=0.01)

    app.start()
    app.stop()

    assert [item.primary_text for item in persistence.load_history()] == ["keep"]


def test_parse_args_defaults():
    args = parse_args([])

    assert args.poll_interval is None
    assert args.history_limit is None
    assert not args.no_redis
    assert not args.clear_on_exit


@pytest.mark.parametrize("value", ["0", "-3", "many"])
def test_parse_args_rejects_bad_history_limit(value):
    with pytest.raises(SystemExit):
        parse_args(["-l", value])
