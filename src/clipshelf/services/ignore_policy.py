import logging
import threading
from typing import AbstractSet, Dict, Optional, Tuple

from clipshelf.database.base import PersistenceAdapter
from clipshelf.exceptions import PersistenceFailure
from clipshelf.models import IgnoredApp
from clipshelf.utils.observable import Publisher

logger = logging.getLogger(__name__)

# macOS bundle ids, Windows executable names (lower-case) and Linux process names
BUILT_IN_IGNORED_APPS = frozenset({
    "com.1password.1password",
    "com.agilebits.onepassword7",
    "com.agilebits.onepassword-osx",
    "com.bitwarden.desktop",
    "com.lastpass.LastPass",
    "com.dashlane.dashlanephonefinal",
    "in.sinew.Enpass-Desktop",
    "org.keepassxc.keepassxc",
    "com.apple.keychainaccess",
    "com.apple.Passwords",
    "1password.exe",
    "bitwarden.exe",
    "keepass.exe",
    "keepassxc.exe",
    "enpass.exe",
    "dashlane.exe",
    "1password",
    "bitwarden",
    "keepassxc",
    "enpass",
    "seahorse",
})


def should_ignore(
    application_id: Optional[str],
    built_in_enabled: bool,
    custom_enabled: bool,
    built_in_set: AbstractSet[str],
    custom_set: AbstractSet[str],
) -> bool:
    if application_id is None:
        return False
    if built_in_enabled and application_id in built_in_set:
        return True
    return custom_enabled and application_id in custom_set


class IgnoreList:
    """User-managed ignore list plus the two enable switches."""

    def __init__(
        self,
        persistence: PersistenceAdapter,
        ignore_password_managers: bool = True,
        ignore_custom_apps: bool = True,
        built_in: AbstractSet[str] = BUILT_IN_IGNORED_APPS,
    ) -> None:
        self._persistence = persistence
        self._lock = threading.RLock()
        self._apps: Dict[str, IgnoredApp] = {}
        self._publisher: Publisher[Tuple[IgnoredApp, ...]] = Publisher()
        self.built_in = frozenset(built_in)
        self.ignore_password_managers = ignore_password_managers
        self.ignore_custom_apps = ignore_custom_apps

    def load(self) -> None:
        try:
            apps = self._persistence.load_ignore_list()
        except PersistenceFailure as exc:
            logger.error("Could not load ignore list: %s", exc)
            return

        with self._lock:
            self._apps = {app.application_id: app for app in apps}
        logger.info("Loaded %d ignored applications", len(apps))
        self._publisher.publish(self.apps)

    @property
    def apps(self) -> Tuple[IgnoredApp, ...]:
        with self._lock:
            return tuple(sorted(self._apps.values(), key=lambda app: app.application_id))

    def subscribe(self, callback):
        return self._publisher.subscribe(callback)

    def is_ignored(self, application_id: Optional[str]) -> bool:
        with self._lock:
            custom = frozenset(self._apps)
        return should_ignore(
            application_id,
            self.ignore_password_managers,
            self.ignore_custom_apps,
            self.built_in,
            custom,
        )

    def add(self, application_id: str, display_name: str = "") -> None:
        with self._lock:
            self._apps[application_id] = IgnoredApp(
                application_id=application_id,
                display_name=display_name or application_id,
            )
            self._changed()

    def remove(self, application_id: str) -> bool:
        with self._lock:
            if self._apps.pop(application_id, None) is None:
                return False
            self._changed()
            return True

    def _changed(self) -> None:
        apps = self.apps
        self._publisher.publish(apps)
        try:
            self._persistence.save_ignore_list(apps)
        except PersistenceFailure as exc:
            logger.error("Could not save ignore list: %s", exc)
