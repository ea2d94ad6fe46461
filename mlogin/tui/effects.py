"""Run browser effects against the real scanners and actions."""

import logging

from mlogin.actions import launchd
from mlogin.actions.login import remove_login_item
from mlogin.config import Config
from mlogin.errors import MloginError
from mlogin.models import BackgroundItem, LoginItem, SystemExtensionItem
from mlogin.scanners.background import list_background_items
from mlogin.scanners.extensions import list_system_extensions
from mlogin.scanners.login import list_login_items
from mlogin.tui.state import (
    ActionDone,
    BackgroundLoaded,
    DeleteBackground,
    Effect,
    Event,
    ExtensionsLoaded,
    Load,
    LoginLoaded,
    RemoveLogin,
    Tab,
    ToggleBackground,
)
from mlogin.util.shell import Runner, make_runner

logger = logging.getLogger(__name__)


class Backend:
    """Operations the browser drives. Tests substitute a fake with the same methods."""

    def __init__(self, config: Config | None = None, runner: Runner | None = None):
        self.config = config or Config()
        self.runner = runner or make_runner(self.config.command_timeout)

    def list_login(self) -> list[LoginItem]:
        return list_login_items(runner=self.runner, timeout=self.config.osascript_timeout)

    def list_background(self) -> tuple[list[BackgroundItem], list[str]]:
        return list_background_items("all", runner=self.runner)

    def list_extensions(self) -> list[SystemExtensionItem]:
        return list_system_extensions(runner=self.runner)

    def remove_login(self, item: LoginItem) -> None:
        # Match by path; fall back to the name for items without a path
        if item.path:
            remove_login_item(path=item.path, runner=self.runner, timeout=self.config.osascript_timeout)
        else:
            remove_login_item(name=item.name, runner=self.runner, timeout=self.config.osascript_timeout)

    def set_enabled(self, item: BackgroundItem, enable: bool) -> None:
        launchd.set_enabled(item.label, item.scope, enable, runner=self.runner)

    def delete_background(self, item: BackgroundItem) -> None:
        launchd.delete(
            item.label,
            item.path,
            item.scope,
            runner=self.runner,
            extra_phrases=self.config.extra_ignorable_phrases,
        )


def execute(effect: Effect, backend: Backend) -> Event:
    """
    Perform one effect and describe its outcome as an event.

    Failures are reported inside the returned event, never raised, so every
    effect produces exactly one completion.
    """
    if isinstance(effect, Load):
        return _load(effect.tab, backend)

    try:
        if isinstance(effect, RemoveLogin):
            backend.remove_login(effect.item)
            status = "Removed login item"
        elif isinstance(effect, ToggleBackground):
            backend.set_enabled(effect.item, effect.enable)
            status = f"{'enabled' if effect.enable else 'disabled'} {effect.item.label}"
        elif isinstance(effect, DeleteBackground):
            backend.delete_background(effect.item)
            status = f"Deleted background item {effect.item.label}"
        else:
            raise TypeError(f"unknown effect {effect!r}")
    except (MloginError, OSError) as e:
        logger.warning("%s failed: %s", type(effect).__name__, e)
        return ActionDone(effect, error=str(e))

    return ActionDone(effect, status=status)


def _load(tab: Tab, backend: Backend) -> Event:
    try:
        if tab is Tab.LOGIN:
            return LoginLoaded(items=tuple(backend.list_login()))
        if tab is Tab.BACKGROUND:
            items, warnings = backend.list_background()
            return BackgroundLoaded(items=tuple(items), warnings=tuple(warnings))
        return ExtensionsLoaded(items=tuple(backend.list_extensions()))
    except (MloginError, OSError) as e:
        logger.warning("loading %s failed: %s", tab.title, e)
        if tab is Tab.LOGIN:
            return LoginLoaded(error=str(e))
        if tab is Tab.BACKGROUND:
            return BackgroundLoaded(error=str(e))
        return ExtensionsLoaded(error=str(e))
