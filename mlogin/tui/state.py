"""Browser state machine.

`update(state, event)` is the only way the browser changes. It returns a new
`BrowserState` plus the effects (loads and actions) to run; it performs no I/O
itself, so the whole interaction can be tested by feeding events.
"""

from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import Union

from mlogin.models import BackgroundItem, LoginItem, SystemExtensionItem


class Tab(IntEnum):
    LOGIN = 0
    BACKGROUND = 1
    EXTENSIONS = 2

    @property
    def title(self) -> str:
        return TAB_TITLES[self]


TAB_TITLES = {
    Tab.LOGIN: "Login Items",
    Tab.BACKGROUND: "Background Items",
    Tab.EXTENSIONS: "System Extensions",
}

TAB_NOUNS = {
    Tab.LOGIN: "login items",
    Tab.BACKGROUND: "background items",
    Tab.EXTENSIONS: "system extensions",
}


class Mode(str, Enum):
    NORMAL = "normal"
    FILTER = "filter"
    CONFIRM = "confirm"


@dataclass(frozen=True)
class Column:
    title: str
    width: int


# Events

@dataclass(frozen=True)
class KeyPressed:
    """A key press; text is True for printable input (key is the character)."""

    key: str
    text: bool = False


@dataclass(frozen=True)
class Resized:
    width: int
    height: int


@dataclass(frozen=True)
class LoginLoaded:
    items: tuple[LoginItem, ...] = ()
    error: str | None = None


@dataclass(frozen=True)
class BackgroundLoaded:
    items: tuple[BackgroundItem, ...] = ()
    warnings: tuple[str, ...] = ()
    error: str | None = None


@dataclass(frozen=True)
class ExtensionsLoaded:
    items: tuple[SystemExtensionItem, ...] = ()
    error: str | None = None


# Effects

@dataclass(frozen=True)
class Load:
    """Re-run the aggregator behind a tab."""

    tab: Tab


@dataclass(frozen=True)
class RemoveLogin:
    item: LoginItem

    reload_tab = Tab.LOGIN
    reload_on_error = False


@dataclass(frozen=True)
class ToggleBackground:
    item: BackgroundItem
    enable: bool

    reload_tab = Tab.BACKGROUND
    reload_on_error = True


@dataclass(frozen=True)
class DeleteBackground:
    item: BackgroundItem

    reload_tab = Tab.BACKGROUND
    reload_on_error = True


Action = Union[RemoveLogin, ToggleBackground, DeleteBackground]
Effect = Union[Load, RemoveLogin, ToggleBackground, DeleteBackground]


@dataclass(frozen=True)
class ActionDone:
    action: Action
    status: str = ""
    error: str | None = None


Event = Union[KeyPressed, Resized, LoginLoaded, BackgroundLoaded, ExtensionsLoaded, ActionDone]


# Tab header, filter line, two blank lines, table header and rule, help, status
CHROME_LINES = 8


@dataclass(frozen=True)
class BrowserState:
    tab: Tab = Tab.LOGIN
    mode: Mode = Mode.NORMAL
    width: int = 0
    height: int = 0

    # Latest successfully loaded snapshot per domain
    login_items: tuple[LoginItem, ...] = ()
    background_items: tuple[BackgroundItem, ...] = ()
    extension_items: tuple[SystemExtensionItem, ...] = ()
    warnings: tuple[str, ...] = ()

    # Visible table for the active tab; row_index[i] is the snapshot index of rows[i]
    filter_text: str = ""
    columns: tuple[Column, ...] = ()
    rows: tuple[tuple[str, ...], ...] = ()
    row_index: tuple[int, ...] = ()
    cursor: int = 0

    pending_delete: BackgroundItem | None = None
    confirm_text: str = ""
    status: str = "Loading login/background items..."
    error: str | None = None
    # Failure of the last action; survives the reload it triggers until the next key
    action_error: str | None = None
    quit: bool = False

    @property
    def shows_warnings(self) -> bool:
        return bool(self.warnings) and self.tab is Tab.BACKGROUND

    @property
    def table_height(self) -> int:
        """Rows left for the table after the single-line chrome around it."""
        chrome = CHROME_LINES + self.shows_warnings + (self.mode is Mode.CONFIRM)
        return max(4, self.height - chrome)

    def selected_index(self) -> int | None:
        """Snapshot index of the item under the cursor."""
        if not 0 <= self.cursor < len(self.row_index):
            return None
        return self.row_index[self.cursor]

    def selected_login_item(self) -> LoginItem | None:
        idx = self.selected_index()
        if self.tab is not Tab.LOGIN or idx is None or idx >= len(self.login_items):
            return None
        return self.login_items[idx]

    def selected_background_item(self) -> BackgroundItem | None:
        idx = self.selected_index()
        if self.tab is not Tab.BACKGROUND or idx is None or idx >= len(self.background_items):
            return None
        return self.background_items[idx]


def initial_effects() -> list[Effect]:
    """Loads issued when the browser starts, one per domain."""
    return [Load(Tab.LOGIN), Load(Tab.BACKGROUND), Load(Tab.EXTENSIONS)]


# Filtering

def _matches(query: str, *fields: str) -> bool:
    q = query.strip().lower()
    if not q:
        return True
    return any(q in field.lower() for field in fields)


def matches_login(item: LoginItem, query: str) -> bool:
    return _matches(query, item.name, item.path)


def matches_background(item: BackgroundItem, query: str) -> bool:
    return _matches(query, item.label, item.path, item.scope.value, item.kind.value)


def matches_extension(item: SystemExtensionItem, query: str) -> bool:
    return _matches(query, item.category, item.team_id, item.bundle_id, item.name, item.state)


def _flag(value: bool) -> str:
    return "true" if value else "false"


# Columns

def columns_for(tab: Tab, width: int) -> tuple[Column, ...]:
    """
    Column layout for a tab at a terminal width.

    Flexible columns take a share of the width but never drop below their
    floor, so any width (including 0) yields a valid layout.
    """
    if tab is Tab.LOGIN:
        name_w = max(20, width // 5)
        hidden_w = 8
        path_w = max(30, width - name_w - hidden_w - 8)
        return (Column("Name", name_w), Column("Hidden", hidden_w), Column("Path", path_w))

    if tab is Tab.BACKGROUND:
        scope_w = kind_w = loaded_w = disabled_w = 8
        label_w = max(22, width // 4)
        path_w = max(25, width - scope_w - kind_w - loaded_w - disabled_w - label_w - 12)
        return (
            Column("Scope", scope_w),
            Column("Kind", kind_w),
            Column("Loaded", loaded_w),
            Column("Disabled", disabled_w),
            Column("Label", label_w),
            Column("Path", path_w),
        )

    cat_w = max(24, width // 5)
    enabled_w = 7
    active_w = 6
    team_w = 10
    bundle_w = max(28, width // 4)
    state_w = max(16, width // 8)
    name_w = max(22, width - cat_w - enabled_w - active_w - team_w - bundle_w - state_w - 14)
    return (
        Column("Category", cat_w),
        Column("Enabled", enabled_w),
        Column("Active", active_w),
        Column("TeamID", team_w),
        Column("BundleID", bundle_w),
        Column("Name", name_w),
        Column("State", state_w),
    )


def _rows_for(state: BrowserState) -> tuple[list[tuple[str, ...]], list[int]]:
    rows: list[tuple[str, ...]] = []
    index: list[int] = []
    query = state.filter_text

    if state.tab is Tab.LOGIN:
        for i, item in enumerate(state.login_items):
            if matches_login(item, query):
                rows.append((item.name, _flag(item.hidden), item.path))
                index.append(i)
    elif state.tab is Tab.BACKGROUND:
        for i, item in enumerate(state.background_items):
            if matches_background(item, query):
                rows.append((
                    item.scope.value,
                    item.kind.value,
                    _flag(item.loaded),
                    item.disabled_display(),
                    item.label,
                    item.path,
                ))
                index.append(i)
    else:
        for i, item in enumerate(state.extension_items):
            if matches_extension(item, query):
                rows.append((
                    item.category,
                    _flag(item.enabled),
                    _flag(item.active),
                    item.team_id,
                    item.bundle_id,
                    item.name,
                    item.state,
                ))
                index.append(i)

    return rows, index


def rebuild(state: BrowserState, cursor: int | None = None) -> BrowserState:
    """
    Recompute columns, filtered rows and the row -> snapshot index map.

    The cursor (current one unless given) is clamped to the new row count.
    """
    rows, index = _rows_for(state)
    if cursor is None:
        cursor = state.cursor
    cursor = min(max(cursor, 0), max(len(rows) - 1, 0))
    return replace(
        state,
        columns=columns_for(state.tab, state.width),
        rows=tuple(rows),
        row_index=tuple(index),
        cursor=cursor,
    )


# Transitions

def update(state: BrowserState, event: Event) -> tuple[BrowserState, list[Effect]]:
    """Apply one event; return the next state and the effects to run."""
    if isinstance(event, Resized):
        return rebuild(replace(state, width=max(event.width, 0), height=max(event.height, 0))), []

    if isinstance(event, LoginLoaded):
        if event.error is not None:
            return rebuild(replace(state, error=event.error, status="Failed to load login items")), []
        state = replace(
            state,
            login_items=tuple(event.items),
            status=f"Loaded {len(event.items)} login items",
            error=None,
        )
        return rebuild(state), []

    if isinstance(event, BackgroundLoaded):
        if event.error is not None:
            return rebuild(replace(state, error=event.error, status="Failed to load background items")), []
        state = replace(
            state,
            background_items=tuple(event.items),
            warnings=tuple(event.warnings),
            status=f"Loaded {len(event.items)} background items",
            error=None,
        )
        return rebuild(state), []

    if isinstance(event, ExtensionsLoaded):
        if event.error is not None:
            return rebuild(replace(state, error=event.error, status="Failed to load system extensions")), []
        state = replace(
            state,
            extension_items=tuple(event.items),
            status=f"Loaded {len(event.items)} system extensions",
            error=None,
        )
        return rebuild(state), []

    if isinstance(event, ActionDone):
        return _on_action_done(state, event)

    if isinstance(event, KeyPressed):
        if state.action_error is not None:
            state = replace(state, action_error=None)
        if state.mode is Mode.CONFIRM:
            return _on_confirm_key(state, event)
        if state.mode is Mode.FILTER:
            return _on_filter_key(state, event)
        return _on_normal_key(state, event)

    return state, []


def _on_action_done(state: BrowserState, event: ActionDone) -> tuple[BrowserState, list[Effect]]:
    action = event.action
    if event.error is not None:
        state = replace(state, action_error=event.error, status="Action failed")
        if action.reload_on_error:
            return state, [Load(action.reload_tab)]
        return state, []
    return replace(state, error=None, action_error=None, status=event.status), [Load(action.reload_tab)]


def _clear_confirm(state: BrowserState, **changes) -> BrowserState:
    return replace(state, mode=Mode.NORMAL, pending_delete=None, confirm_text="", **changes)


def _on_confirm_key(state: BrowserState, event: KeyPressed) -> tuple[BrowserState, list[Effect]]:
    key = event.key
    if key == "ctrl+c":
        return replace(state, quit=True), []
    if key == "y":
        item = state.pending_delete
        if item is None:
            return _clear_confirm(state), []
        return _clear_confirm(state, status="Deleting background item..."), [DeleteBackground(item)]
    if key in ("n", "esc"):
        return _clear_confirm(state, status="Delete cancelled"), []
    # Modal: everything else is ignored until the prompt is answered.
    return state, []


def _on_filter_key(state: BrowserState, event: KeyPressed) -> tuple[BrowserState, list[Effect]]:
    key = event.key
    if key == "ctrl+c":
        return replace(state, quit=True), []
    if key in ("enter", "esc"):
        return replace(
            state,
            mode=Mode.NORMAL,
            status=f"Filter applied ({len(state.rows)} results)",
        ), []
    if key == "backspace":
        if state.filter_text:
            return rebuild(replace(state, filter_text=state.filter_text[:-1])), []
        return state, []
    if event.text:
        return rebuild(replace(state, filter_text=state.filter_text + key)), []
    moved = _move_cursor(state, key)
    if moved is not None:
        return moved, []
    return state, []


def _move_cursor(state: BrowserState, key: str) -> BrowserState | None:
    last = max(len(state.rows) - 1, 0)
    page = state.table_height
    targets = {
        "up": state.cursor - 1,
        "down": state.cursor + 1,
        "pgup": state.cursor - page,
        "pgdown": state.cursor + page,
        "home": 0,
        "end": last,
    }
    if key not in targets:
        return None
    return replace(state, cursor=min(max(targets[key], 0), last))


# Vim-style aliases accepted in normal mode only (in filter mode they are text).
_NORMAL_ALIASES = {"k": "up", "j": "down", "g": "home", "G": "end", "l": "right", "h": "left"}


def _on_normal_key(state: BrowserState, event: KeyPressed) -> tuple[BrowserState, list[Effect]]:
    key = _NORMAL_ALIASES.get(event.key, event.key)

    if key in ("ctrl+c", "q"):
        return replace(state, quit=True), []

    if key in ("tab", "right"):
        return rebuild(replace(state, tab=Tab((state.tab + 1) % 3))), []
    if key in ("shift+tab", "left"):
        return rebuild(replace(state, tab=Tab((state.tab + 2) % 3))), []

    if key == "r":
        return replace(state, status=f"Refreshing {TAB_NOUNS[state.tab]}..."), [Load(state.tab)]

    if key in ("/", "f"):
        return replace(
            state,
            mode=Mode.FILTER,
            status="Filter mode: type to filter, enter/esc to finish",
        ), []

    if key == "c":
        return rebuild(replace(state, filter_text="", status="Filter cleared")), []

    if key == "x":
        if state.tab is Tab.LOGIN:
            login_item = state.selected_login_item()
            if login_item is None:
                return state, []
            return replace(state, status="Removing login item..."), [RemoveLogin(login_item)]
        if state.tab is Tab.BACKGROUND:
            bg_item = state.selected_background_item()
            if bg_item is None:
                return state, []
            return replace(
                state,
                mode=Mode.CONFIRM,
                pending_delete=bg_item,
                confirm_text=f"Delete {bg_item.label} and remove plist file? (y/n)",
            ), []
        return state, []

    if key in ("e", "d"):
        if state.tab is not Tab.BACKGROUND:
            return state, []
        bg_item = state.selected_background_item()
        if bg_item is None:
            return state, []
        return (
            replace(state, status="Applying background item change..."),
            [ToggleBackground(bg_item, enable=key == "e")],
        )

    moved = _move_cursor(state, key)
    if moved is not None:
        return moved, []
    return state, []
