"""Tests for the interactive browser's state machine, effects and view."""

import unittest

from mlogin.errors import ExternalToolError
from mlogin.models import BackgroundItem, Kind, LoginItem, Scope, SystemExtensionItem
from mlogin.tui.effects import execute
from mlogin.tui.state import (
    ActionDone,
    BackgroundLoaded,
    BrowserState,
    DeleteBackground,
    ExtensionsLoaded,
    KeyPressed,
    Load,
    LoginLoaded,
    Mode,
    RemoveLogin,
    Resized,
    Tab,
    ToggleBackground,
    columns_for,
    initial_effects,
    update,
)
from mlogin.tui.view import render_view

LOGIN_ITEMS = (
    LoginItem(name="Alpha", path="/Applications/Alpha.app"),
    LoginItem(name="Raycast", path="/Applications/Raycast.app"),
    LoginItem(name="Rectangle", path="/Applications/Rectangle.app", hidden=True),
)

BACKGROUND_ITEMS = (
    BackgroundItem(
        label="com.example.daemon",
        path="/Library/LaunchDaemons/com.example.daemon.plist",
        scope=Scope.SYSTEM,
        kind=Kind.DAEMON
    ),
    BackgroundItem(
        label="com.example.agent",
        path="/Users/me/Library/LaunchAgents/com.example.agent.plist",
        scope=Scope.USER,
        kind=Kind.AGENT,
        loaded=True,
        disabled=False
    ),
)

EXTENSION_ITEMS = (
    SystemExtensionItem(
        category="com.apple.system_extension.network_extension",
        enabled=True,
        active=True,
        team_id="W5364U7YZB",
        bundle_id="io.tailscale.ipn.macsys.network-extension",
        name="Tailscale Network Extension",
        state="activated enabled"
    ),
)


def key(name: str) -> KeyPressed:
    """Single characters arrive as text, everything else as a named key."""
    return KeyPressed(name, text=len(name) == 1)


def feed(state: BrowserState, *events):
    """Apply events in order; return the final state and every effect emitted."""
    effects = []
    for event in events:
        state, emitted = update(state, event)
        effects.extend(emitted)
    return state, effects


def loaded_state(width: int = 120, height: int = 30) -> BrowserState:
    state, _ = feed(
        BrowserState(),
        Resized(width, height),
        LoginLoaded(items=LOGIN_ITEMS),
        BackgroundLoaded(items=BACKGROUND_ITEMS, warnings=("could not read system disabled state (try sudo): denied",)),
        ExtensionsLoaded(items=EXTENSION_ITEMS),
    )
    return state


class TestTabsAndLayout(unittest.TestCase):
    """Test tab switching and column layout."""

    def test_initial_effects_load_every_tab(self):
        self.assertEqual(initial_effects(), [Load(Tab.LOGIN), Load(Tab.BACKGROUND), Load(Tab.EXTENSIONS)])

    def test_tab_cycle_across_schemas(self):
        """Switching tabs rebuilds the table for each schema at any width."""
        for width in (0, 40, 120):
            with self.subTest(width=width):
                state = loaded_state(width=width)
                seen = []
                for name in ("tab", "tab", "tab", "shift+tab", "left", "right", "l", "h"):
                    state, effects = update(state, key(name))
                    self.assertEqual(effects, [])
                    self.assertEqual(len(state.columns), len(state.rows[0]))
                    seen.append(state.tab)
                self.assertEqual(seen, [
                    Tab.BACKGROUND, Tab.EXTENSIONS, Tab.LOGIN,
                    Tab.EXTENSIONS, Tab.BACKGROUND, Tab.EXTENSIONS, Tab.LOGIN, Tab.EXTENSIONS,
                ])

    def test_column_floors(self):
        self.assertEqual([c.width for c in columns_for(Tab.LOGIN, 0)], [20, 8, 30])
        self.assertEqual([c.width for c in columns_for(Tab.BACKGROUND, 0)], [8, 8, 8, 8, 22, 25])
        self.assertEqual([c.width for c in columns_for(Tab.EXTENSIONS, 0)], [24, 7, 6, 10, 28, 22, 16])

    def test_columns_scale_with_width(self):
        columns = columns_for(Tab.LOGIN, 200)
        self.assertEqual(columns[0].width, 40)
        self.assertEqual(columns[2].width, 200 - 40 - 8 - 8)

    def test_loads_apply_to_their_own_tab(self):
        """A completion for another tab updates its snapshot without touching the visible rows."""
        state, _ = feed(BrowserState(), Resized(100, 30), key("tab"), key("tab"))
        self.assertIs(state.tab, Tab.EXTENSIONS)

        state, _ = feed(state, LoginLoaded(items=LOGIN_ITEMS))
        self.assertEqual(state.login_items, LOGIN_ITEMS)
        self.assertEqual(state.rows, ())
        self.assertEqual(state.status, "Loaded 3 login items")

        state, _ = feed(state, key("tab"))
        self.assertEqual(len(state.rows), 3)

    def test_load_error_keeps_previous_snapshot(self):
        state = loaded_state()
        state, _ = feed(state, LoginLoaded(error="osascript login list failed: exit status 1"))
        self.assertEqual(state.login_items, LOGIN_ITEMS)
        self.assertEqual(state.error, "osascript login list failed: exit status 1")

    def test_refresh_only_active_tab(self):
        state, effects = feed(loaded_state(), key("tab"), key("r"))
        self.assertEqual(effects, [Load(Tab.BACKGROUND)])
        self.assertEqual(state.status, "Refreshing background items...")


class TestCursor(unittest.TestCase):
    """Test cursor movement and clamping."""

    def test_movement_is_clamped(self):
        state = loaded_state()
        state, _ = feed(state, key("down"), key("j"))
        self.assertEqual(state.cursor, 2)
        state, _ = feed(state, key("down"))
        self.assertEqual(state.cursor, 2)
        state, _ = feed(state, key("g"))
        self.assertEqual(state.cursor, 0)
        state, _ = feed(state, key("G"))
        self.assertEqual(state.cursor, 2)
        state, _ = feed(state, key("pgup"))
        self.assertEqual(state.cursor, 0)
        state, _ = feed(state, key("pgdown"), key("k"))
        self.assertEqual(state.cursor, 1)

    def test_cursor_clamped_on_tab_switch(self):
        state, _ = feed(loaded_state(), key("end"), key("tab"))
        self.assertIs(state.tab, Tab.BACKGROUND)
        self.assertEqual(state.cursor, 1)
        state, _ = feed(state, key("tab"))
        self.assertEqual(state.cursor, 0)

    def test_empty_table(self):
        state, effects = feed(BrowserState(), Resized(80, 24), key("down"), key("x"))
        self.assertEqual(state.cursor, 0)
        self.assertEqual(effects, [])


class TestFilter(unittest.TestCase):
    """Test filter mode."""

    def test_filter_maps_rows_to_original_items(self):
        state, _ = feed(loaded_state(), key("/"), key("r"), key("a"), key("y"))
        self.assertIs(state.mode, Mode.FILTER)
        self.assertEqual(state.filter_text, "ray")
        self.assertEqual(len(state.rows), 1)
        self.assertEqual(state.row_index, (1,))
        self.assertEqual(state.selected_login_item(), LOGIN_ITEMS[1])

        state, _ = feed(state, key("enter"))
        self.assertIs(state.mode, Mode.NORMAL)
        self.assertEqual(state.status, "Filter applied (1 results)")

        state, effects = feed(state, key("x"))
        self.assertEqual(effects, [RemoveLogin(LOGIN_ITEMS[1])])

    def test_filter_is_case_insensitive_and_matches_path(self):
        state, _ = feed(loaded_state(), key("f"), *[key(c) for c in "APPLICATIONS/RE"], key("esc"))
        self.assertEqual(state.row_index, (2,))

    def test_letters_are_text_in_filter_mode(self):
        """Normal-mode shortcuts type into the filter instead of acting."""
        state, effects = feed(loaded_state(), key("/"), key("q"), key("x"), key("j"))
        self.assertFalse(state.quit)
        self.assertEqual(effects, [])
        self.assertEqual(state.filter_text, "qxj")
        self.assertEqual(state.rows, ())

    def test_backspace_removes_one_code_point(self):
        state, _ = feed(loaded_state(), key("/"), key("é"), key("日"), key("backspace"))
        self.assertEqual(state.filter_text, "é")
        state, _ = feed(state, key("backspace"), key("backspace"))
        self.assertEqual(state.filter_text, "")
        self.assertEqual(len(state.rows), 3)

    def test_clear_filter(self):
        state, _ = feed(loaded_state(), key("/"), key("z"), key("esc"))
        self.assertEqual(state.rows, ())
        state, _ = feed(state, key("c"))
        self.assertEqual(state.filter_text, "")
        self.assertEqual(len(state.rows), 3)
        self.assertEqual(state.status, "Filter cleared")

    def test_filter_survives_tab_switch(self):
        state, _ = feed(loaded_state(), key("/"), *[key(c) for c in "agent"], key("enter"), key("tab"))
        self.assertEqual(state.selected_background_item(), BACKGROUND_ITEMS[1])

    def test_ctrl_c_quits_from_filter(self):
        state, _ = feed(loaded_state(), key("/"), key("ctrl+c"))
        self.assertTrue(state.quit)


class TestBackgroundActions(unittest.TestCase):
    """Test delete confirmation and enable/disable."""

    def setUp(self):
        # Background tab, cursor on the user agent
        self.state, _ = feed(loaded_state(), key("tab"), key("down"))
        self.item = BACKGROUND_ITEMS[1]
        self.assertEqual(self.state.selected_background_item(), self.item)

    def test_delete_confirm_flow(self):
        state, effects = feed(self.state, key("x"))
        self.assertIs(state.mode, Mode.CONFIRM)
        self.assertEqual(state.confirm_text, "Delete com.example.agent and remove plist file? (y/n)")
        self.assertEqual(effects, [])

        # Modal: other keys change nothing
        ignored, effects = feed(state, key("up"), key("tab"), key("q"), key("r"), key("e"))
        self.assertEqual(ignored, state)
        self.assertEqual(effects, [])

        state, effects = feed(state, key("esc"))
        self.assertIs(state.mode, Mode.NORMAL)
        self.assertEqual(state.status, "Delete cancelled")
        self.assertIsNone(state.pending_delete)
        self.assertEqual(effects, [])

        state, effects = feed(state, key("x"), key("n"))
        self.assertEqual(state.status, "Delete cancelled")
        self.assertEqual(effects, [])

        state, effects = feed(state, key("x"), key("y"))
        self.assertIs(state.mode, Mode.NORMAL)
        self.assertEqual(effects, [DeleteBackground(self.item)])

        state, effects = feed(state, ActionDone(DeleteBackground(self.item), status="Deleted background item com.example.agent"))
        self.assertEqual(effects, [Load(Tab.BACKGROUND)])
        self.assertEqual(state.status, "Deleted background item com.example.agent")

    def test_delete_captures_item_at_prompt_time(self):
        """A reload while the prompt is open does not change what gets deleted."""
        state, _ = feed(self.state, key("x"), BackgroundLoaded(items=BACKGROUND_ITEMS[:1]))
        self.assertIs(state.mode, Mode.CONFIRM)
        _, effects = feed(state, key("y"))
        self.assertEqual(effects, [DeleteBackground(self.item)])

    def test_ctrl_c_quits_from_confirm(self):
        state, effects = feed(self.state, key("x"), key("ctrl+c"))
        self.assertTrue(state.quit)
        self.assertEqual(effects, [])

    def test_enable_disable(self):
        _, effects = feed(self.state, key("e"))
        self.assertEqual(effects, [ToggleBackground(self.item, enable=True)])
        _, effects = feed(self.state, key("d"))
        self.assertEqual(effects, [ToggleBackground(self.item, enable=False)])

    def test_enable_ignored_outside_background_tab(self):
        _, effects = feed(loaded_state(), key("e"), key("d"))
        self.assertEqual(effects, [])

    def test_toggle_reloads_even_on_error(self):
        state, effects = feed(self.state, ActionDone(ToggleBackground(self.item, enable=True), error="permission denied"))
        self.assertEqual(effects, [Load(Tab.BACKGROUND)])
        self.assertEqual(state.action_error, "permission denied")

    def test_action_error_survives_its_reload(self):
        state, _ = feed(
            self.state,
            ActionDone(ToggleBackground(self.item, enable=True), error="Operation not permitted"),
            BackgroundLoaded(items=BACKGROUND_ITEMS),
        )
        self.assertEqual(state.action_error, "Operation not permitted")
        self.assertIn("Error: Operation not permitted", render_view(state))

        # The next key press dismisses it
        state, _ = feed(state, key("down"))
        self.assertIsNone(state.action_error)
        self.assertNotIn("Error:", render_view(state))

    def test_successful_action_clears_previous_failure(self):
        state, _ = feed(
            self.state,
            ActionDone(DeleteBackground(self.item), error="Operation not permitted"),
            ActionDone(ToggleBackground(self.item, enable=False), status="Disabled com.example.agent"),
        )
        self.assertIsNone(state.action_error)
        self.assertEqual(state.status, "Disabled com.example.agent")

    def test_failed_login_removal_does_not_reload(self):
        _, effects = feed(self.state, ActionDone(RemoveLogin(LOGIN_ITEMS[0]), error="no matching login item found"))
        self.assertEqual(effects, [])

    def test_successful_login_removal_reloads_login(self):
        _, effects = feed(self.state, ActionDone(RemoveLogin(LOGIN_ITEMS[0]), status="Removed login item"))
        self.assertEqual(effects, [Load(Tab.LOGIN)])


class FakeBackend:
    """In-memory backend; `fail` makes every call raise."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    def _call(self, name, *args):
        self.calls.append((name, args))
        if self.fail:
            raise ExternalToolError(f"{name} failed")

    def list_login(self):
        self._call("list_login")
        return list(LOGIN_ITEMS)

    def list_background(self):
        self._call("list_background")
        return list(BACKGROUND_ITEMS), ["warn"]

    def list_extensions(self):
        self._call("list_extensions")
        return list(EXTENSION_ITEMS)

    def remove_login(self, item):
        self._call("remove_login", item)

    def set_enabled(self, item, enable):
        self._call("set_enabled", item, enable)

    def delete_background(self, item):
        self._call("delete_background", item)


class TestExecute(unittest.TestCase):
    """Test effect execution against a backend."""

    def test_loads(self):
        backend = FakeBackend()
        self.assertEqual(execute(Load(Tab.LOGIN), backend), LoginLoaded(items=LOGIN_ITEMS))
        self.assertEqual(
            execute(Load(Tab.BACKGROUND), backend),
            BackgroundLoaded(items=BACKGROUND_ITEMS, warnings=("warn",))
        )
        self.assertEqual(execute(Load(Tab.EXTENSIONS), backend), ExtensionsLoaded(items=EXTENSION_ITEMS))

    def test_load_failure_is_reported_in_event(self):
        event = execute(Load(Tab.BACKGROUND), FakeBackend(fail=True))
        self.assertEqual(event, BackgroundLoaded(error="list_background failed"))

    def test_actions(self):
        backend = FakeBackend()
        item = BACKGROUND_ITEMS[1]

        done = execute(ToggleBackground(item, enable=False), backend)
        self.assertEqual(done.status, "disabled com.example.agent")
        self.assertIsNone(done.error)

        done = execute(DeleteBackground(item), backend)
        self.assertEqual(done.status, "Deleted background item com.example.agent")

        done = execute(RemoveLogin(LOGIN_ITEMS[0]), backend)
        self.assertEqual(done.status, "Removed login item")

        self.assertEqual([name for name, _ in backend.calls], ["set_enabled", "delete_background", "remove_login"])

    def test_action_failure_is_reported_in_event(self):
        action = DeleteBackground(BACKGROUND_ITEMS[0])
        done = execute(action, FakeBackend(fail=True))
        self.assertEqual(done, ActionDone(action, error="delete_background failed"))


class TestView(unittest.TestCase):
    """Test rendering."""

    def test_renders_every_tab_at_any_size(self):
        for width, height in ((0, 0), (20, 5), (120, 30)):
            state = loaded_state(width=width, height=height)
            for _ in range(3):
                with self.subTest(width=width, tab=state.tab):
                    output = render_view(state)
                    self.assertIn("Login Items", output)
                    self.assertIn("Keys:", output)
                state, _ = update(state, key("tab"))

    def test_shows_confirm_prompt_and_warnings(self):
        state, _ = feed(loaded_state(width=160), key("tab"), key("x"))
        output = render_view(state)
        self.assertIn("Delete com.example.daemon and remove plist file? (y/n)", output)
        self.assertIn("Warnings:", output)

    def test_screen_fits_height_with_warning_and_prompt(self):
        items = tuple(
            BackgroundItem(
                label=f"com.example.agent{i}",
                path=f"/Users/me/Library/LaunchAgents/com.example.agent{i}.plist",
                scope=Scope.USER,
                kind=Kind.AGENT
            )
            for i in range(100)
        )
        state, _ = feed(
            BrowserState(),
            Resized(100, 30),
            BackgroundLoaded(items=items, warnings=("could not read system disabled state (try sudo): denied",)),
            key("tab"),
            key("end"),
        )
        for mode_keys in ((), ("x",)):
            with self.subTest(keys=mode_keys):
                shown, _ = feed(state, *(key(k) for k in mode_keys))
                lines = render_view(shown).splitlines()
                self.assertEqual(len(lines), 30)
                self.assertIn("Warnings:", "\n".join(lines))
                if mode_keys:
                    self.assertIn("Delete com.example.agent99 and remove plist file? (y/n)", lines[-1])

    def test_long_messages_stay_on_one_line(self):
        state, _ = feed(loaded_state(width=100), key("tab"))
        failed, _ = feed(
            state,
            ActionDone(ToggleBackground(BACKGROUND_ITEMS[0], enable=True), error="Boot-out failed:\n" + "x" * 300),
        )
        output = render_view(failed)
        self.assertIn("Error: Boot-out failed: xxx", output)
        self.assertEqual(len(output.splitlines()), len(render_view(state).splitlines()))

    def test_shows_error(self):
        state, _ = feed(loaded_state(width=160), ExtensionsLoaded(error="systemextensionsctl list failed"))
        self.assertIn("Error: systemextensionsctl list failed", render_view(state))


if __name__ == "__main__":
    unittest.main()
