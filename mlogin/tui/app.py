"""Full-screen prompt_toolkit runtime for the browser.

All state changes happen in `BrowserApp.dispatch`, on the application's
event loop. Effects run in worker threads; each completion is dispatched back
on the loop once its task resumes, so events are applied one at a time.
"""

import asyncio
import logging
import sys

from prompt_toolkit.application import Application
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.key_binding import KeyBindings, KeyPressEvent
from prompt_toolkit.keys import Keys
from prompt_toolkit.layout import Layout, Window
from prompt_toolkit.layout.controls import FormattedTextControl

from mlogin.errors import InvalidArgument
from mlogin.tui.effects import Backend, execute
from mlogin.tui.state import (
    BrowserState,
    Effect,
    Event,
    KeyPressed,
    Resized,
    initial_effects,
    update,
)
from mlogin.tui.view import render_view

logger = logging.getLogger(__name__)

KEY_NAMES = {
    Keys.ControlC: "ctrl+c",
    Keys.Tab: "tab",
    Keys.BackTab: "shift+tab",
    Keys.Enter: "enter",
    Keys.Escape: "esc",
    Keys.Backspace: "backspace",
    Keys.Up: "up",
    Keys.Down: "down",
    Keys.Left: "left",
    Keys.Right: "right",
    Keys.PageUp: "pgup",
    Keys.PageDown: "pgdown",
    Keys.Home: "home",
    Keys.End: "end",
}


class BrowserApp:
    """Owns the browser state and feeds it events from the terminal and workers."""

    def __init__(self, backend: Backend):
        self.backend = backend
        self.state = BrowserState()
        self.application: Application[None] = Application(
            layout=Layout(Window(FormattedTextControl(self._formatted), wrap_lines=False)),
            key_bindings=self._key_bindings(),
            full_screen=True,
            before_render=self._check_size,
        )
        self.application.ttimeoutlen = 0.05

    def run(self) -> None:
        self.application.run(pre_run=self._start)

    def _start(self) -> None:
        self._spawn(initial_effects())

    def dispatch(self, event: Event) -> None:
        self.state, effects = update(self.state, event)
        if self.state.quit:
            self.application.exit()
            return
        self._spawn(effects)
        self.application.invalidate()

    def _spawn(self, effects: list[Effect]) -> None:
        for effect in effects:
            self.application.create_background_task(self._perform(effect))

    async def _perform(self, effect: Effect) -> None:
        logger.debug("running %s", effect)
        event = await asyncio.to_thread(execute, effect, self.backend)
        if not self.application.is_done:
            self.dispatch(event)

    def _formatted(self) -> ANSI:
        return ANSI(render_view(self.state))

    def _check_size(self, app: Application) -> None:
        size = app.output.get_size()
        if (size.columns, size.rows) != (self.state.width, self.state.height):
            self.state, _ = update(self.state, Resized(size.columns, size.rows))

    def _key_bindings(self) -> KeyBindings:
        kb = KeyBindings()

        def named(event: KeyPressEvent) -> None:
            self.dispatch(KeyPressed(KEY_NAMES[event.key_sequence[0].key]))

        for key in KEY_NAMES:
            kb.add(key)(named)

        @kb.add(Keys.Any)
        def text(event: KeyPressEvent) -> None:
            if event.data and event.data.isprintable():
                self.dispatch(KeyPressed(event.data, text=True))

        return kb


def run_tui(backend: Backend) -> None:
    """
    Run the interactive browser until the user quits.

    Raises:
        InvalidArgument: If stdin or stdout is not an interactive terminal
    """
    if not sys.stdin.isatty() or not sys.stdout.isatty():
        raise InvalidArgument("tui mode requires an interactive terminal")
    BrowserApp(backend).run()
