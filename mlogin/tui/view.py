"""Render browser state to ANSI text with Rich."""

from io import StringIO

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text
from rich import box

from mlogin.tui.state import BrowserState, Mode, Tab, TAB_TITLES

ACTIVE_TAB = "bold color(230) on color(62)"
INACTIVE_TAB = "color(252)"
BASE = "color(246)"
ERROR = "color(203)"
WARN = "color(221)"
SELECTED = "bold color(230) on color(62)"

HELP = {
    Tab.LOGIN: "Keys: tab switch | r refresh | / search | c clear | x delete | q quit",
    Tab.BACKGROUND: "Keys: tab switch | r refresh | / search | c clear | e enable | d disable | x delete | q quit",
    Tab.EXTENSIONS: "Keys: tab switch | r refresh | / search | c clear | q quit",
}


def visible_window(state: BrowserState) -> tuple[int, int]:
    """Slice [start, end) of rows shown so the cursor stays on screen."""
    height = state.table_height
    total = len(state.rows)
    start = min(max(state.cursor - height + 1, 0), max(total - height, 0))
    return start, min(start + height, total)


def _line(text: str, style: str) -> Text:
    """One screen line; longer text is cut with an ellipsis instead of wrapping."""
    return Text(text.replace("\r", " ").replace("\n", " "), style=style, no_wrap=True, overflow="ellipsis")


def _header(state: BrowserState) -> Text:
    header = Text(no_wrap=True, overflow="ellipsis")
    for i, tab in enumerate(Tab):
        if i:
            header.append(" ")
        style = ACTIVE_TAB if tab is state.tab else INACTIVE_TAB
        header.append(f" {TAB_TITLES[tab]} ", style=style)
    return header


def _table(state: BrowserState) -> Table:
    table = Table(
        box=box.SIMPLE_HEAD,
        show_edge=False,
        pad_edge=False,
        header_style="bold",
        border_style="color(240)",
        expand=False
    )
    for column in state.columns:
        table.add_column(column.title, width=column.width, no_wrap=True, overflow="ellipsis")

    start, end = visible_window(state)
    for i in range(start, end):
        row = state.rows[i]
        table.add_row(*(Text(cell) for cell in row), style=SELECTED if i == state.cursor else None)
    return table


def render_view(state: BrowserState) -> str:
    """
    Render the full screen for a state.

    Returns:
        ANSI-styled text sized to state.width
    """
    width = max(state.width, 20)
    output_buffer = StringIO()
    console = Console(
        file=output_buffer,
        width=width,
        force_terminal=True,
        color_system="256",
        highlight=False
    )

    filter_label = f"Filter: {state.filter_text}" if state.filter_text else "Filter: <none>"
    if state.mode is Mode.FILTER:
        filter_label += " (editing)"

    error = state.action_error or state.error
    if error:
        status = _line(f"Error: {error}", ERROR)
    else:
        status = _line(state.status, BASE)

    parts = [
        _header(state),
        _line(filter_label, BASE),
        Text(""),
        _table(state),
        Text(""),
        _line(HELP[state.tab], BASE),
        status,
    ]
    # Keep in step with BrowserState.table_height
    if state.shows_warnings:
        parts.append(_line("Warnings: " + " | ".join(state.warnings), WARN))
    if state.mode is Mode.CONFIRM:
        parts.append(_line(state.confirm_text, WARN))

    console.print(Group(*parts))
    return output_buffer.getvalue()
