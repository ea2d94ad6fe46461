"""Table and JSON rendering for CLI listings."""

import json
from io import StringIO

from rich.console import Console
from rich.table import Table
from rich import box
from rich.markup import escape

from mlogin.models import BackgroundItem, LoginItem, SystemExtensionItem, dump_items

# Width used when stdout is not a terminal so piped tables never wrap.
PIPE_WIDTH = 240


def _console(buffer: StringIO, color: bool, width: int | None) -> Console:
    return Console(
        file=buffer,
        width=width or PIPE_WIDTH,
        force_terminal=color,
        no_color=not color,
        highlight=False
    )


def _table() -> Table:
    return Table(
        show_header=True,
        header_style="bold cyan",
        box=box.SIMPLE_HEAD,
        show_edge=False,
        pad_edge=False,
        expand=False
    )


def _render(table: Table, color: bool, width: int | None) -> str:
    output_buffer = StringIO()
    console = _console(output_buffer, color, width)
    console.print(table)
    return output_buffer.getvalue()


def _flag(value: bool) -> str:
    return "true" if value else "false"


def render_login_items(items: list[LoginItem], color: bool = False, width: int | None = None) -> str:
    """
    Render login items as a fixed-width table.

    Args:
        items: Login items to render
        color: Emit ANSI styling (only when writing to a terminal)
        width: Console width; PIPE_WIDTH when None

    Returns:
        Table text, or a 'No login items found' line when empty
    """
    if not items:
        return "No login items found\n"

    table = _table()
    table.add_column("NAME", style="bold", no_wrap=True)
    table.add_column("HIDDEN", no_wrap=True)
    table.add_column("PATH", style="dim", no_wrap=True)

    for item in items:
        table.add_row(escape(item.name), _flag(item.hidden), escape(item.path))

    return _render(table, color, width)


def render_background_items(items: list[BackgroundItem], color: bool = False, width: int | None = None) -> str:
    """
    Render background items as a fixed-width table.

    Unknown disabled state is shown as '?'.
    """
    if not items:
        return "No background items found\n"

    table = _table()
    table.add_column("SCOPE", no_wrap=True)
    table.add_column("KIND", no_wrap=True)
    table.add_column("LOADED", no_wrap=True)
    table.add_column("DISABLED", no_wrap=True)
    table.add_column("LABEL", style="bold", no_wrap=True)
    table.add_column("PATH", style="dim", no_wrap=True)

    for item in items:
        disabled = item.disabled_display()
        if color and item.disabled:
            disabled = f"[yellow]{disabled}[/yellow]"
        table.add_row(
            item.scope.value,
            item.kind.value,
            _flag(item.loaded),
            disabled,
            escape(item.label),
            escape(item.path)
        )

    return _render(table, color, width)


def render_system_extensions(items: list[SystemExtensionItem], color: bool = False, width: int | None = None) -> str:
    """Render system extensions as a fixed-width table."""
    if not items:
        return "No system extensions found\n"

    table = _table()
    table.add_column("CATEGORY", no_wrap=True)
    table.add_column("ENABLED", no_wrap=True)
    table.add_column("ACTIVE", no_wrap=True)
    table.add_column("TEAMID", no_wrap=True)
    table.add_column("BUNDLEID", no_wrap=True)
    table.add_column("VERSION", style="dim", no_wrap=True)
    table.add_column("NAME", style="bold", no_wrap=True)
    table.add_column("STATE", no_wrap=True)

    for item in items:
        table.add_row(
            escape(item.category),
            _flag(item.enabled),
            _flag(item.active),
            escape(item.team_id),
            escape(item.bundle_id),
            escape(item.version or ""),
            escape(item.name),
            escape(item.state)
        )

    return _render(table, color, width)


def render_json(items: list) -> str:
    """
    Render records as an indented JSON array.

    Optional fields that are unknown (disabled, version) are omitted.
    """
    return json.dumps(dump_items(items), indent=2)
