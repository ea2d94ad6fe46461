"""Command-line interface for mlogin."""

import shutil
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import click
import typer

from mlogin import __build_date__, __commit__, __version__
from mlogin.actions import launchd
from mlogin.actions.login import add_login_item, remove_login_item
from mlogin.config import Config, load_config, save_example_config
from mlogin.errors import MloginError
from mlogin.output.render import (
    render_background_items,
    render_json,
    render_login_items,
    render_system_extensions,
)
from mlogin.scanners.background import list_background_items, parse_list_scope
from mlogin.scanners.extensions import list_system_extensions
from mlogin.scanners.login import list_login_items
from mlogin.tui.app import run_tui
from mlogin.tui.effects import Backend
from mlogin.util.host import launch_domain
from mlogin.util.log import setup_logging
from mlogin.util.shell import make_runner

app = typer.Typer(
    add_completion=False,
    help="Inspect and manage macOS login items, launchd services and system extensions.",
)
login_app = typer.Typer(add_completion=False, help="List, add and remove login items.")
background_app = typer.Typer(add_completion=False, help="Manage launchd agents and daemons.")
extensions_app = typer.Typer(add_completion=False, help="List system extensions.")
config_app = typer.Typer(add_completion=False, help="Manage the configuration file.")

app.add_typer(login_app, name="login")
app.add_typer(background_app, name="background")
app.add_typer(background_app, name="bg", hidden=True)
app.add_typer(extensions_app, name="extensions")
app.add_typer(extensions_app, name="ext", hidden=True)
app.add_typer(config_app, name="config")

TUI_COMMANDS = ("tui", "ui")


@contextmanager
def handle_errors():
    """Report mlogin and configuration errors as `error: ...` and exit 1."""
    try:
        yield
    except (MloginError, ValueError, FileNotFoundError) as e:
        print(f"error: {e}", file=sys.stderr)
        raise typer.Exit(1)


def print_version() -> None:
    print(f"mlogin {__version__}")
    print(f"commit: {__commit__}")
    print(f"built: {__build_date__}")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        print_version()
        raise typer.Exit()


def _config(ctx: typer.Context) -> Config:
    return ctx.obj if isinstance(ctx.obj, Config) else Config()


def _table_args() -> dict:
    """Colour and width for table output, depending on whether stdout is a terminal."""
    if sys.stdout.isatty():
        return {"color": True, "width": shutil.get_terminal_size().columns}
    return {"color": False, "width": None}


def _emit(text: str) -> None:
    print(text, end="" if text.endswith("\n") else "\n")


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to configuration file (default: ~/.mlogin.yaml)"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log debug output, including every external command, to stderr"
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    ),
) -> None:
    """
    Inspect and manage macOS login items, launchd services and system extensions.

    Examples:
        mlogin login list                                  # Login items as a table
        mlogin background list --scope user --json         # User agents as JSON
        mlogin background disable --label com.example.agent
        mlogin bg delete --label com.example.agent --plist ~/Library/LaunchAgents/com.example.agent.plist
        mlogin extensions list                             # System extensions
        mlogin tui                                         # Interactive browser
    """
    if ctx.invoked_subcommand is None:
        print(ctx.get_help())
        raise typer.Exit()

    with handle_errors():
        config = load_config(config_file)
        setup_logging(
            "DEBUG" if verbose else config.log_level,
            log_file=config.log_file,
            console=ctx.invoked_subcommand not in TUI_COMMANDS,
        )
    ctx.obj = config


@app.command("version")
def version_cmd() -> None:
    """Show version, commit and build date."""
    print_version()


def tui(ctx: typer.Context) -> None:
    """Browse login items, background items and system extensions interactively."""
    with handle_errors():
        run_tui(Backend(_config(ctx)))


app.command("tui")(tui)
app.command("ui", hidden=True)(tui)


@login_app.command("list")
def login_list(
    ctx: typer.Context,
    json: bool = typer.Option(False, "--json", help="Output results in JSON format"),
) -> None:
    """List login items."""
    config = _config(ctx)
    with handle_errors():
        items = list_login_items(
            runner=make_runner(config.command_timeout),
            timeout=config.osascript_timeout,
        )
    if json:
        print(render_json(items))
    else:
        _emit(render_login_items(items, **_table_args()))


@login_app.command("add")
def login_add(
    ctx: typer.Context,
    path: Optional[str] = typer.Option(None, "--path", help="Application or file to open at login"),
    hidden: bool = typer.Option(False, "--hidden", help="Hide the application when it opens"),
) -> None:
    """Add a login item, replacing any item already registered at the same path."""
    config = _config(ctx)
    with handle_errors():
        abspath = add_login_item(
            path or "",
            hidden=hidden,
            runner=make_runner(config.command_timeout),
            timeout=config.osascript_timeout,
        )
    print(f"added login item: {abspath}")


@login_app.command("remove")
def login_remove(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, "--name", help="Login item name"),
    path: Optional[str] = typer.Option(None, "--path", help="Login item path"),
) -> None:
    """Remove every login item matching the name or the path."""
    config = _config(ctx)
    with handle_errors():
        removed = remove_login_item(
            name=name,
            path=path,
            runner=make_runner(config.command_timeout),
            timeout=config.osascript_timeout,
        )
    print(f"removed {removed} matching login item(s)")


@background_app.command("list")
def background_list(
    ctx: typer.Context,
    json: bool = typer.Option(False, "--json", help="Output results in JSON format"),
    scope: Optional[str] = typer.Option(
        None,
        "--scope",
        help="user, system or all (default: from config, normally all)"
    ),
) -> None:
    """List launchd agents and daemons from the standard plist directories."""
    config = _config(ctx)
    with handle_errors():
        items, warnings = list_background_items(
            parse_list_scope(scope or config.default_scope),
            runner=make_runner(config.command_timeout),
        )
    for warning in warnings:
        print(f"warning: {warning}", file=sys.stderr)
    if json:
        print(render_json(items))
    else:
        _emit(render_background_items(items, **_table_args()))


SCOPE_HELP = "user or system"


def _set_enabled(ctx: typer.Context, label: Optional[str], scope: str, enable: bool) -> None:
    config = _config(ctx)
    with handle_errors():
        domain = launchd.set_enabled(
            label or "",
            scope,
            enable,
            runner=make_runner(config.command_timeout),
        )
    print(f"{'enabled' if enable else 'disabled'} {label} in {domain}")


@background_app.command("enable")
def background_enable(
    ctx: typer.Context,
    label: Optional[str] = typer.Option(None, "--label", help="launchd label"),
    scope: str = typer.Option("user", "--scope", help=SCOPE_HELP),
) -> None:
    """Clear the disabled override for a service."""
    _set_enabled(ctx, label, scope, True)


@background_app.command("disable")
def background_disable(
    ctx: typer.Context,
    label: Optional[str] = typer.Option(None, "--label", help="launchd label"),
    scope: str = typer.Option("user", "--scope", help=SCOPE_HELP),
) -> None:
    """Disable a service so launchd will not start it."""
    _set_enabled(ctx, label, scope, False)


@background_app.command("load")
def background_load(
    ctx: typer.Context,
    plist: Optional[str] = typer.Option(None, "--plist", help="Path to the service plist"),
    scope: str = typer.Option("user", "--scope", help=SCOPE_HELP),
) -> None:
    """Bootstrap a plist into its launchd domain."""
    config = _config(ctx)
    with handle_errors():
        domain = launchd.load(plist or "", scope, runner=make_runner(config.command_timeout))
    print(f"loaded {plist} into {domain}")


@background_app.command("unload")
def background_unload(
    ctx: typer.Context,
    label: Optional[str] = typer.Option(None, "--label", help="launchd label"),
    scope: str = typer.Option("user", "--scope", help=SCOPE_HELP),
) -> None:
    """Boot a service out of its launchd domain."""
    config = _config(ctx)
    with handle_errors():
        booted = launchd.unload(
            label or "",
            scope,
            runner=make_runner(config.command_timeout),
            extra_phrases=config.extra_ignorable_phrases,
        )
        domain = launch_domain(scope)
    if booted:
        print(f"unloaded {label} from {domain}")
    else:
        print(f"{label} was not loaded in {domain}")


def background_delete(
    ctx: typer.Context,
    label: Optional[str] = typer.Option(None, "--label", help="launchd label"),
    plist: Optional[str] = typer.Option(None, "--plist", help="Path to the service plist"),
    scope: str = typer.Option("user", "--scope", help=SCOPE_HELP),
) -> None:
    """Boot a service out, then remove its plist file."""
    config = _config(ctx)
    with handle_errors():
        abspath = launchd.delete(
            label or "",
            plist or "",
            scope,
            runner=make_runner(config.command_timeout),
            extra_phrases=config.extra_ignorable_phrases,
        )
    print(f"deleted background item {label} ({abspath})")


background_app.command("delete")(background_delete)
background_app.command("remove", hidden=True)(background_delete)


@extensions_app.command("list")
def extensions_list(
    ctx: typer.Context,
    json: bool = typer.Option(False, "--json", help="Output results in JSON format"),
) -> None:
    """List system extensions reported by systemextensionsctl."""
    config = _config(ctx)
    with handle_errors():
        items = list_system_extensions(runner=make_runner(config.command_timeout))
    if json:
        print(render_json(items))
    else:
        _emit(render_system_extensions(items, **_table_args()))


@config_app.command("init")
def config_init(
    path: Path = typer.Argument(..., help="Where to write the example configuration"),
) -> None:
    """Write a documented example configuration file."""
    try:
        save_example_config(path)
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        raise typer.Exit(1)
    print(f"example configuration saved to {path}", file=sys.stderr)


def main() -> None:
    """Entry point for the CLI."""
    try:
        code = app(standalone_mode=False)
    except click.exceptions.Abort:
        print("error: aborted", file=sys.stderr)
        sys.exit(1)
    except click.ClickException as e:
        print(f"error: {e.format_message()}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code if isinstance(code, int) else 0)


if __name__ == "__main__":
    main()
