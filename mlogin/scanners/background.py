"""Launch agents and daemons scanner for macOS."""

import logging
from dataclasses import dataclass
from pathlib import Path

from mlogin.collectors.launchctl import get_disabled_labels, get_loaded_labels
from mlogin.collectors.plist import read_plist_label
from mlogin.errors import ExternalToolError, InvalidArgument
from mlogin.models import BackgroundItem, Kind, Scope
from mlogin.util.host import home_dir, launch_domain
from mlogin.util.shell import Runner, run

logger = logging.getLogger(__name__)

LIST_SCOPES = ("user", "system", "all")


@dataclass(frozen=True)
class LaunchdLocation:
    """A directory of launchd plists and what the plists in it are."""

    path: Path
    scope: Scope
    kind: Kind


def parse_list_scope(scope: str) -> str:
    """Validate a listing scope: user, system or all (case-insensitive)."""
    normalized = scope.strip().lower()
    if normalized not in LIST_SCOPES:
        raise InvalidArgument("scope must be user, system, or all")
    return normalized


def launchd_locations(scope: str) -> list[LaunchdLocation]:
    """Plist directories scanned for a listing scope."""
    locations = []
    if scope in ("user", "all"):
        locations.append(LaunchdLocation(home_dir() / "Library" / "LaunchAgents", Scope.USER, Kind.AGENT))
    if scope in ("system", "all"):
        locations.append(LaunchdLocation(Path("/Library/LaunchAgents"), Scope.SYSTEM, Kind.AGENT))
        locations.append(LaunchdLocation(Path("/Library/LaunchDaemons"), Scope.SYSTEM, Kind.DAEMON))
    return locations


def list_background_items(
    scope: str = "all",
    runner: Runner = run,
) -> tuple[list[BackgroundItem], list[str]]:
    """
    Enumerate launch agents and daemons and annotate their launchd state.

    Discovery comes from the plist directories; the loaded flag comes from
    `launchctl list` and the disabled flag from `launchctl print-disabled` of
    the item's own domain. Either data source may be unavailable: a missing
    loaded set is treated as empty, a missing disabled map leaves `disabled`
    unknown (None) for that scope and adds a warning.

    Args:
        scope: 'user', 'system' or 'all'
        runner: Command runner

    Returns:
        (items sorted by scope then label, warnings)

    Raises:
        InvalidArgument: If scope is not user, system or all

    Example:
        >>> items, warnings = list_background_items("user")
        >>> [item.label for item in items if item.loaded]
        ['com.example.agent']
    """
    scope = parse_list_scope(scope)
    include_user = scope in ("user", "all")
    include_system = scope in ("system", "all")
    warnings: list[str] = []

    loaded_user: set[str] = set()
    if include_user:
        try:
            loaded_user = get_loaded_labels(runner=runner)
        except ExternalToolError as e:
            logger.debug("loaded labels unavailable: %s", e)

    disabled_by_scope: dict[Scope, dict[str, bool]] = {}
    if include_user:
        try:
            disabled_by_scope[Scope.USER] = get_disabled_labels(launch_domain(Scope.USER), runner=runner)
        except ExternalToolError as e:
            warnings.append(f"could not read user disabled state: {e}")
    if include_system:
        try:
            disabled_by_scope[Scope.SYSTEM] = get_disabled_labels(launch_domain(Scope.SYSTEM), runner=runner)
        except ExternalToolError as e:
            warnings.append(f"could not read system disabled state (try sudo): {e}")

    items = []
    for location in launchd_locations(scope):
        try:
            plist_files = _list_plists(location.path)
        except FileNotFoundError:
            continue
        except OSError as e:
            warnings.append(f"could not read {location.path}: {e}")
            continue

        for plist_file in plist_files:
            try:
                label = read_plist_label(str(plist_file), runner=runner)
            except ExternalToolError as e:
                logger.debug("skipping %s: %s", plist_file, e)
                continue
            if not label:
                continue

            disabled = None
            disabled_map = disabled_by_scope.get(location.scope)
            if disabled_map is not None and label in disabled_map:
                disabled = disabled_map[label]

            items.append(BackgroundItem(
                label=label,
                path=str(plist_file),
                scope=location.scope,
                kind=location.kind,
                loaded=location.scope is Scope.USER and label in loaded_user,
                disabled=disabled
            ))

    for warning in warnings:
        logger.info(warning)

    items.sort(key=lambda item: (item.scope.value, item.label))
    return items, warnings


def _list_plists(directory: Path) -> list[Path]:
    """Regular files directly in directory whose name ends in .plist (any case)."""
    return sorted(
        entry for entry in directory.iterdir()
        if entry.is_file() and entry.name.lower().endswith(".plist")
    )
