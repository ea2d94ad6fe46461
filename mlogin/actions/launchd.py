"""Enable, disable, load, unload and delete launchd background items."""

import logging
import os
from pathlib import Path
from typing import Iterable

from mlogin.errors import ExternalToolError, FilesystemError, InvalidArgument
from mlogin.models import Scope
from mlogin.util.host import launch_domain
from mlogin.util.process import run_tool
from mlogin.util.shell import Runner, run

logger = logging.getLogger(__name__)

# launchctl bootout failures that mean "the service is already gone".
# launchctl's error text is not a stable interface; phrases are matched
# case-insensitively as substrings. Observed on:
IGNORABLE_BOOTOUT_PHRASES = {
    "no such process": "macOS 10.10+ (errno 3)",
    "service could not be found": "macOS 10.15-12",
    "could not find specified service": "macOS 11+ (error 113)",
    "not found": "generic fallback",
    "domain does not support specified action": "macOS 10.15+ (error 125)",
}


def is_ignorable_bootout_error(message: str, extra_phrases: Iterable[str] = ()) -> bool:
    """
    Check whether a bootout failure only says the service is not running.

    Args:
        message: Error text from launchctl bootout
        extra_phrases: Additional phrases from configuration

    Example:
        >>> is_ignorable_bootout_error("Boot-out failed: 3: No such process")
        True
        >>> is_ignorable_bootout_error("Boot-out failed: 1: Operation not permitted")
        False
    """
    lowered = message.lower()
    phrases = list(IGNORABLE_BOOTOUT_PHRASES) + [p.lower() for p in extra_phrases]
    return any(phrase in lowered for phrase in phrases)


def _target(label: str, scope: Scope | str) -> str:
    if not label:
        raise InvalidArgument("--label is required")
    return f"{launch_domain(scope)}/{label}"


def set_enabled(label: str, scope: Scope | str, enable: bool, runner: Runner = run) -> str:
    """
    Run `launchctl enable|disable <domain>/<label>`.

    Returns:
        The domain the change was applied in

    Raises:
        InvalidArgument: On empty label or bad scope
        ExternalToolError: If launchctl fails
    """
    target = _target(label, scope)
    verb = "enable" if enable else "disable"
    run_tool(["launchctl", verb, target], f"launchctl {verb} {target}", runner=runner)
    logger.info("%sd %s", verb, target)
    return target.rsplit("/", 1)[0]


def enable(label: str, scope: Scope | str = Scope.USER, runner: Runner = run) -> str:
    """Clear the disabled override for a service."""
    return set_enabled(label, scope, True, runner=runner)


def disable(label: str, scope: Scope | str = Scope.USER, runner: Runner = run) -> str:
    """Set the disabled override for a service."""
    return set_enabled(label, scope, False, runner=runner)


def load(plist_path: str, scope: Scope | str = Scope.USER, runner: Runner = run) -> str:
    """
    Bootstrap a plist into the scope's domain.

    Returns:
        The domain the plist was loaded into
    """
    if not plist_path:
        raise InvalidArgument("--plist is required")
    domain = launch_domain(scope)
    abspath = os.path.abspath(plist_path)
    run_tool(["launchctl", "bootstrap", domain, abspath], f"launchctl bootstrap {domain}", runner=runner)
    logger.info("bootstrapped %s into %s", abspath, domain)
    return domain


def unload(
    label: str,
    scope: Scope | str = Scope.USER,
    runner: Runner = run,
    extra_phrases: Iterable[str] = (),
) -> bool:
    """
    Boot a service out of the scope's domain.

    A failure saying the service is not loaded counts as success, so
    unloading twice is harmless.

    Args:
        label: launchd label
        scope: 'user' or 'system'
        runner: Command runner
        extra_phrases: Extra ignorable phrases from configuration

    Returns:
        True if the service was booted out, False if it was not loaded

    Raises:
        ExternalToolError: If bootout fails for any other reason
    """
    target = _target(label, scope)
    try:
        run_tool(["launchctl", "bootout", target], f"launchctl bootout {target}", runner=runner)
    except ExternalToolError as e:
        if not is_ignorable_bootout_error(str(e), extra_phrases):
            raise
        logger.info("%s was not loaded: %s", target, e)
        return False
    return True


def delete(
    label: str,
    plist_path: str,
    scope: Scope | str = Scope.USER,
    runner: Runner = run,
    extra_phrases: Iterable[str] = (),
) -> str:
    """
    Stop a service and remove its plist.

    The service is booted out before the file is removed so that launchd
    never keeps a registration pointing at a deleted plist. A bootout failure
    that only says the service is not running is ignored; any other bootout
    failure aborts before the file is touched. A plist that is already gone
    counts as deleted.

    Returns:
        Absolute path of the plist

    Raises:
        InvalidArgument: On missing label/plist or bad scope
        ExternalToolError: If bootout fails for a non-ignorable reason
        FilesystemError: If the plist exists but cannot be removed
    """
    if not label or not plist_path:
        raise InvalidArgument("--label and --plist are required")
    abspath = Path(os.path.abspath(plist_path))
    domain = launch_domain(scope)

    try:
        unload(label, scope, runner=runner, extra_phrases=extra_phrases)
    except ExternalToolError as e:
        raise ExternalToolError(f"bootout failed for {label}: {e}") from e

    try:
        abspath.unlink()
    except FileNotFoundError:
        logger.info("%s already removed", abspath)
        return str(abspath)
    except OSError as e:
        raise FilesystemError(f"remove plist {abspath}: {e}") from e

    logger.info("deleted %s (%s) from %s", label, abspath, domain)
    return str(abspath)
