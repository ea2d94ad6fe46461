"""Add and remove login items through System Events."""

import logging
import os
from typing import Optional

from mlogin.collectors.osa import (
    ADD_LOGIN_ITEM_JS,
    REMOVE_LOGIN_ITEMS_JS,
    parse_remove_result,
    run_jxa,
)
from mlogin.errors import InvalidArgument, NotFoundError
from mlogin.util.shell import Runner, run

logger = logging.getLogger(__name__)


def add_login_item(
    path: str,
    hidden: bool = False,
    runner: Runner = run,
    timeout: Optional[int] = None,
) -> str:
    """
    Register an application as a login item.
    
    Any login item already registered at the same absolute path is deleted
    first, so repeating the call replaces the entry instead of duplicating it.
    
    Args:
        path: Application path (relative paths are resolved)
        hidden: Launch the application hidden
        runner: Command runner
        timeout: osascript timeout in seconds
    
    Returns:
        The absolute path that was registered
    
    Raises:
        InvalidArgument: If path is empty
        ExternalToolError: If System Events rejects the request
    """
    if not path:
        raise InvalidArgument("--path is required")
    abspath = os.path.abspath(path)
    env = {
        "MLOGIN_ADD_PATH": abspath,
        "MLOGIN_ADD_HIDDEN": "1" if hidden else "0",
    }
    run_jxa(ADD_LOGIN_ITEM_JS, "add login item", env=env, runner=runner, timeout=timeout)
    logger.info("added login item %s (hidden=%s)", abspath, hidden)
    return abspath


def remove_login_item(
    name: Optional[str] = None,
    path: Optional[str] = None,
    runner: Runner = run,
    timeout: Optional[int] = None,
) -> int:
    """
    Delete every login item matching name OR absolute path.
    
    Returns:
        Number of login items removed (always at least one)
    
    Raises:
        InvalidArgument: If neither name nor path is given
        NotFoundError: If nothing matched
        ExternalToolError: If osascript fails
    """
    if not name and not path:
        raise InvalidArgument("provide --name or --path")
    
    env = {}
    if name:
        env["MLOGIN_REMOVE_NAME"] = name
    if path:
        env["MLOGIN_REMOVE_PATH"] = os.path.abspath(path)
    
    output = run_jxa(REMOVE_LOGIN_ITEMS_JS, "remove login item", env=env, runner=runner, timeout=timeout)
    removed = parse_remove_result(output)
    if removed == 0:
        raise NotFoundError("no matching login item found")
    logger.info("removed %d login item(s)", removed)
    return removed
