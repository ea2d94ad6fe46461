"""Host facts: home directory and launchd domain targets."""

import os
from pathlib import Path

from mlogin.models import Scope


def home_dir() -> Path:
    """Home directory of the invoking user."""
    return Path.home()


def launch_domain(scope: Scope | str) -> str:
    """
    Resolve a scope to the launchd domain target used by launchctl.
    
    Args:
        scope: Scope or scope name ('user' or 'system')
    
    Returns:
        'system' or 'gui/<uid>' for the current user
    
    Raises:
        InvalidArgument: If scope is not user or system
    
    Example:
        >>> launch_domain("user")
        'gui/501'
    """
    if not isinstance(scope, Scope):
        scope = Scope.parse(scope)
    if scope is Scope.SYSTEM:
        return "system"
    return f"gui/{os.getuid()}"
