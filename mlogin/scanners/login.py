"""Login items scanner."""

from typing import Optional

from mlogin.collectors.osa import LIST_LOGIN_ITEMS_JS, parse_login_items, run_jxa
from mlogin.models import LoginItem
from mlogin.util.shell import Runner, run


def list_login_items(runner: Runner = run, timeout: Optional[int] = None) -> list[LoginItem]:
    """
    Enumerate the current user's login items.
    
    Returns:
        Login items sorted by case-insensitive name
    
    Raises:
        ExternalToolError: If osascript is unavailable, fails or prints nothing
        ParseError: If its output is not a valid login item array
    """
    output = run_jxa(LIST_LOGIN_ITEMS_JS, "osascript login list", runner=runner, timeout=timeout)
    items = parse_login_items(output)
    return sorted(items, key=lambda item: item.name.lower())
