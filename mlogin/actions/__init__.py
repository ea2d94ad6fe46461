"""State-changing actions on login items and launchd services."""

from .login import add_login_item, remove_login_item
from .launchd import enable, disable, load, unload, delete, is_ignorable_bootout_error

__all__ = [
    "add_login_item",
    "remove_login_item",
    "enable",
    "disable",
    "load",
    "unload",
    "delete",
    "is_ignorable_bootout_error",
]
