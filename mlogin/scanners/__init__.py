"""Scanners that aggregate collector output into sorted item lists."""

from .login import list_login_items
from .background import list_background_items
from .extensions import list_system_extensions

__all__ = ["list_login_items", "list_background_items", "list_system_extensions"]
