"""Output module for mlogin."""

from .render import render_login_items, render_background_items, render_system_extensions, render_json

__all__ = ["render_login_items", "render_background_items", "render_system_extensions", "render_json"]
