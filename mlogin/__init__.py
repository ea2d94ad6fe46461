"""Manage macOS login items, launchd background items and system extensions."""

__version__ = "0.3.0"
__commit__ = "none"
__build_date__ = "unknown"
