"""Collectors that run one external tool and parse its output."""

from .launchctl import get_loaded_labels, get_disabled_labels, parse_launchctl_list, parse_print_disabled
from .plist import read_plist_label
from .sysext import get_system_extensions, parse_systemextensions, parse_bundle_version, split_tab_columns

__all__ = [
    "get_loaded_labels",
    "get_disabled_labels",
    "parse_launchctl_list",
    "parse_print_disabled",
    "read_plist_label",
    "get_system_extensions",
    "parse_systemextensions",
    "parse_bundle_version",
    "split_tab_columns",
]
