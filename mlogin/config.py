"""Configuration file management for mlogin."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from mlogin.scanners.background import LIST_SCOPES


@dataclass
class Config:
    """Configuration for mlogin."""

    # Scope used by `background list` when --scope is not given
    default_scope: str = "all"

    # Timeouts in seconds
    command_timeout: int = 15
    osascript_timeout: int = 60

    # Phrases appended to the built-in ignorable bootout table
    extra_ignorable_phrases: list[str] = field(default_factory=list)

    # Logging
    log_level: str = "WARNING"
    log_file: str | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self.default_scope = str(self.default_scope).lower()
        if self.default_scope not in LIST_SCOPES:
            raise ValueError(f"Invalid default_scope '{self.default_scope}': must be user, system, or all")

        for name in ("command_timeout", "osascript_timeout"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")

        phrases = self.extra_ignorable_phrases
        if not isinstance(phrases, list) or not all(isinstance(p, str) for p in phrases):
            raise ValueError(f"extra_ignorable_phrases must be a list of strings, got {phrases!r}")

        if self.log_file is not None and not isinstance(self.log_file, str):
            raise ValueError(f"log_file must be a path, got {self.log_file!r}")

        if not isinstance(logging.getLevelName(str(self.log_level).upper()), int):
            raise ValueError(f"Invalid log_level '{self.log_level}'")


def default_config_paths() -> list[Path]:
    """Locations checked, in order, when no --config is given."""
    return [
        Path.home() / ".mlogin.yaml",
        Path.home() / ".mlogin.yml",
        Path.home() / ".config" / "mlogin" / "config.yaml",
        Path.home() / ".config" / "mlogin" / "config.yml",
    ]


def load_config(config_path: Path | str | None = None) -> Config:
    """
    Load configuration from file.

    Args:
        config_path: Path to config file. If None, checks default locations:
            1. ~/.mlogin.yaml
            2. ~/.mlogin.yml
            3. ~/.config/mlogin/config.yaml
            4. ~/.config/mlogin/config.yml

    Returns:
        Config object with loaded settings (or defaults if no config found)

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ValueError: If the file cannot be parsed or holds invalid values
    """
    if config_path:
        config_file = Path(config_path).expanduser()
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_file}")
    else:
        config_file = next((p for p in default_config_paths() if p.exists()), None)
        if not config_file:
            return Config()

    try:
        with open(config_file, 'r') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ValueError(f"Failed to load config from {config_file}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Failed to load config from {config_file}: expected a mapping")

    try:
        return Config(**data)
    except TypeError as e:
        raise ValueError(f"Failed to load config from {config_file}: {e}") from e


EXAMPLE_CONFIG = """# mlogin configuration file
# Place at ~/.mlogin.yaml or ~/.config/mlogin/config.yaml

# Scope for `mlogin background list` without --scope (user, system, all)
default_scope: all

# Seconds to wait for launchctl / PlistBuddy / systemextensionsctl
command_timeout: 15

# Seconds to wait for osascript (the first call may show a permission prompt)
osascript_timeout: 60

# Extra launchctl bootout error phrases meaning "service already gone"
# extra_ignorable_phrases:
#   - "input/output error"

# Logging (DEBUG, INFO, WARNING, ERROR); log_file also receives TUI logs
log_level: WARNING
# log_file: ~/Library/Logs/mlogin.log
"""


def save_example_config(output_path: Path | str) -> None:
    """
    Save an example configuration file with all options documented.

    Args:
        output_path: Where to save the example config
    """
    path = Path(output_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(EXAMPLE_CONFIG)
