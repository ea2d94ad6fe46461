"""Logging setup for the CLI and the interactive browser."""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(
    level: str = "WARNING",
    log_file: Path | str | None = None,
    console: bool = True,
) -> None:
    """
    Configure the 'mlogin' logger hierarchy.
    
    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file that receives records in addition to the console
        console: Attach a RichHandler on stderr. Disabled in TUI mode, where
            console output would corrupt the full-screen display.
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Invalid log level '{level}'")
    
    root = logging.getLogger("mlogin")
    root.setLevel(numeric)
    root.propagate = False
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    
    if console:
        root.addHandler(RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=False,
            markup=False
        ))
    
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        root.addHandler(file_handler)
    
    if not root.handlers:
        root.addHandler(logging.NullHandler())
