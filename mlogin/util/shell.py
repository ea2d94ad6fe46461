"""Subprocess execution for the external macOS tools mlogin drives."""

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Mapping, Optional, Protocol

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15


@dataclass
class ShellResult:
    """Result from a command execution."""
    
    code: int
    out: str
    err: str
    
    @property
    def success(self) -> bool:
        """Check if the command succeeded (exit code 0)."""
        return self.code == 0
    
    def __bool__(self) -> bool:
        """Allow using result in boolean context (True if successful)."""
        return self.success
    
    def error_message(self) -> str:
        """Describe a failed run: exit status plus stderr when there is any."""
        if self.err:
            return f"exit status {self.code}: {self.err}"
        return f"exit status {self.code}"


class Runner(Protocol):
    """Callable that executes one command; tests substitute a fake."""

    def __call__(
        self,
        cmd: list[str],
        env: Optional[Mapping[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> ShellResult: ...


def run(
    cmd: list[str],
    env: Optional[Mapping[str, str]] = None,
    timeout: Optional[int] = None,
) -> ShellResult:
    """
    Execute a command safely without shell interpretation.
    
    Args:
        cmd: Command and arguments as a list of strings (e.g., ['launchctl', 'list'])
        env: Variables added on top of the inherited environment
        timeout: Maximum execution time in seconds (default: DEFAULT_TIMEOUT)
    
    Returns:
        ShellResult with exit code, stdout, and stderr. A non-zero exit is
        returned, never raised.
    
    Raises:
        TimeoutError: If command execution exceeds timeout
        FileNotFoundError: If the command executable is not found
    
    Example:
        >>> result = run(['launchctl', 'print-disabled', 'system'])
        >>> if result.success:
        ...     print(result.out)
    """
    if timeout is None:
        timeout = DEFAULT_TIMEOUT
    
    child_env = None
    if env:
        child_env = dict(os.environ)
        child_env.update(env)
    
    logger.debug("running %s", " ".join(cmd))
    try:
        completed = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            env=child_env,
            timeout=timeout,
            shell=False,
            check=False
        )
    except subprocess.TimeoutExpired as e:
        raise TimeoutError(
            f"Command timed out after {timeout}s: {' '.join(cmd)}"
        ) from e
    
    result = ShellResult(
        code=completed.returncode,
        out=_normalize_output(completed.stdout),
        err=_normalize_output(completed.stderr)
    )
    if not result.success:
        logger.debug("%s exited with %d: %s", cmd[0], result.code, result.err)
    return result


def _normalize_output(text: str) -> str:
    """
    Normalize command output: convert line endings and trim whitespace.
    
    Args:
        text: Raw output from subprocess
    
    Returns:
        Normalized string with consistent line endings and trimmed whitespace
    """
    if not text:
        return ""
    
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    return normalized.strip()


def make_runner(default_timeout: int) -> Runner:
    """Runner whose timeout defaults to default_timeout instead of DEFAULT_TIMEOUT."""
    def runner(
        cmd: list[str],
        env: Optional[Mapping[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> ShellResult:
        return run(cmd, env=env, timeout=default_timeout if timeout is None else timeout)
    return runner
