"""Run an external tool and turn any failure into ExternalToolError."""

from typing import Mapping, Optional

from mlogin.errors import ExternalToolError
from mlogin.util.shell import Runner, ShellResult, run


def run_tool(
    cmd: list[str],
    what: str,
    runner: Runner = run,
    env: Optional[Mapping[str, str]] = None,
    timeout: Optional[int] = None,
) -> ShellResult:
    """
    Run a command that is expected to succeed.
    
    Args:
        cmd: Command and arguments
        what: Short description used in error messages (e.g. 'launchctl list')
        runner: Command runner to use
        env: Extra environment variables for the child
        timeout: Timeout in seconds (runner default when None)
    
    Returns:
        ShellResult of the successful run
    
    Raises:
        ExternalToolError: If the tool is missing, times out, or exits non-zero
    """
    try:
        result = runner(cmd, env=env, timeout=timeout)
    except FileNotFoundError as e:
        raise ExternalToolError(f"{what}: {cmd[0]} not found") from e
    except TimeoutError as e:
        raise ExternalToolError(f"{what}: {e}") from e
    
    if not result.success:
        raise ExternalToolError(f"{what} failed: {result.error_message()}")
    return result
