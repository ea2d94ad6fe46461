"""Read launchd plist fields with PlistBuddy."""

from mlogin.util.process import run_tool
from mlogin.util.shell import Runner, run

PLISTBUDDY = "/usr/libexec/PlistBuddy"


def read_plist_label(plist_path: str, runner: Runner = run) -> str:
    """
    Return the Label of a launchd plist.
    
    Args:
        plist_path: Path to the .plist file
        runner: Command runner
    
    Returns:
        The label with surrounding whitespace removed (may be empty)
    
    Raises:
        ExternalToolError: If PlistBuddy fails, e.g. the file has no Label key
            or is not a property list
    """
    result = run_tool(
        [PLISTBUDDY, "-c", "Print :Label", plist_path],
        f"read Label from {plist_path}",
        runner=runner
    )
    return result.out.strip()
