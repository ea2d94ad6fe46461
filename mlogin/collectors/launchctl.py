"""Collect loaded and disabled launchd labels via launchctl."""

from mlogin.util.process import run_tool
from mlogin.util.shell import Runner, run


def get_loaded_labels(runner: Runner = run) -> set[str]:
    """
    Labels currently loaded in the invoking user's launchd domain.
    
    Raises:
        ExternalToolError: If launchctl list fails
    """
    result = run_tool(["launchctl", "list"], "launchctl list", runner=runner)
    return parse_launchctl_list(result.out)


def parse_launchctl_list(output: str) -> set[str]:
    """
    Parse `launchctl list` output into a set of labels.
    
    Format (tab separated, header first):
        PID    Status  Label
        -      0       com.apple.SafariHistoryServiceAgent
        512    0       com.example.agent
    """
    labels = set()
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("PID"):
            continue
        parts = line.split()
        if len(parts) < 3:
            continue
        labels.add(parts[2])
    return labels


def get_disabled_labels(domain: str, runner: Runner = run) -> dict[str, bool]:
    """
    Disabled overrides recorded for a launchd domain.
    
    Args:
        domain: 'system' or 'gui/<uid>'
        runner: Command runner
    
    Returns:
        Mapping of label -> True when disabled, False when explicitly enabled
    
    Raises:
        ExternalToolError: If launchctl print-disabled fails (commonly for
            'system' without root)
    """
    result = run_tool(
        ["launchctl", "print-disabled", domain],
        f"launchctl print-disabled {domain}",
        runner=runner
    )
    return parse_print_disabled(result.out)


def parse_print_disabled(output: str) -> dict[str, bool]:
    """
    Parse `launchctl print-disabled` output.
    
    Older releases print `"label" => true`, newer ones `"label" => disabled`;
    both spellings are accepted.
    
    Example:
        >>> parse_print_disabled('disabled services = {\\n\\t"com.a" => disabled\\n}')
        {'com.a': True}
    """
    labels: dict[str, bool] = {}
    for line in output.splitlines():
        line = line.strip()
        if "=>" not in line:
            continue
        parts = line.split("=>")
        if len(parts) != 2:
            continue
        label = parts[0].strip().strip('"')
        state = parts[1].strip().removesuffix(";").strip().strip('"')
        if not label:
            continue
        labels[label] = state in ("disabled", "true")
    return labels
