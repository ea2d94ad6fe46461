"""Parse systemextensionsctl list output."""

from mlogin.models import SystemExtensionItem
from mlogin.util.process import run_tool
from mlogin.util.shell import Runner, run

MIN_COLUMNS = 6


def get_system_extensions(runner: Runner = run) -> list[SystemExtensionItem]:
    """
    Run `systemextensionsctl list` and parse its rows.
    
    Raises:
        ExternalToolError: If systemextensionsctl fails or is missing
    """
    result = run_tool(
        ["systemextensionsctl", "list"],
        "systemextensionsctl list",
        runner=runner
    )
    return parse_systemextensions(result.out)


def parse_systemextensions(output: str) -> list[SystemExtensionItem]:
    """
    Parse the line-oriented table printed by `systemextensionsctl list`.
    
    Output looks like:
        1 extension(s)
        --- com.apple.system_extension.network_extension
        enabled\tactive\tteamID\tbundleID (version)\tname\t[state]
        *\t*\tW5364U7YZB\tio.tailscale...extension (1.94.1/101.94.1)\tTailscale\t[activated enabled]
    
    Each '--- <category>' header sets the category for the rows that follow.
    Rows with fewer than six non-blank tab-separated cells are skipped.
    """
    items = []
    category = ""
    
    for line in output.splitlines():
        line = line.strip()
        if not line or line.endswith("extension(s)"):
            continue
        if line.startswith("--- "):
            parts = line.split()
            if len(parts) >= 2:
                category = parts[1]
            continue
        if line.startswith("enabled"):
            continue
        
        cols = split_tab_columns(line)
        if len(cols) < MIN_COLUMNS:
            continue
        
        bundle_id, version = parse_bundle_version(cols[3])
        items.append(SystemExtensionItem(
            category=category,
            enabled=cols[0] == "*",
            active=cols[1] == "*",
            team_id=cols[2],
            bundle_id=bundle_id,
            version=version or None,
            name=cols[4],
            state=cols[5].strip("[]")
        ))
    
    return items


def split_tab_columns(line: str) -> list[str]:
    """Split on tabs, trimming cells and dropping blank ones."""
    return [cell.strip() for cell in line.split("\t") if cell.strip()]


def parse_bundle_version(value: str) -> tuple[str, str]:
    """
    Split 'bundle.id (version)' into its parts.
    
    Example:
        >>> parse_bundle_version("io.tailscale.ipn.macsys.network-extension (1.94.1/101.94.1)")
        ('io.tailscale.ipn.macsys.network-extension', '1.94.1/101.94.1')
        >>> parse_bundle_version("com.example.ext")
        ('com.example.ext', '')
    """
    i = value.rfind(" (")
    if i == -1 or not value.endswith(")"):
        return value, ""
    return value[:i], value[i + 2:-1]
