"""System extensions scanner."""

from mlogin.collectors.sysext import get_system_extensions
from mlogin.models import SystemExtensionItem
from mlogin.util.shell import Runner, run


def list_system_extensions(runner: Runner = run) -> list[SystemExtensionItem]:
    """
    List system extensions sorted by category, then name.
    
    Raises:
        ExternalToolError: If systemextensionsctl fails
    """
    items = get_system_extensions(runner=runner)
    return sorted(items, key=lambda item: (item.category, item.name))
