"""Data models for login items, background items and system extensions."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ConfigDict, field_validator

from mlogin.errors import InvalidArgument


class Scope(str, Enum):
    """launchd scope an item or action applies to."""

    USER = "user"
    SYSTEM = "system"

    @classmethod
    def parse(cls, value: str) -> "Scope":
        """Parse a user supplied scope name (case-insensitive)."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InvalidArgument("scope must be user or system") from None


class Kind(str, Enum):
    """Agents run per user session, daemons run system-wide."""

    AGENT = "agent"
    DAEMON = "daemon"


class LoginItem(BaseModel):
    """Application registered with System Events to launch at login."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "name": "Raycast",
                "path": "/Applications/Raycast.app",
                "hidden": False
            }
        }
    )

    name: str = Field(description="Display name of the login item")
    path: str = Field(default="", description="Absolute path of the launched application")
    hidden: bool = Field(default=False, description="Whether the app is launched hidden")

    @field_validator("name", "path", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        # System Events returns null for items whose target has been deleted
        return "" if value is None else value


class BackgroundItem(BaseModel):
    """launchd agent or daemon discovered from a plist on disk."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "label": "com.example.agent",
                "path": "/Users/me/Library/LaunchAgents/com.example.agent.plist",
                "scope": "user",
                "kind": "agent",
                "loaded": True,
                "disabled": False
            }
        }
    )

    label: str = Field(description="launchd Label (reverse-DNS identifier)")
    path: str = Field(description="Absolute path to the plist file")
    scope: Scope = Field(description="'user' or 'system'")
    kind: Kind = Field(description="'agent' or 'daemon'")
    loaded: bool = Field(default=False, description="Loaded in the user's launchd domain")
    disabled: bool | None = Field(
        default=None,
        description="Disabled override from launchctl print-disabled; None when unknown"
    )

    def disabled_display(self) -> str:
        """Render the tri-state disabled flag, '?' when unknown."""
        if self.disabled is None:
            return "?"
        return "true" if self.disabled else "false"


class SystemExtensionItem(BaseModel):
    """One row of systemextensionsctl list output."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "category": "com.apple.system_extension.network_extension",
                "enabled": True,
                "active": True,
                "team_id": "W5364U7YZB",
                "bundle_id": "io.tailscale.ipn.macsys.network-extension",
                "version": "1.94.1/101.94.1",
                "name": "Tailscale Network Extension",
                "state": "activated enabled"
            }
        }
    )

    category: str = Field(description="Extension point the extension belongs to")
    enabled: bool = Field(description="Enabled marker ('*') was set")
    active: bool = Field(description="Active marker ('*') was set")
    team_id: str = Field(description="Developer team identifier")
    bundle_id: str = Field(description="Bundle identifier")
    version: str | None = Field(default=None, description="Bundle version, if reported")
    name: str = Field(description="Display name")
    state: str = Field(description="State without surrounding brackets")


def dump_items(items: list[BaseModel]) -> list[dict[str, Any]]:
    """Convert records to JSON-ready dicts, omitting unknown optional fields."""
    return [item.model_dump(mode="json", exclude_none=True) for item in items]
