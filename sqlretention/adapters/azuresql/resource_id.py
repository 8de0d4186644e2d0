"""
Azure resource ID handling for SQL long-term retention policies.

The provider hands back IDs shaped like:

    /subscriptions/{sub}/resourceGroups/{rg}/providers/Microsoft.Sql
        /servers/{server}/databases/{db}/backupLongTermRetentionPolicies/default

The host only ever stores that string, so this is the one place it gets
decoded back into names.
"""

from dataclasses import dataclass
from typing import Dict

from .errors import ResourceIdParseError


PROVIDER_NAMESPACE = "Microsoft.Sql"
DEFAULT_POLICY_NAME = "default"


def _segments(value: str) -> Dict[str, str]:
    """Split an ID into a {lowercased key: value} map of its path pairs."""
    parts = value.strip().strip("/").split("/")
    if not parts or parts == [""]:
        raise ResourceIdParseError("Resource ID is empty")
    if len(parts) % 2 != 0:
        raise ResourceIdParseError(
            f"The number of path segments is not divisible by 2 in {value!r}"
        )

    components: Dict[str, str] = {}
    for i in range(0, len(parts), 2):
        key, val = parts[i], parts[i + 1]
        if not key or not val:
            raise ResourceIdParseError(f"Key/value cannot be empty strings in {value!r}")
        # Last occurrence wins for repeated keys
        components[key.lower()] = val
    return components


@dataclass(frozen=True)
class ResourceIdentifier:
    """Structured form of a long-term retention policy ID."""

    subscription_id: str
    resource_group: str
    server_name: str
    database_name: str
    policy_name: str = DEFAULT_POLICY_NAME

    @classmethod
    def parse(cls, value: str) -> "ResourceIdentifier":
        """
        Decode a provider resource ID.

        Raises:
            ResourceIdParseError: If the ID is malformed or lacks the
                subscription, resource group, server or database segment
        """
        if not isinstance(value, str):
            raise ResourceIdParseError(f"Resource ID must be a string, got {type(value).__name__}")

        components = _segments(value)

        required = {
            "subscriptions": "subscription",
            "resourcegroups": "resource group",
            "servers": "servers",
            "databases": "databases",
        }
        for key, label in required.items():
            if key not in components:
                raise ResourceIdParseError(f"No {label} segment found in resource ID {value!r}")

        return cls(
            subscription_id=components["subscriptions"],
            resource_group=components["resourcegroups"],
            server_name=components["servers"],
            database_name=components["databases"],
            policy_name=components.get("backuplongtermretentionpolicies", DEFAULT_POLICY_NAME),
        )

    def format(self) -> str:
        return (
            f"/subscriptions/{self.subscription_id}"
            f"/resourceGroups/{self.resource_group}"
            f"/providers/{PROVIDER_NAMESPACE}"
            f"/servers/{self.server_name}"
            f"/databases/{self.database_name}"
            f"/backupLongTermRetentionPolicies/{self.policy_name}"
        )

    def __str__(self) -> str:
        return self.format()
