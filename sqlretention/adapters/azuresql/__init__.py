"""
Azure SQL adapter package.

Provides normalized interfaces for Azure SQL management operations:
- long_term_retention: Database backup long-term retention policy lifecycle
- resource_id: Parsing/formatting of policy resource IDs
- models: Typed policy records
- _auth: Credentials and SqlManagementClient construction
"""

from ._auth import BrokerTokenCredential, get_sql_client
from ._polling import Deadline, wait_for_completion
from .errors import (
    AzureSqlAdapterError,
    CredentialError,
    PolicyNotFoundError,
    PolicyTimeoutError,
    RemoteCallError,
    ResourceIdParseError,
)
from .long_term_retention import (
    create_or_update_policy,
    delete_policy,
    expand_policy,
    flatten_policy,
    import_policy,
    read_policy,
    read_policy_state,
)
from .models import RetentionPolicyConfig, RetentionPolicyState, RetentionSettings
from .resource_id import ResourceIdentifier

__all__ = [
    "AzureSqlAdapterError",
    "BrokerTokenCredential",
    "CredentialError",
    "Deadline",
    "PolicyNotFoundError",
    "PolicyTimeoutError",
    "RemoteCallError",
    "ResourceIdParseError",
    "ResourceIdentifier",
    "RetentionPolicyConfig",
    "RetentionPolicyState",
    "RetentionSettings",
    "create_or_update_policy",
    "delete_policy",
    "expand_policy",
    "flatten_policy",
    "get_sql_client",
    "import_policy",
    "read_policy",
    "read_policy_state",
    "wait_for_completion",
]
