"""
Azure SQL database long-term retention policy adapter.

Create/update, read, import and delete callbacks for a database's
backup long-term retention (LTR) policy. The policy is an intrinsic
sub-resource of the database: "create" sets it on an existing database
and "delete" resets it to zero retention rather than removing anything.

Functions:
- create_or_update_policy(client, config, deadline): Set policy, wait, re-read
- read_policy(client, resource_id, deadline): Fetch current retention settings
- read_policy_state(client, resource_id, deadline): Fetch full state for an ID
- import_policy(client, resource_id, deadline): Adopt an existing policy by ID
- delete_policy(client, resource_id, deadline): Reset policy to zero retention

Nothing here retries; failures propagate to the caller.
"""

from typing import Optional, Union
import logging
import os

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.mgmt.sql import SqlManagementClient
from azure.mgmt.sql.models import LongTermRetentionPolicy

from ._polling import Deadline, ensure_time_left, wait_for_completion
from .errors import PolicyNotFoundError, RemoteCallError
from .models import (
    DEFAULT_WEEK_OF_YEAR,
    DISABLED_RETENTION,
    RetentionPolicyConfig,
    RetentionPolicyState,
    RetentionSettings,
)
from .resource_id import DEFAULT_POLICY_NAME, ResourceIdentifier


log = logging.getLogger("sqlretention.azuresql")


# Configuration
CREATE_UPDATE_TIMEOUT_MINUTES = float(os.getenv("LTR_CREATE_UPDATE_TIMEOUT_MINUTES", "60"))
READ_TIMEOUT_MINUTES = float(os.getenv("LTR_READ_TIMEOUT_MINUTES", "5"))
DELETE_TIMEOUT_MINUTES = float(os.getenv("LTR_DELETE_TIMEOUT_MINUTES", "60"))


ResourceIdLike = Union[str, ResourceIdentifier]


def expand_policy(settings: RetentionSettings) -> LongTermRetentionPolicy:
    """Build the provider payload; all four fields are always sent."""
    return LongTermRetentionPolicy(
        weekly_retention=settings.weekly_retention,
        monthly_retention=settings.monthly_retention,
        yearly_retention=settings.yearly_retention,
        week_of_year=settings.week_of_year
    )


def flatten_policy(policy: Optional[LongTermRetentionPolicy]) -> RetentionSettings:
    """Map a provider payload back to settings, filling omitted fields with the disabled values."""
    if policy is None:
        return RetentionSettings.disabled()
    return RetentionSettings(
        weekly_retention=policy.weekly_retention or DISABLED_RETENTION,
        monthly_retention=policy.monthly_retention or DISABLED_RETENTION,
        yearly_retention=policy.yearly_retention or DISABLED_RETENTION,
        week_of_year=policy.week_of_year or DEFAULT_WEEK_OF_YEAR
    )


def _as_identifier(resource_id: ResourceIdLike) -> ResourceIdentifier:
    if isinstance(resource_id, ResourceIdentifier):
        return resource_id
    return ResourceIdentifier.parse(resource_id)


def _begin_create_or_update(
    client: SqlManagementClient,
    resource_group: str,
    server_name: str,
    database_name: str,
    parameters: LongTermRetentionPolicy,
    deadline: Deadline
):
    ensure_time_left(
        deadline,
        f"create/update of SQL Server {server_name!r} (Database {database_name!r}) Long Term Retention Policies"
    )
    # No per-call timeout: extra kwargs are forwarded to ARMPolling; wait_for_completion bounds the wait
    try:
        return client.long_term_retention_policies.begin_create_or_update(
            resource_group_name=resource_group,
            server_name=server_name,
            database_name=database_name,
            policy_name=DEFAULT_POLICY_NAME,
            parameters=parameters
        )
    except AzureError as e:
        raise RemoteCallError(
            "Error issuing create/update request",
            server_name, database_name, resource_group, cause=e
        ) from e


def _get(
    client: SqlManagementClient,
    resource_group: str,
    server_name: str,
    database_name: str,
    deadline: Deadline
) -> LongTermRetentionPolicy:
    remaining = ensure_time_left(
        deadline,
        f"retrieving SQL Server {server_name!r} (Database {database_name!r}) Long Term Retention Policies"
    )
    try:
        return client.long_term_retention_policies.get(
            resource_group_name=resource_group,
            server_name=server_name,
            database_name=database_name,
            policy_name=DEFAULT_POLICY_NAME,
            timeout=remaining
        )
    except ResourceNotFoundError as e:
        raise PolicyNotFoundError(
            "Database not found on get request",
            server_name, database_name, resource_group, cause=e
        ) from e
    except AzureError as e:
        raise RemoteCallError(
            "Error issuing get request",
            server_name, database_name, resource_group, cause=e
        ) from e


def create_or_update_policy(
    client: SqlManagementClient,
    config: RetentionPolicyConfig,
    deadline: Optional[Deadline] = None
) -> RetentionPolicyState:
    """
    Set a database's long-term retention policy and return the resulting state.

    Create and update are the same call. After the provider reports the
    operation complete, the policy is read back and its ID returned as part
    of the state; if that read fails no ID is handed out.

    Args:
        client: SQL management client
        config: Validated desired state
        deadline: Bound on the whole operation (default 60 minutes)

    Returns:
        RetentionPolicyState reflecting the remote policy

    Raises:
        RemoteCallError: If the create/update or follow-up read is rejected
        PolicyTimeoutError: If the operation fails or overruns while waiting
    """
    deadline = deadline or Deadline.after_minutes(CREATE_UPDATE_TIMEOUT_MINUTES)
    resource_group = config.resource_group_name
    server_name = config.server_name
    database_name = config.database_name

    parameters = expand_policy(config.backup_long_term_retention_policy)
    log.info(
        "Setting long term retention policy on %s/%s/%s (weekly=%s monthly=%s yearly=%s week=%s)",
        resource_group, server_name, database_name,
        parameters.weekly_retention, parameters.monthly_retention,
        parameters.yearly_retention, parameters.week_of_year
    )

    poller = _begin_create_or_update(client, resource_group, server_name, database_name, parameters, deadline)
    wait_for_completion(
        poller,
        deadline,
        f"Create/Update for SQL Server {server_name!r} (Database {database_name!r}) "
        f"Long Term Retention Policies (Resource Group {resource_group!r})"
    )

    response = _get(client, resource_group, server_name, database_name, deadline)
    if not getattr(response, "id", None):
        raise RemoteCallError(
            "Provider returned no ID after create/update",
            server_name, database_name, resource_group
        )

    log.info("Long term retention policy set: %s", response.id)
    return RetentionPolicyState(
        id=response.id,
        database_name=database_name,
        resource_group_name=resource_group,
        server_name=server_name,
        backup_long_term_retention_policy=flatten_policy(response)
    )


def read_policy(
    client: SqlManagementClient,
    resource_id: ResourceIdLike,
    deadline: Optional[Deadline] = None
) -> RetentionSettings:
    """
    Fetch the current retention settings for a policy ID.

    The ID is parsed before anything is sent, so a malformed ID never
    reaches the network.

    Raises:
        ResourceIdParseError: If the ID is malformed
        PolicyNotFoundError: If the database does not exist
        RemoteCallError: If the fetch fails
    """
    return read_policy_state(client, resource_id, deadline).backup_long_term_retention_policy


def read_policy_state(
    client: SqlManagementClient,
    resource_id: ResourceIdLike,
    deadline: Optional[Deadline] = None
) -> RetentionPolicyState:
    """Fetch a policy and rebuild the full record (names come from the ID)."""
    identifier = _as_identifier(resource_id)
    deadline = deadline or Deadline.after_minutes(READ_TIMEOUT_MINUTES)

    log.debug(
        "Reading long term retention policy for %s/%s/%s",
        identifier.resource_group, identifier.server_name, identifier.database_name
    )
    response = _get(
        client,
        identifier.resource_group,
        identifier.server_name,
        identifier.database_name,
        deadline
    )

    return RetentionPolicyState(
        id=getattr(response, "id", None) or identifier.format(),
        database_name=identifier.database_name,
        resource_group_name=identifier.resource_group,
        server_name=identifier.server_name,
        backup_long_term_retention_policy=flatten_policy(response)
    )


def import_policy(
    client: SqlManagementClient,
    resource_id: ResourceIdLike,
    deadline: Optional[Deadline] = None
) -> RetentionPolicyState:
    """Adopt an existing policy by ID; the record is reconstructed via a read."""
    identifier = _as_identifier(resource_id)
    log.info("Importing long term retention policy %s", identifier)
    return read_policy_state(client, identifier, deadline)


def delete_policy(
    client: SqlManagementClient,
    resource_id: ResourceIdLike,
    deadline: Optional[Deadline] = None
) -> None:
    """
    Reset a policy to zero retention.

    The policy cannot be removed while its database exists, so "delete"
    writes P0W for every duration and week 1, waits, and stops there
    without re-reading.

    Raises:
        ResourceIdParseError: If the ID is malformed
        RemoteCallError: If the request is rejected
        PolicyTimeoutError: If the operation fails or overruns while waiting
    """
    identifier = _as_identifier(resource_id)
    deadline = deadline or Deadline.after_minutes(DELETE_TIMEOUT_MINUTES)
    resource_group = identifier.resource_group
    server_name = identifier.server_name
    database_name = identifier.database_name

    log.info(
        "Resetting long term retention policy on %s/%s/%s to defaults",
        resource_group, server_name, database_name
    )
    parameters = expand_policy(RetentionSettings.disabled())
    poller = _begin_create_or_update(client, resource_group, server_name, database_name, parameters, deadline)
    wait_for_completion(
        poller,
        deadline,
        f"reset of SQL Server {server_name!r} (Database {database_name!r}) "
        f"Long Term Retention Policies (Resource Group {resource_group!r})"
    )
    log.info("Long term retention policy reset on %s/%s/%s", resource_group, server_name, database_name)
