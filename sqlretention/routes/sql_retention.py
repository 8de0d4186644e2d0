"""
SQL Database Long Term Retention Policy Routes

Lifecycle callbacks for the orchestration host: create/update, read,
delete (reset to defaults) and import. The host persists the returned
ID and owns retry/diff logic; these routes only translate to and from
the adapter.
"""

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from pydantic import BaseModel, Field
from typing import Iterator, Optional
import logging

from azure.mgmt.sql import SqlManagementClient

from ..adapters.azuresql import (
    AzureSqlAdapterError,
    CredentialError,
    Deadline,
    PolicyNotFoundError,
    PolicyTimeoutError,
    RemoteCallError,
    ResourceIdParseError,
    ResourceIdentifier,
    RetentionPolicyConfig,
    RetentionPolicyState,
    create_or_update_policy,
    delete_policy,
    get_sql_client,
    import_policy,
    read_policy_state,
)


log = logging.getLogger("sqlretention.routes")

router = APIRouter(prefix="/sql/long-term-retention-policies", tags=["SQL Long Term Retention"])


class ImportPolicyRequest(BaseModel):
    """Request to adopt an existing policy by its provider resource ID"""
    id: str = Field(
        ...,
        min_length=1,
        description="Provider resource ID of the policy",
        examples=[
            "/subscriptions/00000000-0000-0000-0000-000000000000/resourceGroups/rg1/providers/"
            "Microsoft.Sql/servers/srv1/databases/db1/backupLongTermRetentionPolicies/default"
        ]
    )


class DeletePolicyResponse(BaseModel):
    """Response after a policy has been reset to zero retention"""
    status: str
    id: str


def get_client(x_credential_id: Optional[str] = Header(default=None)) -> Iterator[SqlManagementClient]:
    """Dependency providing a SQL management client, closed once the request is done."""
    try:
        client = get_sql_client(credential_id=x_credential_id)
    except CredentialError as e:
        raise HTTPException(status_code=500, detail=str(e))
    try:
        yield client
    finally:
        client.close()


def _parse_identifier(value: str) -> ResourceIdentifier:
    try:
        return ResourceIdentifier.parse("/" + value.lstrip("/"))
    except ResourceIdParseError as e:
        raise HTTPException(status_code=400, detail=str(e))


def path_identifier(resource_id: str) -> ResourceIdentifier:
    """Dependency decoding the policy ID from the path; declared before get_client so a bad ID fails first."""
    return _parse_identifier(resource_id)


def import_identifier(request: ImportPolicyRequest) -> ResourceIdentifier:
    """Dependency decoding the policy ID from an import request body."""
    return _parse_identifier(request.id)


def _deadline(timeout_minutes: Optional[float]) -> Optional[Deadline]:
    return Deadline.after_minutes(timeout_minutes) if timeout_minutes else None


def _to_http_error(e: AzureSqlAdapterError) -> HTTPException:
    if isinstance(e, ResourceIdParseError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, PolicyNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, PolicyTimeoutError):
        return HTTPException(status_code=504, detail=str(e))
    if isinstance(e, RemoteCallError):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


@router.put("", response_model=RetentionPolicyState)
def put_policy(
    config: RetentionPolicyConfig,
    timeout_minutes: Optional[float] = Query(default=None, gt=0, description="Override the 60 minute default"),
    client: SqlManagementClient = Depends(get_client)
):
    """
    Create or update a database's long-term retention policy.

    This will:
    1. Send the full retention tuple to the provider
    2. Wait for the operation to complete
    3. Read the policy back and return it with its resource ID

    Example:
        PUT /sql/long-term-retention-policies
        {
            "database_name": "db1",
            "resource_group_name": "rg1",
            "server_name": "srv1",
            "backup_long_term_retention_policy": {
                "weekly_retention": "P1W",
                "monthly_retention": "P1M",
                "yearly_retention": "P1Y",
                "week_of_year": 1
            }
        }
    """
    try:
        return create_or_update_policy(client, config, deadline=_deadline(timeout_minutes))
    except AzureSqlAdapterError as e:
        log.error("Create/update failed for %s/%s/%s: %s",
                  config.resource_group_name, config.server_name, config.database_name, e)
        raise _to_http_error(e)


@router.post("/import", response_model=RetentionPolicyState)
def import_existing_policy(
    identifier: ResourceIdentifier = Depends(import_identifier),
    timeout_minutes: Optional[float] = Query(default=None, gt=0, description="Override the 5 minute default"),
    client: SqlManagementClient = Depends(get_client)
):
    """Reconstruct a record from an existing policy ID."""
    try:
        return import_policy(client, identifier, deadline=_deadline(timeout_minutes))
    except AzureSqlAdapterError as e:
        raise _to_http_error(e)


@router.get("/{resource_id:path}", response_model=RetentionPolicyState)
def get_policy(
    identifier: ResourceIdentifier = Depends(path_identifier),
    timeout_minutes: Optional[float] = Query(default=None, gt=0, description="Override the 5 minute default"),
    client: SqlManagementClient = Depends(get_client)
):
    """
    Read a policy's current state.

    Returns 404 when the database is gone so the host can drop the record.
    """
    try:
        return read_policy_state(client, identifier, deadline=_deadline(timeout_minutes))
    except AzureSqlAdapterError as e:
        raise _to_http_error(e)


@router.delete("/{resource_id:path}", response_model=DeletePolicyResponse)
def reset_policy(
    resource_id: str,
    identifier: ResourceIdentifier = Depends(path_identifier),
    timeout_minutes: Optional[float] = Query(default=None, gt=0, description="Override the 60 minute default"),
    client: SqlManagementClient = Depends(get_client)
):
    """Reset a policy to zero retention (the policy itself cannot be removed)."""
    resource_id = "/" + resource_id.lstrip("/")
    try:
        delete_policy(client, identifier, deadline=_deadline(timeout_minutes))
    except AzureSqlAdapterError as e:
        log.error("Reset failed for %s: %s", resource_id, e)
        raise _to_http_error(e)
    return {"status": "reset", "id": resource_id}
