"""
Azure SQL adapter exceptions.

Every remote-facing error carries the (server, database, resource group)
triple so callers can tell which policy failed without re-parsing messages.
"""

from typing import Optional


class AzureSqlAdapterError(Exception):
    """Base exception for Azure SQL adapter errors."""
    pass


class ResourceIdParseError(AzureSqlAdapterError, ValueError):
    """Raised when a resource ID does not decompose into the expected segments."""
    pass


class CredentialError(AzureSqlAdapterError):
    """Raised when a credential or management client cannot be built."""
    pass


class RemoteCallError(AzureSqlAdapterError):
    """Raised when the provider rejects a request or cannot be reached."""

    def __init__(
        self,
        message: str,
        server_name: str,
        database_name: str,
        resource_group: str,
        cause: Optional[BaseException] = None
    ):
        self.server_name = server_name
        self.database_name = database_name
        self.resource_group = resource_group
        self.cause = cause
        detail = (
            f"{message} for SQL Server {server_name!r} (Database {database_name!r}) "
            f"Long Term Retention Policies (Resource Group {resource_group!r})"
        )
        if cause is not None:
            detail = f"{detail}: {cause}"
        super().__init__(detail)


class PolicyNotFoundError(RemoteCallError):
    """Raised when the database (and so its policy) does not exist."""
    pass


class PolicyTimeoutError(AzureSqlAdapterError, TimeoutError):
    """Raised when a long-running operation fails or overruns its deadline while waiting."""
    pass
