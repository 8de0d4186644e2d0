"""
Azure SQL authentication adapter.

Builds SqlManagementClient instances. Tokens come either from the
centralized credential broker in the Auth service (when a credential_id
is supplied) or from azure-identity's default credential chain.
"""

from typing import Optional
import logging
import os

import httpx
from azure.core.credentials import AccessToken, TokenCredential
from azure.identity import DefaultAzureCredential
from azure.mgmt.sql import SqlManagementClient

from .errors import CredentialError


log = logging.getLogger("sqlretention.azuresql")

ARM_SCOPE = "https://management.azure.com/.default"


class BrokerTokenCredential(TokenCredential):
    """
    TokenCredential that asks the Auth service to vend an ARM access token.

    azure-core calls get_token() synchronously, so this uses httpx's sync Client.
    """

    def __init__(self, credential_id: str):
        """
        Initialize credential provider.

        Args:
            credential_id: UUID of the credential held by the Auth service
        """
        self.credential_id = credential_id

    def get_token(self, *scopes: str, **kwargs) -> AccessToken:
        """
        Get access token from Auth service (synchronous).

        Args:
            scopes: OAuth scopes requested by the SDK (forwarded to the broker)
            **kwargs: Additional arguments (ignored)

        Returns:
            AccessToken with token and expiration timestamp

        Raises:
            CredentialError: If token vending fails
        """
        service_secret = os.getenv("SERVICE_SECRET")
        auth_service_url = os.getenv("AUTH_SERVICE_URL", "http://auth:8000")

        if not service_secret:
            raise CredentialError("SERVICE_SECRET not configured")

        url = f"{auth_service_url}/auth/oauth/internal/credential-token"
        headers = {
            "X-Service-Token": service_secret,
            "Content-Type": "application/json"
        }
        data = {"credential_id": self.credential_id, "scopes": list(scopes) or [ARM_SCOPE]}

        try:
            with httpx.Client(timeout=10.0) as client:
                response = client.post(url, headers=headers, json=data)
                response.raise_for_status()
                token_data = response.json()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise CredentialError(f"Credential {self.credential_id} not found or not connected")
            elif e.response.status_code == 401:
                raise CredentialError("Invalid SERVICE_SECRET")
            else:
                raise CredentialError(f"Auth service error: {e.response.status_code}")
        except httpx.RequestError as e:
            raise CredentialError(f"Failed to reach Auth service: {e}")

        try:
            return AccessToken(
                token=token_data["access_token"],
                expires_on=int(token_data["expires_at"])
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CredentialError(f"Malformed token response from Auth service: {e}")


def get_sql_client(
    credential_id: Optional[str] = None,
    subscription_id: Optional[str] = None,
    **client_options
) -> SqlManagementClient:
    """
    Create an Azure SQL management client.

    Args:
        credential_id: Auth service credential to vend tokens from; when
            omitted, DefaultAzureCredential is used
        subscription_id: Subscription to manage (defaults to AZURE_SUBSCRIPTION_ID)
        **client_options: Extra azure-core pipeline options (e.g. transport);
            retries are always disabled

    Returns:
        Configured SqlManagementClient

    Raises:
        CredentialError: If no subscription is configured or client creation fails

    Example:
        client = get_sql_client()
        policy = client.long_term_retention_policies.get("rg1", "srv1", "db1", "default")
    """
    subscription_id = subscription_id or os.getenv("AZURE_SUBSCRIPTION_ID")
    if not subscription_id:
        raise CredentialError("AZURE_SUBSCRIPTION_ID not configured")

    if credential_id:
        credential: TokenCredential = BrokerTokenCredential(credential_id)
    else:
        credential = DefaultAzureCredential()

    try:
        # No retries inside the adapter; azure-core retries failed requests by default
        client = SqlManagementClient(credential, subscription_id, **{**client_options, "retry_total": 0})
    except Exception as e:
        raise CredentialError(f"Failed to create SQL management client: {e}") from e
    log.debug("Created SQL management client for subscription %s", subscription_id)
    return client
