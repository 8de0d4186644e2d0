"""
Pytest configuration and fixtures for sqlretention tests.

The Azure SQL management client is replaced by an in-memory fake of its
long_term_retention_policies operations group, so nothing touches the network.
"""

import pytest
from azure.core.exceptions import ResourceNotFoundError
from azure.mgmt.sql.models import LongTermRetentionPolicy

from sqlretention.adapters.azuresql import ResourceIdentifier, RetentionPolicyConfig


SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000000"


class FakePoller:
    """Stands in for azure.core.polling.LROPoller."""

    def __init__(self, result=None, error=None, finishes=True):
        self._result = result
        self._error = error
        self._finishes = finishes
        self.wait_timeouts = []

    def wait(self, timeout=None):
        self.wait_timeouts.append(timeout)
        if self._error is not None:
            raise self._error

    def done(self):
        return self._error is None and self._finishes

    def result(self, timeout=None):
        return self._result


class FakeLongTermRetentionPolicies:
    """Keeps one policy per existing database, the way the provider does."""

    def __init__(self):
        self.databases = set()
        self.policies = {}
        self.calls = []
        self.create_error = None
        self.wait_error = None
        self.finishes = True
        self.get_error = None

    def add_database(self, resource_group, server_name, database_name):
        self.databases.add((resource_group, server_name, database_name))

    def _policy_id(self, resource_group, server_name, database_name, policy_name):
        return ResourceIdentifier(
            subscription_id=SUBSCRIPTION_ID,
            resource_group=resource_group,
            server_name=server_name,
            database_name=database_name,
            policy_name=policy_name,
        ).format()

    def begin_create_or_update(self, resource_group_name, server_name, database_name,
                               policy_name, parameters):
        # No **kwargs: the real operation forwards extras into its poller
        self.calls.append(("begin_create_or_update", resource_group_name, server_name,
                           database_name, policy_name, parameters))
        if self.create_error is not None:
            raise self.create_error
        key = (resource_group_name, server_name, database_name)
        if key not in self.databases:
            raise ResourceNotFoundError(f"Database {database_name} not found")
        if self.wait_error is not None:
            return FakePoller(error=self.wait_error)
        if not self.finishes:
            return FakePoller(finishes=False)

        stored = LongTermRetentionPolicy(
            weekly_retention=parameters.weekly_retention,
            monthly_retention=parameters.monthly_retention,
            yearly_retention=parameters.yearly_retention,
            week_of_year=parameters.week_of_year,
        )
        stored.id = self._policy_id(resource_group_name, server_name, database_name, policy_name)
        self.policies[key] = stored
        return FakePoller(result=stored)

    def get(self, resource_group_name, server_name, database_name, policy_name, **kwargs):
        self.calls.append(("get", resource_group_name, server_name, database_name, policy_name, kwargs))
        if self.get_error is not None:
            raise self.get_error
        key = (resource_group_name, server_name, database_name)
        if key not in self.databases:
            raise ResourceNotFoundError(f"Database {database_name} not found")
        if key not in self.policies:
            # Every database has a policy; untouched ones report zero retention
            default = LongTermRetentionPolicy(
                weekly_retention="P0W",
                monthly_retention="P0W",
                yearly_retention="P0W",
                week_of_year=1,
            )
            default.id = self._policy_id(resource_group_name, server_name, database_name, policy_name)
            return default
        return self.policies[key]


class FakeSqlClient:
    def __init__(self):
        self.long_term_retention_policies = FakeLongTermRetentionPolicies()


@pytest.fixture
def fake_client():
    """SQL client fake with rg1/srv1/db1 provisioned."""
    client = FakeSqlClient()
    client.long_term_retention_policies.add_database("rg1", "srv1", "db1")
    return client


@pytest.fixture
def policies(fake_client):
    return fake_client.long_term_retention_policies


@pytest.fixture
def config():
    return RetentionPolicyConfig(
        database_name="db1",
        resource_group_name="rg1",
        server_name="srv1",
        backup_long_term_retention_policy={
            "weekly_retention": "P1W",
            "monthly_retention": "P1M",
            "yearly_retention": "P1Y",
            "week_of_year": 1,
        },
    )


@pytest.fixture
def policy_id():
    return (
        f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/rg1/providers/Microsoft.Sql"
        "/servers/srv1/databases/db1/backupLongTermRetentionPolicies/default"
    )
