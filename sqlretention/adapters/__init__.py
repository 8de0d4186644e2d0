"""
Adapters layer for external system integrations.

This package contains adapters that wrap external services with clean,
normalized interfaces. Adapters handle authentication, long-running
operation waits and data normalization; they do not retry.

Organization:
- azuresql/: Azure SQL management operations (long-term retention policies)
"""
