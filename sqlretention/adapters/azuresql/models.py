"""
Typed records for SQL database long-term retention policies.

Validation happens here, at the boundary, so the adapter functions only
ever see names and durations the provider will accept.
"""

from pydantic import BaseModel, Field, field_validator


# ISO-8601 duration, e.g. P1W, P12M, P5Y, P0W
ISO8601_DURATION_PATTERN = (
    r"^P([0-9]+Y)?([0-9]+M)?([0-9]+W)?([0-9]+D)?"
    r"(T([0-9]+H)?([0-9]+M)?([0-9]+(\.?[0-9]+)?S)?)?$"
)

# Lowercase letters, digits and '-', not starting or ending with '-', max 63 chars
SERVER_NAME_PATTERN = r"^[0-9a-z]([-0-9a-z]{0,61}[0-9a-z])?$"

RESOURCE_GROUP_PATTERN = r"^[-\w\._\(\)]+$"

DISABLED_RETENTION = "P0W"
DEFAULT_WEEK_OF_YEAR = 1


class RetentionSettings(BaseModel):
    """Weekly/monthly/yearly retention plus the week used for yearly backups."""
    weekly_retention: str = Field(
        default=DISABLED_RETENTION,
        pattern=ISO8601_DURATION_PATTERN,
        description="Weekly retention in ISO-8601 duration format",
        examples=["P1W", "P12W"]
    )
    monthly_retention: str = Field(
        default=DISABLED_RETENTION,
        pattern=ISO8601_DURATION_PATTERN,
        description="Monthly retention in ISO-8601 duration format",
        examples=["P1M", "P12M"]
    )
    yearly_retention: str = Field(
        default=DISABLED_RETENTION,
        pattern=ISO8601_DURATION_PATTERN,
        description="Yearly retention in ISO-8601 duration format",
        examples=["P1Y", "P5Y"]
    )
    week_of_year: int = Field(
        default=DEFAULT_WEEK_OF_YEAR,
        ge=1,
        le=52,
        description="Week of year whose backup is kept for yearly retention"
    )

    @field_validator("weekly_retention", "monthly_retention", "yearly_retention")
    @classmethod
    def _not_bare_period(cls, v: str) -> str:
        # The pattern alone accepts "P" and "PT"
        if v in ("P", "PT") or v.endswith("T"):
            raise ValueError(f"{v!r} is not a valid ISO-8601 duration")
        return v

    @classmethod
    def disabled(cls) -> "RetentionSettings":
        """The canonical 'no retention' tuple used when a policy is removed."""
        return cls(
            weekly_retention=DISABLED_RETENTION,
            monthly_retention=DISABLED_RETENTION,
            yearly_retention=DISABLED_RETENTION,
            week_of_year=DEFAULT_WEEK_OF_YEAR
        )


class RetentionPolicyConfig(BaseModel):
    """Desired state for one database's long-term retention policy."""
    database_name: str = Field(..., min_length=1, description="Name of the SQL database")
    resource_group_name: str = Field(
        ...,
        min_length=1,
        max_length=90,
        pattern=RESOURCE_GROUP_PATTERN,
        description="Resource group containing the SQL server"
    )
    server_name: str = Field(
        ...,
        pattern=SERVER_NAME_PATTERN,
        description="Name of the SQL server",
        examples=["srv1"]
    )
    backup_long_term_retention_policy: RetentionSettings = Field(default_factory=RetentionSettings)

    @field_validator("database_name")
    @classmethod
    def _database_name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("database_name must not be empty")
        return v

    @field_validator("resource_group_name")
    @classmethod
    def _resource_group_not_trailing_period(cls, v: str) -> str:
        if v.endswith("."):
            raise ValueError("resource_group_name cannot end with a period")
        return v


class RetentionPolicyState(RetentionPolicyConfig):
    """A configured policy as last observed remotely, keyed by its resource ID."""
    id: str = Field(..., description="Provider resource ID of the policy")
