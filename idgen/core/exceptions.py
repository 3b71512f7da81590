class InvalidSnowflakeIDError(ValueError):
    """Raised when a value cannot be decoded as a Snowflake ID."""

    pass
