from typing import Optional

from pydantic import BaseModel, Field, model_validator

from idgen.core.config import settings


class IDResponse(BaseModel):
    """Response model for a single generated ID.

    Args:
        id (str): The generated Snowflake ID as a decimal string.
    """

    id: str = Field(
        ...,
        description="Generated Snowflake ID as a decimal string",
        examples=["1187950593024"],
    )


class CreateIDBatch(BaseModel):
    """Request model for generating a batch of IDs.

    Args:
        count (int): Number of IDs to generate.
    """

    count: int = Field(
        ...,
        description="Number of IDs to generate",
        examples=[10],
    )

    @model_validator(mode="after")
    def validate_count(cls, values):
        """Validate the batch size against the configured maximum."""

        if values.count < 1:
            raise ValueError("Count must be at least 1.")

        if values.count > settings.MAX_BATCH_SIZE:
            raise ValueError(
                f"Count must not exceed {settings.MAX_BATCH_SIZE}."
            )

        return values


class IDBatchResponse(BaseModel):
    """Response model for a batch of generated IDs.

    Args:
        ids (list[str]): Generated IDs in increasing order.
    """

    ids: list[str] = Field(
        ...,
        description="Generated Snowflake IDs in increasing order",
        examples=[["1187950593024", "1187950593025"]],
    )


class ParsedID(BaseModel):
    """Response model for a decoded Snowflake ID."""

    id: str
    timestamp: int = Field(..., description="Unix timestamp in seconds")
    datetime: str = Field(..., description="UTC timestamp in ISO 8601 format")
    datacenter_id: int
    worker_id: int
    sequence: int


class HealthResponse(BaseModel):
    """Response model for the health endpoint."""

    status: str
    env: str
    epoch: int
    datacenter_id: Optional[int] = Field(
        None, description="Datacenter ID in use, null until the first ID is issued"
    )
    worker_id: Optional[int] = Field(
        None, description="Worker ID in use, null until the first ID is issued"
    )
