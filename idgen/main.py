"""
FastAPI Snowflake ID Service

A small HTTP service handing out unique, time-ordered Snowflake IDs. Each
process owns one generator; the (datacenter_id, worker_id) pair it stamps into
IDs is resolved on the first request and stays fixed for the process lifetime.

Key Features:
    - Single ID generation
    - Batch ID generation, strictly increasing within the batch
    - Decoding of an ID back into timestamp, identity and sequence
    - CORS middleware support for cross-origin requests

Architecture:
    - FastAPI for the web framework and automatic API documentation
    - Snowflake ID generator for unique, distributed ID creation
    - Structured logging for monitoring and debugging

Deployment:
    Run exactly one process per (datacenter_id, worker_id) pair and pin both
    through SNOWFLAKE_DATACENTER_ID / SNOWFLAKE_WORKER_ID when more than one
    process is deployed. Generating endpoints are plain ``def`` handlers so the
    generator's blocking waits run in the threadpool instead of the event loop.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Path, Query, status
from fastapi.middleware.cors import CORSMiddleware

from idgen.core.config import settings
from idgen.core.exceptions import InvalidSnowflakeIDError
from idgen.core.schema import (
    CreateIDBatch,
    HealthResponse,
    IDBatchResponse,
    IDResponse,
    ParsedID,
)
from idgen.services.logger import setup_logger
from idgen.utils.snowflake import SnowflakeIDGenerator, get_snowflake_generator

logger = setup_logger()


def get_generator() -> SnowflakeIDGenerator:
    """
    Returns the process-wide Snowflake ID generator.
    """
    return get_snowflake_generator()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan event handler.

    Args:
        app (FastAPI): The FastAPI application instance

    Yields:
        None: Control to the application during its lifetime
    """
    logger.info("Starting Snowflake ID service (env=%s)", settings.ENV)

    yield

    logger.info("Application is shutting down.")


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.post(
    "/ids",
    status_code=status.HTTP_201_CREATED,
    response_model=IDResponse,
    summary="Generate a Snowflake ID",
    description="""
    Generate a single unique Snowflake ID.

    The optional datacenter_id and worker_id are masked to their low 3 bits and
    only take effect if this is the first ID the process issues; afterwards the
    identity is fixed. The request blocks while the generator waits for the
    clock, e.g. after a backward clock adjustment or when the 1024 IDs of the
    current second are used up.
    """,
    responses={
        201: {
            "description": "ID generated successfully",
            "content": {"application/json": {"example": {"id": "1187950593024"}}},
        },
    },
)
def create_id(
    datacenter_id: Optional[int] = Query(
        None, description="Datacenter ID, masked to 3 bits, honoured on first use only"
    ),
    worker_id: Optional[int] = Query(
        None, description="Worker ID, masked to 3 bits, honoured on first use only"
    ),
    generator: SnowflakeIDGenerator = Depends(get_generator),
):
    """Generate one Snowflake ID.

    Args:
        datacenter_id (Optional[int]): Explicit datacenter ID.
        worker_id (Optional[int]): Explicit worker ID.
        generator (SnowflakeIDGenerator): The process-wide generator.

    Returns:
        IDResponse: The generated ID.
    """
    return IDResponse(id=generator.next_id(datacenter_id, worker_id))


@app.post(
    "/ids/batch",
    status_code=status.HTTP_201_CREATED,
    response_model=IDBatchResponse,
    summary="Generate Snowflake IDs in batch",
    description="""
    Generate several Snowflake IDs in a single request.

    IDs are returned in the order they were minted, so the list is strictly
    increasing. Batches larger than the remaining sequence space of the current
    second block until the next second.
    """,
)
def create_ids(
    batch: CreateIDBatch,
    generator: SnowflakeIDGenerator = Depends(get_generator),
):
    """Generate a batch of Snowflake IDs.

    Args:
        batch (CreateIDBatch): The request body containing the batch size.
        generator (SnowflakeIDGenerator): The process-wide generator.

    Returns:
        IDBatchResponse: The generated IDs.
    """
    ids = [generator.next_id() for _ in range(batch.count)]
    logger.debug("Generated batch of %d IDs", len(ids))
    return IDBatchResponse(ids=ids)


@app.get(
    "/ids/{snowflake_id}",
    response_model=ParsedID,
    summary="Decode a Snowflake ID",
    responses={
        400: {
            "description": "Value is not a valid Snowflake ID",
            "content": {
                "application/json": {
                    "example": {"detail": "Snowflake ID must fit in 48 bits"}
                }
            },
        },
    },
)
async def read_id(
    snowflake_id: str = Path(
        ...,
        description="The Snowflake ID to decode",
        examples=["1187950593024"],
    ),
    generator: SnowflakeIDGenerator = Depends(get_generator),
):
    """Decode a Snowflake ID into its timestamp, identity and sequence.

    Args:
        snowflake_id (str): The ID as a decimal string.
        generator (SnowflakeIDGenerator): The process-wide generator.

    Returns:
        ParsedID: The decoded fields.
    """
    try:
        return ParsedID(**generator.parse_id(snowflake_id))
    except InvalidSnowflakeIDError as e:
        logger.warning("Invalid Snowflake ID: %s", e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health",
    description="""
    Report the service status, the epoch and the identity in use.

    Reading this endpoint never fixes the identity. datacenter_id and worker_id
    are null until the first ID has been issued, so the explicit values passed
    to the first POST /ids still take effect.
    """,
)
def health(generator: SnowflakeIDGenerator = Depends(get_generator)):
    """Report service health.

    Args:
        generator (SnowflakeIDGenerator): The process-wide generator.

    Returns:
        HealthResponse: Status, environment, epoch and the resolved identity.
    """
    identity = generator.identity
    return HealthResponse(
        status="ok",
        env=settings.ENV,
        epoch=generator.epoch,
        datacenter_id=identity.datacenter_id if identity else None,
        worker_id=identity.worker_id if identity else None,
    )
