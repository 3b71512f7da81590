"""
Snowflake Identity Resolution Module

Resolves the (datacenter_id, worker_id) pair a generator stamps into every ID.
Each field is resolved independently, in order of precedence:

    1. An explicit value supplied by the caller
    2. The SNOWFLAKE_DATACENTER_ID / SNOWFLAKE_WORKER_ID environment settings
    3. A deterministic fallback derived from the host and the process:
       - datacenter_id: CRC32 of the host name, modulo 8
       - worker_id: process ID, modulo 8

Every value, whatever its source, is masked to its low 3 bits, so values above
7 truncate silently instead of raising.

Uniqueness only holds while exactly one generator is active per
(datacenter_id, worker_id) pair. The fallback derivation makes collisions
between hosts or processes possible; deployments running more than one
generator should pin both values through the environment.
"""

import os
import socket
import zlib
from dataclasses import dataclass
from typing import Optional

from idgen.core.config import Settings
from idgen.services.logger import setup_logger

logger = setup_logger()

ID_BITS = 3
ID_MASK = (1 << ID_BITS) - 1


@dataclass(frozen=True)
class Identity:
    """The namespace a generator instance mints IDs in.

    Attributes:
        datacenter_id: Datacenter identifier (0-7).
        worker_id: Worker identifier within the datacenter (0-7).
    """

    datacenter_id: int
    worker_id: int


def mask_id(value: int) -> int:
    """Truncates a datacenter or worker ID to its low 3 bits."""
    return int(value) & ID_MASK


def default_datacenter_id() -> int:
    """Derives a datacenter ID from the CRC32 hash of the host name."""
    hostname = socket.gethostname()
    if not hostname:
        return 0
    return zlib.crc32(hostname.encode("utf-8")) % 8


def default_worker_id() -> int:
    """Derives a worker ID from the current process ID."""
    return os.getpid() % 8


def _resolve_one(
    explicit: Optional[int], configured: Optional[int], fallback
) -> tuple[int, str]:
    if explicit is not None:
        return mask_id(explicit), "argument"
    if configured is not None:
        return mask_id(configured), "environment"
    return mask_id(fallback()), "derived"


def resolve_identity(
    datacenter_id: Optional[int] = None,
    worker_id: Optional[int] = None,
    config: Optional[Settings] = None,
) -> Identity:
    """Resolves the datacenter and worker IDs for a generator.

    Args:
        datacenter_id: Explicit datacenter ID, masked to 3 bits when given.
        worker_id: Explicit worker ID, masked to 3 bits when given.
        config: Settings to read overrides from. A fresh ``Settings`` is built
            when omitted so the environment is read at resolution time.

    Returns:
        The resolved Identity.
    """
    if config is None:
        config = Settings()

    resolved_datacenter_id, datacenter_source = _resolve_one(
        datacenter_id, config.SNOWFLAKE_DATACENTER_ID, default_datacenter_id
    )
    resolved_worker_id, worker_source = _resolve_one(
        worker_id, config.SNOWFLAKE_WORKER_ID, default_worker_id
    )

    logger.info(
        "Resolved Snowflake identity: datacenter_id=%d (%s), worker_id=%d (%s)",
        resolved_datacenter_id,
        datacenter_source,
        resolved_worker_id,
        worker_source,
    )

    return Identity(resolved_datacenter_id, resolved_worker_id)
