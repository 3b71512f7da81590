"""
Snowflake ID Generator Module

A compact variant of Twitter's Snowflake algorithm producing unique,
time-ordered 48-bit identifiers with second resolution. IDs are returned as
decimal strings of at most 14 digits, short enough for URLs and for columns
that cannot hold a full 64-bit integer.

Algorithm Overview:
    The generator packs four fields into a 48-bit value:

    |        32 bits         |    3 bits     |  3 bits   |  10 bits  |
    |       timestamp        | datacenter_id | worker_id | sequence  |
    | seconds since epoch    |      0-7      |    0-7    |  0-1023   |

    - Timestamp: 32 bits = ~136 years of seconds from 2025-01-01T00:00:00Z
    - Datacenter ID: 3 bits = 8 datacenters
    - Worker ID: 3 bits = 8 workers per datacenter
    - Sequence: 10 bits = 1024 IDs per second per (datacenter, worker) pair

Key Features:
    - **Unique**: One active generator per (datacenter, worker) pair never
      emits the same ID twice
    - **Time-ordered**: IDs from one generator are strictly increasing
    - **Thread-safe**: A lock serialises the timestamp/sequence update
    - **Never fails**: Clock anomalies are absorbed by waiting, not raising

Clock Considerations:
    - Before the epoch: waits until the epoch has passed
    - Clock moved backward: waits for the deficit plus one second
    - Sequence exhausted: polls every 100ms until the next second

    Waits happen outside the lock and the state is only mutated when an ID is
    emitted, so a sleeping caller never holds up the others while the
    (timestamp, sequence) order stays strict. There is no timeout: a
    persistently wrong clock blocks callers indefinitely rather than risk a
    duplicate or out-of-order ID.

Identity:
    The (datacenter_id, worker_id) pair is resolved lazily on the first call
    and frozen for the lifetime of the instance. Arguments passed to later
    calls are ignored. See ``idgen.utils.identity`` for resolution order.
"""

import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from idgen.core.config import Settings
from idgen.core.exceptions import InvalidSnowflakeIDError
from idgen.services.logger import setup_logger
from idgen.utils.identity import Identity, resolve_identity

logger = setup_logger()

# 2025-01-01T00:00:00Z
EPOCH = 1735689600


def _system_clock() -> int:
    return int(time.time())


class SnowflakeIDGenerator:
    """A thread-safe generator of 48-bit, second-resolution Snowflake IDs.

    Attributes:
        epoch: The custom epoch in seconds.
    """

    TIMESTAMP_BITS = 32
    DATACENTER_ID_BITS = 3
    WORKER_ID_BITS = 3
    SEQUENCE_BITS = 10
    MAX_TIMESTAMP = (1 << TIMESTAMP_BITS) - 1
    MAX_DATACENTER_ID = (1 << DATACENTER_ID_BITS) - 1
    MAX_WORKER_ID = (1 << WORKER_ID_BITS) - 1
    MAX_SEQUENCE = (1 << SEQUENCE_BITS) - 1
    WORKER_ID_SHIFT = SEQUENCE_BITS
    DATACENTER_ID_SHIFT = SEQUENCE_BITS + WORKER_ID_BITS
    TIMESTAMP_SHIFT = SEQUENCE_BITS + WORKER_ID_BITS + DATACENTER_ID_BITS
    ID_BITS = TIMESTAMP_SHIFT + TIMESTAMP_BITS

    SEQUENCE_POLL_INTERVAL = 0.1

    def __init__(
        self,
        datacenter_id: Optional[int] = None,
        worker_id: Optional[int] = None,
        epoch: int = EPOCH,
        config: Optional[Settings] = None,
        clock: Optional[Callable[[], int]] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """Initializes a new Snowflake ID generator instance.

        Nothing is resolved here; the identity is fixed on the first call to
        ``next_id``.

        Args:
            datacenter_id: Default explicit datacenter ID for the first
                resolution.
            worker_id: Default explicit worker ID for the first resolution.
            epoch: The custom epoch in seconds.
            config: Settings used for environment overrides during resolution.
            clock: Callable returning the current unix time in whole seconds.
            sleep: Callable blocking for the given number of seconds.
        """
        self.epoch = epoch
        self.sequence = 0
        self.last_timestamp = 0
        self.lock = threading.Lock()

        self._default_datacenter_id = datacenter_id
        self._default_worker_id = worker_id
        self._config = config
        self._clock = clock or _system_clock
        self._sleep = sleep or time.sleep
        self._identity: Optional[Identity] = None

    def _current_timestamp(self) -> int:
        """Returns the current timestamp in whole seconds."""
        return int(self._clock())

    def _ensure_identity(
        self, datacenter_id: Optional[int], worker_id: Optional[int]
    ) -> Identity:
        # Caller must hold self.lock.
        if self._identity is None:
            self._identity = resolve_identity(
                datacenter_id=(
                    datacenter_id
                    if datacenter_id is not None
                    else self._default_datacenter_id
                ),
                worker_id=worker_id if worker_id is not None else self._default_worker_id,
                config=self._config,
            )
        return self._identity

    @property
    def identity(self) -> Optional[Identity]:
        """The frozen identity, or None until the first ID has been issued.

        Reading it never triggers resolution, so the explicit IDs passed to
        the first ``next_id`` call are always honoured.
        """
        with self.lock:
            return self._identity

    @property
    def datacenter_id(self) -> Optional[int]:
        identity = self.identity
        return identity.datacenter_id if identity is not None else None

    @property
    def worker_id(self) -> Optional[int]:
        identity = self.identity
        return identity.worker_id if identity is not None else None

    def compose(
        self, elapsed: int, datacenter_id: int, worker_id: int, sequence: int
    ) -> int:
        """Packs the four ID fields into a 48-bit integer."""
        return (
            ((elapsed & self.MAX_TIMESTAMP) << self.TIMESTAMP_SHIFT)
            | ((datacenter_id & self.MAX_DATACENTER_ID) << self.DATACENTER_ID_SHIFT)
            | ((worker_id & self.MAX_WORKER_ID) << self.WORKER_ID_SHIFT)
            | (sequence & self.MAX_SEQUENCE)
        )

    def _try_generate(
        self, datacenter_id: Optional[int], worker_id: Optional[int]
    ) -> tuple[Optional[int], float]:
        """Attempts to emit one ID under the lock.

        Returns:
            ``(snowflake_id, 0)`` on success, or ``(None, seconds)`` when the
            caller has to sleep before retrying.
        """
        with self.lock:
            identity = self._ensure_identity(datacenter_id, worker_id)
            timestamp = self._current_timestamp()

            if timestamp < self.epoch:
                wait = self.epoch - timestamp + 1
                logger.warning(
                    "Clock is %d seconds before the epoch, waiting %d seconds",
                    self.epoch - timestamp,
                    wait,
                )
                return None, wait

            if timestamp < self.last_timestamp:
                wait = self.last_timestamp - timestamp + 1
                logger.warning(
                    "Clock moved backward by %d seconds, waiting %d seconds",
                    self.last_timestamp - timestamp,
                    wait,
                )
                return None, wait

            if timestamp == self.last_timestamp:
                if self.sequence >= self.MAX_SEQUENCE:
                    logger.debug(
                        "Sequence exhausted for second %d, waiting for the next second",
                        timestamp,
                    )
                    return None, self.SEQUENCE_POLL_INTERVAL
                self.sequence += 1
            else:
                self.sequence = 0

            self.last_timestamp = timestamp

            return (
                self.compose(
                    timestamp - self.epoch,
                    identity.datacenter_id,
                    identity.worker_id,
                    self.sequence,
                ),
                0,
            )

    def generate_id(
        self, datacenter_id: Optional[int] = None, worker_id: Optional[int] = None
    ) -> int:
        """Generates a new unique Snowflake ID as an integer.

        Blocks while the clock is before the epoch, has moved backward, or the
        current second's sequence is exhausted.

        Args:
            datacenter_id: Explicit datacenter ID, honoured on the first call only.
            worker_id: Explicit worker ID, honoured on the first call only.

        Returns:
            A 48-bit unique Snowflake ID.
        """
        while True:
            snowflake_id, wait = self._try_generate(datacenter_id, worker_id)
            if snowflake_id is not None:
                return snowflake_id
            self._sleep(wait)

    def next_id(
        self, datacenter_id: Optional[int] = None, worker_id: Optional[int] = None
    ) -> str:
        """Generates a new unique Snowflake ID as a decimal string.

        Args:
            datacenter_id: Explicit datacenter ID, honoured on the first call only.
            worker_id: Explicit worker ID, honoured on the first call only.

        Returns:
            The ID as a decimal digit string of at most 14 characters.
        """
        return str(self.generate_id(datacenter_id, worker_id))

    def parse_id(self, snowflake_id: Union[int, str]) -> dict:
        """Decodes a Snowflake ID into its fields.

        Args:
            snowflake_id: The ID as an integer or decimal string.

        Returns:
            A dict with the unix ``timestamp``, its UTC ``datetime``, the
            ``datacenter_id``, ``worker_id``, ``sequence`` and the ``id``.

        Raises:
            InvalidSnowflakeIDError: If the value is not a non-negative
                integer that fits in 48 bits.
        """
        if isinstance(snowflake_id, str):
            if not snowflake_id.isdigit() or not snowflake_id.isascii():
                raise InvalidSnowflakeIDError(
                    f"Snowflake ID must be a decimal string, got {snowflake_id!r}"
                )
            value = int(snowflake_id)
        elif isinstance(snowflake_id, int) and not isinstance(snowflake_id, bool):
            value = snowflake_id
        else:
            raise InvalidSnowflakeIDError(
                f"Snowflake ID must be an int or str, got {type(snowflake_id).__name__}"
            )

        if not 0 <= value < (1 << self.ID_BITS):
            raise InvalidSnowflakeIDError(
                f"Snowflake ID must fit in {self.ID_BITS} bits, got {value}"
            )

        timestamp = (value >> self.TIMESTAMP_SHIFT) + self.epoch

        return {
            "id": str(value),
            "timestamp": timestamp,
            "datetime": datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat(),
            "datacenter_id": (value >> self.DATACENTER_ID_SHIFT) & self.MAX_DATACENTER_ID,
            "worker_id": (value >> self.WORKER_ID_SHIFT) & self.MAX_WORKER_ID,
            "sequence": value & self.MAX_SEQUENCE,
        }


_snowflake_generator: Optional[SnowflakeIDGenerator] = None
_generator_lock = threading.Lock()


def get_snowflake_generator() -> SnowflakeIDGenerator:
    """Returns the process-wide generator, creating it on first use."""
    global _snowflake_generator

    if _snowflake_generator is None:
        with _generator_lock:
            if _snowflake_generator is None:
                _snowflake_generator = SnowflakeIDGenerator()

    return _snowflake_generator
