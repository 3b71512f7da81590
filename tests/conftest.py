import pytest

from idgen.core.config import Settings
from idgen.utils.snowflake import EPOCH


class FakeClock:
    """Controllable wall clock; ``sleep`` advances time instead of blocking."""

    def __init__(self, now: float):
        self.now = now
        self.sleeps = []

    def __call__(self) -> int:
        return int(self.now)

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock(EPOCH + 1_000_000)


@pytest.fixture
def empty_config(monkeypatch):
    monkeypatch.delenv("SNOWFLAKE_DATACENTER_ID", raising=False)
    monkeypatch.delenv("SNOWFLAKE_WORKER_ID", raising=False)
    return Settings(_env_file=None)
