import zlib

import pytest

from idgen.core.config import Settings
from idgen.utils import identity
from idgen.utils.identity import (
    Identity,
    default_datacenter_id,
    default_worker_id,
    mask_id,
    resolve_identity,
)


@pytest.mark.parametrize(
    "value, expected",
    [(0, 0), (7, 7), (8, 0), (11, 3), (255, 7), (-1, 7)],
)
def test_mask_id_keeps_low_three_bits(value, expected):
    assert mask_id(value) == expected


def test_default_datacenter_id_hashes_hostname(monkeypatch):
    monkeypatch.setattr(identity.socket, "gethostname", lambda: "node-a")

    assert default_datacenter_id() == zlib.crc32(b"node-a") % 8


def test_default_datacenter_id_is_stable(monkeypatch):
    monkeypatch.setattr(identity.socket, "gethostname", lambda: "worker-17.internal")

    assert default_datacenter_id() == default_datacenter_id()


def test_default_datacenter_id_without_hostname(monkeypatch):
    monkeypatch.setattr(identity.socket, "gethostname", lambda: "")

    assert default_datacenter_id() == 0


def test_default_worker_id_uses_pid(monkeypatch):
    monkeypatch.setattr(identity.os, "getpid", lambda: 4242)

    assert default_worker_id() == 4242 % 8


class TestResolveIdentity:
    def test_explicit_values_win(self, monkeypatch):
        monkeypatch.setenv("SNOWFLAKE_DATACENTER_ID", "1")
        monkeypatch.setenv("SNOWFLAKE_WORKER_ID", "1")

        resolved = resolve_identity(datacenter_id=5, worker_id=6)

        assert resolved == Identity(datacenter_id=5, worker_id=6)

    def test_explicit_zero_is_honoured(self, monkeypatch):
        monkeypatch.setenv("SNOWFLAKE_DATACENTER_ID", "4")

        resolved = resolve_identity(datacenter_id=0, worker_id=0)

        assert resolved == Identity(0, 0)

    def test_environment_values_are_masked(self, monkeypatch):
        monkeypatch.setenv("SNOWFLAKE_DATACENTER_ID", "10")
        monkeypatch.setenv("SNOWFLAKE_WORKER_ID", "15")

        assert resolve_identity() == Identity(2, 7)

    def test_fields_resolve_independently(self, monkeypatch):
        monkeypatch.delenv("SNOWFLAKE_DATACENTER_ID", raising=False)
        monkeypatch.setenv("SNOWFLAKE_WORKER_ID", "3")
        monkeypatch.setattr(identity.socket, "gethostname", lambda: "node-a")

        resolved = resolve_identity()

        assert resolved == Identity(zlib.crc32(b"node-a") % 8, 3)

    def test_empty_environment_value_falls_back(self, monkeypatch):
        monkeypatch.setenv("SNOWFLAKE_DATACENTER_ID", "")
        monkeypatch.setenv("SNOWFLAKE_WORKER_ID", "")
        monkeypatch.setattr(identity.socket, "gethostname", lambda: "node-b")
        monkeypatch.setattr(identity.os, "getpid", lambda: 13)

        assert resolve_identity() == Identity(zlib.crc32(b"node-b") % 8, 5)

    def test_explicit_config_is_used(self, monkeypatch):
        monkeypatch.delenv("SNOWFLAKE_DATACENTER_ID", raising=False)
        monkeypatch.delenv("SNOWFLAKE_WORKER_ID", raising=False)
        config = Settings(
            _env_file=None, SNOWFLAKE_DATACENTER_ID=6, SNOWFLAKE_WORKER_ID=2
        )

        assert resolve_identity(config=config) == Identity(6, 2)
