"""Tests for qm_common.id_generator and qm_common.datetime_utils."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from src.qm_common.datetime_utils import as_utc, utc_now
from src.qm_common.id_generator import (
    SnowflakeIdGenerator,
    generate_delivery_code,
    generate_session_token,
)


class TestSnowflakeIdGenerator:
    def test_returns_str(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        assert isinstance(gen.next_id(), str)

    def test_unique_ids(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        ids = {gen.next_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_monotonically_increasing(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        prev = int(gen.next_id())
        for _ in range(100):
            current = int(gen.next_id())
            assert current > prev
            prev = current

    def test_rejects_out_of_range_worker_id(self) -> None:
        with pytest.raises(ValueError):
            SnowflakeIdGenerator(machine_id=1024)


class TestOpaqueIds:
    def test_session_token_prefix_and_uniqueness(self) -> None:
        tokens = {generate_session_token() for _ in range(200)}
        assert len(tokens) == 200
        assert all(t.startswith("qr_") for t in tokens)

    def test_delivery_code_is_numeric(self) -> None:
        code = generate_delivery_code()
        assert len(code) == 6
        assert code.isdigit()

    def test_delivery_code_length(self) -> None:
        assert len(generate_delivery_code(digits=4)) == 4


class TestUtc:
    def test_returns_aware_datetime(self) -> None:
        now = utc_now()
        assert isinstance(now, datetime)
        assert now.tzinfo == UTC

    def test_as_utc_attaches_tz_to_naive(self) -> None:
        naive = datetime(2026, 3, 2, 9, 0)
        assert as_utc(naive) == datetime(2026, 3, 2, 9, 0, tzinfo=UTC)

    def test_as_utc_converts_offsets(self) -> None:
        plus_two = datetime(2026, 3, 2, 11, 0, tzinfo=timezone(timedelta(hours=2)))
        assert as_utc(plus_two) == datetime(2026, 3, 2, 9, 0, tzinfo=UTC)

    def test_as_utc_none(self) -> None:
        assert as_utc(None) is None
