"""Tests for rb_common.id_generator and rb_common.datetime_utils."""

from datetime import datetime, timedelta, timezone

import pytest

from src.rb_common.datetime_utils import ensure_utc, utc_now
from src.rb_common.id_generator import (
    COUNTER_BITS,
    EPOCH_MS,
    MAX_COUNTER,
    IdGenerator,
    generate_id,
)


class TestIdGenerator:
    def test_unique_and_increasing(self) -> None:
        gen = IdGenerator(worker=1)
        ids = [int(gen.next_id()) for _ in range(1000)]
        assert len(set(ids)) == 1000
        assert ids == sorted(ids)

    def test_rejects_out_of_range_worker(self) -> None:
        with pytest.raises(ValueError):
            IdGenerator(worker=1024)

    def test_worker_is_encoded(self) -> None:
        gen = IdGenerator(worker=7, clock=lambda: EPOCH_MS + 5)
        value = int(gen.next_id())
        assert (value >> COUNTER_BITS) & 0x3FF == 7

    def test_counter_overflow_moves_to_next_millisecond(self) -> None:
        gen = IdGenerator(clock=lambda: EPOCH_MS + 10)
        ids = [int(gen.next_id()) for _ in range(MAX_COUNTER + 2)]
        assert ids == sorted(ids)
        assert len(set(ids)) == len(ids)

    def test_clock_going_backwards_keeps_order(self) -> None:
        ticks = iter([EPOCH_MS + 100, EPOCH_MS + 90])
        gen = IdGenerator(clock=lambda: next(ticks))
        first, second = int(gen.next_id()), int(gen.next_id())
        assert second > first

    def test_module_helper_returns_digits(self) -> None:
        assert generate_id().isdigit()


class TestDatetimeUtils:
    def test_utc_now_is_aware(self) -> None:
        assert utc_now().tzinfo == timezone.utc

    def test_naive_is_assumed_utc(self) -> None:
        naive = datetime(2026, 1, 1, 12, 0)
        assert ensure_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_offset_is_converted(self) -> None:
        tunis = timezone(timedelta(hours=1))
        value = ensure_utc(datetime(2026, 1, 1, 12, 0, tzinfo=tunis))
        assert value.hour == 11
        assert value.tzinfo == timezone.utc
