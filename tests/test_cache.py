"""Tests for the single-slot TTL holder."""

from __future__ import annotations

from conftest import FakeClock
from sqlgate.cache import TimedSlot


def test_empty_slot_returns_none(clock: FakeClock) -> None:
    slot: TimedSlot[list[int]] = TimedSlot(10.0, clock=clock)

    assert slot.get() is None
    assert slot.entry is None


def test_value_served_until_ttl_elapses(clock: FakeClock) -> None:
    slot: TimedSlot[list[int]] = TimedSlot(10.0, clock=clock)
    value = [1, 2, 3]

    slot.put(value)
    clock.advance(9.9)
    assert slot.get() is value

    clock.advance(0.1)
    assert slot.get() is None


def test_put_restamps_entry(clock: FakeClock) -> None:
    slot: TimedSlot[str] = TimedSlot(10.0, clock=clock)
    slot.put("old")
    clock.advance(15)

    slot.put("new")

    assert slot.get() == "new"
    assert slot.entry is not None and slot.entry.fetched_at == clock.now


def test_clear_drops_entry(clock: FakeClock) -> None:
    slot: TimedSlot[str] = TimedSlot(10.0, clock=clock)
    slot.put("value")

    slot.clear()

    assert slot.get() is None
