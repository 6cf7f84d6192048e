"""Tests for channel backends and the fault-injecting wrapper."""

from __future__ import annotations

import asyncio
import random

import pytest

from article_enricher.channel import (
    FailureMode,
    LocalFileChannel,
    MemoryChannel,
    RandomFailureSource,
    ScriptedFailureSource,
    UnreliableChannel,
)
from article_enricher.errors import ChannelFailure, EntryNotFound

PAYLOAD = b'{"title": "A", "summary": "S"}'


def _sleeper():
    delays: list[float] = []

    async def fake_sleep(delay):
        delays.append(delay)

    return fake_sleep, delays


def _wrapped(*modes, fraction=0.5, stall_seconds=60.0):
    inner = MemoryChannel({"doc.json": PAYLOAD})
    fake_sleep, delays = _sleeper()
    channel = UnreliableChannel(
        inner,
        ScriptedFailureSource(modes, fraction=fraction),
        stall_seconds=stall_seconds,
        sleep=fake_sleep,
    )
    return channel, inner, delays


def test_local_file_channel_roundtrip(tmp_path):
    channel = LocalFileChannel(tmp_path)
    asyncio.run(channel.write("nested/doc.json", PAYLOAD))

    assert (tmp_path / "nested" / "doc.json").read_bytes() == PAYLOAD
    assert asyncio.run(channel.read("nested/doc.json")) == PAYLOAD


def test_local_file_channel_missing_key(tmp_path):
    with pytest.raises(EntryNotFound):
        asyncio.run(LocalFileChannel(tmp_path).read("missing.json"))


def test_local_file_channel_rejects_escaping_keys(tmp_path):
    with pytest.raises(ValueError):
        LocalFileChannel(tmp_path / "root").path_for("../outside.json")


def test_memory_channel_missing_key():
    with pytest.raises(EntryNotFound):
        asyncio.run(MemoryChannel().read("nope"))


def test_hard_failure_read():
    channel, _, _ = _wrapped(FailureMode.FAIL)
    with pytest.raises(ChannelFailure, match="Read failed"):
        asyncio.run(channel.read("doc.json"))


def test_hard_failure_write_persists_nothing():
    channel, inner, _ = _wrapped(FailureMode.FAIL)
    with pytest.raises(ChannelFailure, match="Write failed"):
        asyncio.run(channel.write("new.json", PAYLOAD))
    assert "new.json" not in inner.entries


def test_stall_waits_then_returns_full_data():
    channel, _, delays = _wrapped(FailureMode.STALL, stall_seconds=60.0)
    assert asyncio.run(channel.read("doc.json")) == PAYLOAD
    assert delays == [60.0]


def test_truncated_read_returns_prefix():
    channel, _, _ = _wrapped(FailureMode.TRUNCATE, fraction=0.5)
    data = asyncio.run(channel.read("doc.json"))
    assert data == PAYLOAD[: len(PAYLOAD) // 2]


def test_truncated_write_persists_prefix():
    channel, inner, _ = _wrapped(FailureMode.TRUNCATE, fraction=0.75)
    asyncio.run(channel.write("new.json", PAYLOAD))
    assert inner.entries["new.json"] == PAYLOAD[: int(len(PAYLOAD) * 0.75)]


def test_success_after_script_is_exhausted():
    channel, _, delays = _wrapped()
    assert asyncio.run(channel.read("doc.json")) == PAYLOAD
    assert delays == []


def test_scripted_source_records_calls():
    source = ScriptedFailureSource([FailureMode.FAIL])
    channel = UnreliableChannel(MemoryChannel({"k": b"v"}), source)
    with pytest.raises(ChannelFailure):
        asyncio.run(channel.read("k"))
    asyncio.run(channel.write("k", b"w"))
    assert source.calls == [
        ("read", "k", FailureMode.FAIL),
        ("write", "k", FailureMode.SUCCEED),
    ]


def test_random_source_bands():
    class _FixedRandom:
        def __init__(self, value):
            self.value = value

        def random(self):
            return self.value

    expectations = {
        0.05: FailureMode.FAIL,
        0.15: FailureMode.STALL,
        0.25: FailureMode.TRUNCATE,
        0.35: FailureMode.SUCCEED,
        0.99: FailureMode.SUCCEED,
    }
    for dice, expected in expectations.items():
        source = RandomFailureSource(rng=_FixedRandom(dice))
        assert source.next_mode("read", "k") is expected


def test_random_source_truncation_fraction_within_bounds():
    source = RandomFailureSource(rng=random.Random(7))
    for _ in range(200):
        assert 0.5 <= source.truncation_fraction() < 0.9


def test_random_source_rejects_impossible_rates():
    with pytest.raises(ValueError):
        RandomFailureSource(fail_rate=0.5, stall_rate=0.5, truncate_rate=0.1)
    with pytest.raises(ValueError):
        RandomFailureSource(truncate_min=0.9, truncate_max=0.5)


def test_random_source_is_reproducible_with_seed():
    first = RandomFailureSource(rng=random.Random(42))
    second = RandomFailureSource(rng=random.Random(42))
    assert [first.next_mode("read", "k") for _ in range(50)] == [
        second.next_mode("read", "k") for _ in range(50)
    ]
