"""Tests for coalescing bursts of rebuild requests."""

from __future__ import annotations

import asyncio

import pytest

from pagesmith.debounce import Debouncer


@pytest.mark.asyncio
async def test_burst_runs_once_with_merged_arguments() -> None:
    calls: list[list[str]] = []

    async def rebuild(paths: list[str]) -> int:
        calls.append(paths)
        return len(paths)

    debounced = Debouncer(rebuild, delay=0.02)
    first = debounced(["a.md"])
    await asyncio.sleep(0.005)
    second = debounced(["b.md", "a.md"])

    assert first is second, "callers of one burst share a future"
    assert await second == 2
    assert calls == [["a.md", "b.md"]], f"unexpected calls {calls!r}"


@pytest.mark.asyncio
async def test_calls_after_quiet_period_start_a_new_burst() -> None:
    calls: list[list[str]] = []

    async def rebuild(paths: list[str]) -> None:
        calls.append(paths)

    debounced = Debouncer(rebuild, delay=0.01)
    await debounced(["a.md"])
    await debounced(["b.md"])

    assert calls == [["a.md"], ["b.md"]]


@pytest.mark.asyncio
async def test_failures_reach_every_caller() -> None:
    async def rebuild(_paths: list[str]) -> None:
        msg = "rebuild failed"
        raise RuntimeError(msg)

    debounced = Debouncer(rebuild, delay=0.01)
    future = debounced(["a.md"])

    with pytest.raises(RuntimeError, match="rebuild failed"):
        await future


@pytest.mark.asyncio
async def test_cancel_drops_pending_arguments() -> None:
    async def rebuild(_paths: list[str]) -> None:
        pytest.fail("cancelled burst must not run")

    debounced = Debouncer(rebuild, delay=0.01)
    future = debounced(["a.md"])
    debounced.cancel()
    await asyncio.sleep(0.03)

    assert future.cancelled()
    assert debounced.pending == []
