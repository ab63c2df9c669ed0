"""Unit tests for PollingSubscription."""

import asyncio

import pytest

from cockpit.infrastructure.remote import PollingSubscription


@pytest.mark.asyncio
async def test_delivers_initial_and_changed_snapshots_only():
    snapshots = iter([("v1", "a"), ("v1", "a"), ("v2", "b")])
    delivered: list[str] = []
    tick = asyncio.Event()

    async def fetch():
        return next(snapshots, ("v2", "b"))

    async def callback(snapshot):
        delivered.append(snapshot)
        if len(delivered) == 2:
            tick.set()

    subscription = await PollingSubscription(fetch, callback, interval=0.01).start()
    assert delivered == ["a"]

    await asyncio.wait_for(tick.wait(), timeout=2)
    await subscription.close()

    assert delivered == ["a", "b"]


@pytest.mark.asyncio
async def test_polling_errors_do_not_end_the_subscription():
    calls = 0
    recovered = asyncio.Event()

    async def fetch():
        nonlocal calls
        calls += 1
        if calls == 2:
            raise ConnectionError("flaky")
        return calls, calls

    async def callback(snapshot):
        if snapshot >= 3:
            recovered.set()

    subscription = await PollingSubscription(fetch, callback, interval=0.01).start()
    await asyncio.wait_for(recovered.wait(), timeout=2)
    await subscription.close()

    assert calls >= 3


@pytest.mark.asyncio
async def test_close_is_idempotent():
    async def fetch():
        return 1, None

    async def callback(snapshot):
        pass

    subscription = await PollingSubscription(fetch, callback, interval=60).start()
    await subscription.close()
    await subscription.close()
