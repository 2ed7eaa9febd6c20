import asyncio

import pytest

from rpcwire.lifecycle import (
    AlreadyStoppedError,
    FutureDriver,
    StopMonitor,
    with_default_timeout,
    with_timeout,
)


async def _fake_server(monitor: StopMonitor) -> None:
    while not monitor.shutdown_requested():
        await asyncio.sleep(0.01)
    monitor.close()


@pytest.mark.asyncio
async def test_default_timeout_returns_value():
    async def value():
        return "awaited"

    assert await with_default_timeout(value()) == "awaited"


def test_stop_sets_flag():
    monitor = StopMonitor()
    assert monitor.shutdown_requested() is False
    monitor.handle().stop()
    assert monitor.shutdown_requested() is True


@pytest.mark.asyncio
async def test_stop_works():
    monitor = StopMonitor()
    handle = monitor.handle()
    server = asyncio.ensure_future(_fake_server(monitor))
    await with_default_timeout(handle.stop().wait())
    await server
    with pytest.raises(AlreadyStoppedError):
        handle.stop()


def test_stop_after_close_raises():
    monitor = StopMonitor()
    monitor.close()
    with pytest.raises(AlreadyStoppedError):
        monitor.handle().stop()


@pytest.mark.asyncio
async def test_run_forever():
    monitor = StopMonitor()
    server = asyncio.ensure_future(_fake_server(monitor))
    handle = monitor.handle()
    with pytest.raises(asyncio.TimeoutError):
        await with_timeout(handle.wait(), 0.2)
    assert server.done() is False

    waiter = handle.stop()
    results = await with_timeout(asyncio.gather(waiter.wait(), handle), 1.0)
    assert results == [None, None]
    assert server.done() is True


@pytest.mark.asyncio
async def test_context_manager_closes_monitor():
    with StopMonitor() as monitor:
        handle = monitor.handle()
    await with_timeout(handle, 1.0)
    with pytest.raises(AlreadyStoppedError):
        handle.stop()


@pytest.mark.asyncio
async def test_driver_counts_and_drains():
    driver = FutureDriver()
    gate = asyncio.Event()
    finished = []

    async def job(n):
        await gate.wait()
        finished.append(n)

    driver.add(job(1))
    driver.add(job(2))
    await asyncio.sleep(0)
    assert driver.count() == 2
    gate.set()
    await with_default_timeout(driver.drain())
    assert driver.count() == 0
    assert sorted(finished) == [1, 2]


@pytest.mark.asyncio
async def test_select_with_returns_selector_result_while_driving():
    driver = FutureDriver()
    progressed = asyncio.Event()

    async def background():
        progressed.set()

    async def selector():
        await progressed.wait()
        return "done"

    driver.add(background())
    assert await with_default_timeout(driver.select_with(selector())) == "done"
    assert driver.count() == 0


@pytest.mark.asyncio
async def test_drain_swallows_failures():
    driver = FutureDriver()

    async def fails():
        raise RuntimeError("boom")

    driver.add(fails())
    await with_default_timeout(driver)
    assert driver.count() == 0


@pytest.mark.asyncio
async def test_with_timeout_returns_value():
    async def value():
        return 42

    assert await with_timeout(value(), 1.0) == 42