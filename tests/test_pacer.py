# tests/test_pacer.py
import asyncio

from jobharvest.fetchers.pacer import Pacer

from fakes import FakeClock


def test_first_wait_does_not_sleep():
    clock = FakeClock()
    pacer = Pacer(min_interval_s=1.1, clock=clock, sleep=clock.sleep)

    released = asyncio.run(pacer.wait())

    assert released == 100.0
    assert clock.sleeps == []


def test_concurrent_waits_are_separated_by_interval():
    clock = FakeClock()
    pacer = Pacer(min_interval_s=1.1, clock=clock, sleep=clock.sleep)

    async def scenario():
        return await asyncio.gather(*(pacer.wait() for _ in range(6)))

    stamps = sorted(asyncio.run(scenario()))

    assert len(set(stamps)) == 6
    for earlier, later in zip(stamps, stamps[1:]):
        assert later - earlier >= 1.1 - 1e-9


def test_wait_after_long_idle_releases_immediately():
    clock = FakeClock()
    pacer = Pacer(min_interval_s=1.0, clock=clock, sleep=clock.sleep)

    async def scenario():
        await pacer.wait()
        clock.now += 5.0
        await pacer.wait()

    asyncio.run(scenario())

    assert clock.sleeps == []


def test_only_remaining_interval_is_slept():
    clock = FakeClock()
    pacer = Pacer(min_interval_s=1.0, clock=clock, sleep=clock.sleep)

    async def scenario():
        await pacer.wait()
        clock.now += 0.25
        await pacer.wait()

    asyncio.run(scenario())

    assert clock.sleeps == [0.75]


def test_real_clock_separation():
    pacer = Pacer(min_interval_s=0.02)

    async def scenario():
        return await asyncio.gather(*(pacer.wait() for _ in range(4)))

    stamps = sorted(asyncio.run(scenario()))
    for earlier, later in zip(stamps, stamps[1:]):
        assert later - earlier >= 0.02


def test_early_timer_wakeup_is_slept_off():
    clock = FakeClock()

    async def early_sleep(seconds):
        # first timer fires one 10 ms tick early
        await clock.sleep(seconds - 0.01 if not clock.sleeps else seconds)

    pacer = Pacer(min_interval_s=1.0, clock=clock, sleep=early_sleep)

    async def scenario():
        first = await pacer.wait()
        second = await pacer.wait()
        return first, second

    first, second = asyncio.run(scenario())

    assert second - first >= 1.0
    assert len(clock.sleeps) == 2
