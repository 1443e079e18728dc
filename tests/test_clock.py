import pytest
from textual.app import App

from clock import Clock
from events import EventSource, Frame, Tick


def drain(source: EventSource):
    """Everything queued so far, without waiting."""
    seen = []
    while not source._queue.empty():
        seen.append(source._queue.get_nowait())
    return seen


@pytest.mark.asyncio
async def test_both_signals_are_produced():
    source = EventSource()
    clock = Clock(source, tick_rate=50, frame_rate=100)
    app = App()
    async with app.run_test() as pilot:
        clock.start(app)
        await pilot.pause(0.3)
        clock.stop()
    seen = drain(source)
    assert any(isinstance(event, Tick) for event in seen)
    assert any(isinstance(event, Frame) for event in seen)


@pytest.mark.asyncio
async def test_zero_rate_disables_a_signal():
    source = EventSource()
    clock = Clock(source, tick_rate=0, frame_rate=50)
    app = App()
    async with app.run_test() as pilot:
        clock.start(app)
        await pilot.pause(0.2)
        clock.stop()
    seen = drain(source)
    assert seen
    assert all(isinstance(event, Frame) for event in seen)


@pytest.mark.asyncio
async def test_both_rates_zero_starts_nothing():
    clock = Clock(EventSource(), tick_rate=0, frame_rate=0)
    app = App()
    async with app.run_test():
        clock.start(app)
        assert not clock.running


@pytest.mark.asyncio
async def test_stop_halts_the_signals():
    source = EventSource()
    clock = Clock(source, tick_rate=100, frame_rate=0)
    app = App()
    async with app.run_test() as pilot:
        clock.start(app)
        assert clock.running
        await pilot.pause(0.05)
        clock.stop()
        assert not clock.running
        drain(source)
        await pilot.pause(0.1)
        assert drain(source) == []


def test_negative_rates_are_rejected():
    with pytest.raises(ValueError):
        Clock(EventSource(), tick_rate=-1)
