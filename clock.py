# clock.py
import logging
from typing import Callable, List, Optional

from textual.message_pump import MessagePump
from textual.timer import Timer

from events import EventSource, Frame, Tick

logger = logging.getLogger(__name__)


class Clock:
    """Two independent periodic signals: logic ticks and render frames.

    Both run as Textual timers on `pump`. A rate of 0 disables that signal.
    """

    def __init__(self, source: EventSource, tick_rate: float = 4.0, frame_rate: float = 60.0):
        if tick_rate < 0 or frame_rate < 0:
            raise ValueError("rates must be zero or positive")
        self.source = source
        self.tick_rate = tick_rate
        self.frame_rate = frame_rate
        self._timers: List[Timer] = []

    @property
    def running(self) -> bool:
        return bool(self._timers)

    def start(self, pump: MessagePump) -> None:
        if self.running:
            return
        self._timers = [
            timer for timer in (
                self._spawn(pump, self.tick_rate, Tick, "tick"),
                self._spawn(pump, self.frame_rate, Frame, "frame"),
            ) if timer is not None
        ]
        logger.debug("Clock started: %.2f ticks/s, %.2f frames/s", self.tick_rate, self.frame_rate)

    def stop(self) -> None:
        for timer in self._timers:
            timer.stop()
        self._timers = []

    def _spawn(self, pump: MessagePump, rate: float, make_event: Callable, name: str) -> Optional[Timer]:
        if rate == 0:
            return None
        return pump.set_interval(1.0 / rate, lambda: self.source.push(make_event()), name=f"clock-{name}")
