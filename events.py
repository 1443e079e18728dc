# events.py
"""Low-level events and the single ordered queue they travel through.

Every producer (terminal input, the clock, render workers, the bootstrap
search, signal handlers) pushes into one ``EventSource``. Exactly one
consumer reads from it.
"""
import asyncio
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Tuple, Union

from errors import AicTuiError, PipelineError
from models import ArtworkSummary, AsciiFrame


@dataclass(frozen=True)
class KeyPress:
    key: str


@dataclass
class Resized:
    width: int
    height: int


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class Frame:
    pass


@dataclass(frozen=True)
class TerminateRequested:
    reason: str = "signal"


@dataclass(frozen=True)
class SearchCompleted:
    query: str
    results: Tuple[ArtworkSummary, ...]


@dataclass(frozen=True)
class SearchFailed:
    query: str
    error: AicTuiError


@dataclass(frozen=True)
class FrameReady:
    frame: AsciiFrame

    @property
    def generation(self) -> int:
        return self.frame.generation


@dataclass(frozen=True)
class RenderFailed:
    error: PipelineError
    generation: int


Event = Union[KeyPress, Resized, Tick, Frame, TerminateRequested,
              SearchCompleted, SearchFailed, FrameReady, RenderFailed]


class EventSource:
    """An unbounded, non-restartable stream of events in arrival order."""

    def __init__(self) -> None:
        self._queue: "asyncio.Queue[Event]" = asyncio.Queue()
        self._pending_resize: Optional[Resized] = None
        self._frame_pending = False
        self._closed = False
        self._finished = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def finished(self) -> bool:
        return self._finished

    def push(self, event: Event) -> None:
        if self._closed:
            return
        if isinstance(event, Resized):
            if self._pending_resize is not None:
                # Still queued: only the latest size matters.
                self._pending_resize.width = event.width
                self._pending_resize.height = event.height
                return
            event = Resized(event.width, event.height)
            self._pending_resize = event
        elif isinstance(event, Frame):
            # One redraw covers any number of missed frames.
            if self._frame_pending:
                return
            self._frame_pending = True
        self._queue.put_nowait(event)

    def request_terminate(self, reason: str = "signal") -> None:
        self.push(TerminateRequested(reason))

    def close(self) -> None:
        """Ends the stream after the events already queued. Later pushes are dropped."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(TerminateRequested("closed"))

    async def next(self) -> Event:
        if self._finished:
            raise StopAsyncIteration
        event = await self._queue.get()
        if event is self._pending_resize:
            self._pending_resize = None
        elif isinstance(event, Frame):
            self._frame_pending = False
        if isinstance(event, TerminateRequested):
            self._closed = True
            self._finished = True
        return event

    def __aiter__(self) -> AsyncIterator[Event]:
        return self

    async def __anext__(self) -> Event:
        return await self.next()
