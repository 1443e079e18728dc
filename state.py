# state.py
"""The application state machine.

``StateMachine`` is the only thing that ever mutates ``AppState``. It never
performs I/O: each call returns the effects the application should carry
out (start a render, shut down, suspend).
"""
import logging
from dataclasses import dataclass
from typing import List, Union

from actions import (Action, Deselect, FrameAction, MoveDown, MoveUp, Quit,
                     Resize, Select, Suspend, TickAction)
from events import FrameReady, RenderFailed, SearchCompleted, SearchFailed
from models import AppState, Mode, RenderJob

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StartRender:
    job: RenderJob


@dataclass(frozen=True)
class Shutdown:
    pass


@dataclass(frozen=True)
class SuspendProcess:
    pass


Effect = Union[StartRender, Shutdown, SuspendProcess]
Message = Union[FrameReady, RenderFailed, SearchCompleted, SearchFailed]


class StateMachine:
    def __init__(self, query: str, width: int = 80, height: int = 24):
        self._state = AppState(query=query, width=width, height=height)

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def finished(self) -> bool:
        return self._state.quitting

    # --- Actions ---

    def apply(self, action: Action) -> List[Effect]:
        if self._state.quitting:
            return []
        if isinstance(action, MoveUp):
            self._move(-1)
        elif isinstance(action, MoveDown):
            self._move(1)
        elif isinstance(action, Select):
            return self._select()
        elif isinstance(action, Deselect):
            self._deselect()
        elif isinstance(action, Resize):
            return self._resize(action.width, action.height)
        elif isinstance(action, Quit):
            self._state.quitting = True
            logger.info("Quit requested")
            return [Shutdown()]
        elif isinstance(action, Suspend):
            return [SuspendProcess()]
        elif isinstance(action, TickAction):
            self._state.ticks += 1
        elif isinstance(action, FrameAction):
            pass
        return []

    def _move(self, step: int) -> None:
        state = self._state
        if state.mode is not Mode.BROWSE or not state.results:
            return
        if state.selection is None:
            state.selection = 0
            return
        state.selection = min(max(state.selection + step, 0), len(state.results) - 1)

    def _select(self) -> List[Effect]:
        state = self._state
        if state.mode is not Mode.BROWSE or state.selected is None:
            return []
        state.mode = Mode.VIEW
        if state.frame is not None and state.frame.artwork_id != state.selected.id:
            state.frame = None
        return [self._issue()]

    def _deselect(self) -> None:
        if self._state.mode is Mode.VIEW:
            self._state.mode = Mode.BROWSE

    def _resize(self, width: int, height: int) -> List[Effect]:
        state = self._state
        changed_width = width != state.width
        state.width, state.height = width, height
        if state.mode is not Mode.VIEW or not changed_width:
            return []
        if state.in_flight or state.visible_frame is not None:
            return [self._issue()]
        return []

    def _issue(self) -> StartRender:
        """Creates a job for the current selection, superseding any in flight."""
        state = self._state
        state.latest_generation += 1
        state.in_flight = True
        job = RenderJob(artwork_id=state.selected.id, width=state.width, generation=state.latest_generation)
        logger.info("Issued render job %s", job)
        return StartRender(job)

    # --- Messages from workers ---

    def receive(self, message: Message) -> List[Effect]:
        if self._state.quitting:
            return []
        if isinstance(message, FrameReady):
            self._accept_frame(message)
        elif isinstance(message, RenderFailed):
            self._accept_failure(message)
        elif isinstance(message, SearchCompleted):
            self._replace_results(message)
        elif isinstance(message, SearchFailed):
            self._state.searching = False
            self._state.error = message.error
            logger.warning("Search for %r failed: %s", message.query, message.error)
        return []

    def _is_current(self, generation: int) -> bool:
        if generation != self._state.latest_generation:
            logger.debug("Dropped result of stale generation %d (latest %d)",
                         generation, self._state.latest_generation)
            return False
        return True

    def _accept_frame(self, message: FrameReady) -> None:
        if not self._is_current(message.generation):
            return
        state = self._state
        state.frame = message.frame
        state.in_flight = False
        state.error = None
        logger.info("Accepted frame for artwork %d (generation %d)", message.frame.artwork_id, message.generation)

    def _accept_failure(self, message: RenderFailed) -> None:
        if not self._is_current(message.generation):
            return
        self._state.in_flight = False
        self._state.error = message.error
        logger.warning("Render generation %d failed: %s", message.generation, message.error)

    def _replace_results(self, message: SearchCompleted) -> None:
        state = self._state
        state.query = message.query
        state.results = tuple(message.results)
        state.selection = 0 if state.results else None
        state.searching = False
        state.frame = None

