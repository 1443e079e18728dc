# actions.py
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

from events import Event, Frame, KeyPress, Resized, TerminateRequested, Tick
from models import Mode


@dataclass(frozen=True)
class MoveUp:
    pass


@dataclass(frozen=True)
class MoveDown:
    pass


@dataclass(frozen=True)
class Select:
    pass


@dataclass(frozen=True)
class Deselect:
    pass


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class Suspend:
    pass


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class TickAction:
    pass


@dataclass(frozen=True)
class FrameAction:
    pass


Action = Union[MoveUp, MoveDown, Select, Deselect, Quit, Suspend, Resize, TickAction, FrameAction]

_QUIT_KEYS = ("q", "ctrl+c", "ctrl+d")

KEYMAP: Dict[Tuple[Mode, str], Action] = {
    (Mode.BROWSE, "down"): MoveDown(),
    (Mode.BROWSE, "j"): MoveDown(),
    (Mode.BROWSE, "up"): MoveUp(),
    (Mode.BROWSE, "k"): MoveUp(),
    (Mode.BROWSE, "enter"): Select(),
    (Mode.BROWSE, "x"): Select(),
    (Mode.BROWSE, "escape"): Deselect(),
    (Mode.VIEW, "escape"): Deselect(),
    **{(mode, key): Quit() for mode in Mode for key in _QUIT_KEYS},
    **{(mode, "ctrl+z"): Suspend() for mode in Mode},
}


def translate(mode: Mode, event: Event) -> Optional[Action]:
    """Maps a low-level event to an action. Unbound keys give None."""
    if isinstance(event, KeyPress):
        return KEYMAP.get((mode, event.key))
    if isinstance(event, Resized):
        return Resize(event.width, event.height)
    if isinstance(event, Tick):
        return TickAction()
    if isinstance(event, Frame):
        return FrameAction()
    if isinstance(event, TerminateRequested):
        return Quit()
    return None
