# models.py
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from errors import AicTuiError


class Mode(Enum):
    BROWSE = "browse"
    VIEW = "view"


@dataclass(frozen=True)
class ArtworkSummary:
    """A single search hit."""
    id: int
    title: str
    image_id: Optional[str] = None


@dataclass(frozen=True)
class ArtworkDetail:
    """The fields of an artwork record needed to locate its image."""
    id: int
    title: str
    image_id: Optional[str]
    alt_image_ids: Tuple[str, ...] = ()
    iiif_url: str = "https://www.artic.edu/iiif/2"


@dataclass(frozen=True)
class RenderJob:
    """One request to render an artwork at a given terminal width."""
    artwork_id: int
    width: int
    generation: int


@dataclass(frozen=True)
class AsciiFrame:
    """The text grid produced by a completed RenderJob."""
    artwork_id: int
    generation: int
    lines: Tuple[str, ...]

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass
class AppState:
    """A single object to hold the entire application state."""
    query: str = ""
    mode: Mode = Mode.BROWSE
    results: Tuple[ArtworkSummary, ...] = ()
    selection: Optional[int] = None
    latest_generation: int = 0
    frame: Optional[AsciiFrame] = None
    in_flight: bool = False
    error: Optional[AicTuiError] = None
    width: int = 80
    height: int = 24
    searching: bool = True
    ticks: int = 0
    quitting: bool = False

    @property
    def selected(self) -> Optional[ArtworkSummary]:
        if self.selection is None:
            return None
        return self.results[self.selection]

    @property
    def visible_frame(self) -> Optional[AsciiFrame]:
        """The stored frame, but only when it belongs to the current selection."""
        selected = self.selected
        if self.frame is None or selected is None:
            return None
        if self.frame.artwork_id != selected.id:
            return None
        return self.frame


def summaries_from_json(items: List[dict]) -> Tuple[ArtworkSummary, ...]:
    """Parses the `data` array of a search response, skipping malformed rows."""
    summaries: List[ArtworkSummary] = []
    for item in items:
        if not item or item.get("id") is None:
            continue
        summaries.append(ArtworkSummary(
            id=int(item["id"]),
            title=item.get("title") or "Untitled",
            image_id=item.get("image_id"),
        ))
    return tuple(summaries)
