# ui.py
from rich.text import Text
from textual.widgets import Static

from models import AppState, Mode

SPINNER = "|/-\\"
SELECTED_STYLE = "bold green on grey23"
UNSELECTED_STYLE = "grey62"


def render_browse(state: AppState) -> Text:
    """The result list, one `id: title` row per artwork."""
    if state.searching:
        return Text(f"{SPINNER[state.ticks % len(SPINNER)]} Searching for '{state.query}'...", style="italic")
    if not state.results:
        return Text(f"No artworks found for '{state.query}'.", style="italic")

    text = Text()
    for index, artwork in enumerate(state.results):
        if index:
            text.append("\n")
        if index == state.selection:
            text.append(f"- {artwork.id}: {artwork.title}", style=SELECTED_STYLE)
        else:
            text.append(f"  {artwork.id}: {artwork.title}", style=UNSELECTED_STYLE)
    return text


def render_view(state: AppState) -> Text:
    """The ASCII frame of the selected artwork, or a loading line."""
    frame = state.visible_frame
    if frame is not None:
        return Text(frame.text, no_wrap=True, overflow="crop")
    selected = state.selected
    title = selected.title if selected else ""
    if state.in_flight:
        return Text(f"{SPINNER[state.ticks % len(SPINNER)]} Rendering '{title}'...", style="italic")
    return Text(f"Nothing to show for '{title}'. Press Esc and select it again.", style="italic")


def render_status(state: AppState) -> Text:
    text = Text()
    text.append(f" {state.mode.value.upper()} ", style="bold reverse")
    text.append(f" '{state.query}'")
    if state.results and state.selection is not None:
        text.append(f"  {state.selection + 1}/{len(state.results)}")
    if state.mode is Mode.BROWSE:
        text.append("   j/k move  enter view  q quit", style="dim")
    else:
        text.append("   esc back  q quit", style="dim")
    return text


def render_error(state: AppState) -> Text:
    if state.error is None:
        return Text("")
    return Text(f" {state.error} ", style="bold white on red")


class ArtworkList(Static):
    """The Browse mode listing."""

    def show(self, state: AppState) -> None:
        self.update(render_browse(state))


class AsciiView(Static):
    """The View mode ASCII frame."""

    def show(self, state: AppState) -> None:
        self.update(render_view(state))


class ErrorBanner(Static):
    """A banner for the last pipeline error, hidden when there is none."""

    def show(self, state: AppState) -> None:
        self.display = state.error is not None
        self.update(render_error(state))


class StatusBar(Static):
    """A simple status bar widget."""

    def show(self, state: AppState) -> None:
        self.update(render_status(state))
