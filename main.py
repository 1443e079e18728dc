# main.py
import asyncio
import logging
import signal
import sys
from typing import Iterable, List, Optional

from textual import events as textual_events
from textual.app import App, ComposeResult, SuspendNotSupported
from textual.containers import Container
from textual.widgets import Header

from actions import translate
from ascii_art import AsciiConverter
from clock import Clock
from config import APP_NAME, Config, load_config
from errors import AicTuiError, StartupError, TerminalError
from events import (EventSource, Frame, FrameReady, KeyPress, RenderFailed,
                    Resized, SearchCompleted, SearchFailed)
from logging_setup import configure_logging
from models import Mode, RenderJob
from pipeline import ArtworkPipeline
from services import CatalogService, ImageFetcher, build_session
from state import Effect, Shutdown, StartRender, StateMachine, SuspendProcess
from ui import ArtworkList, AsciiView, ErrorBanner, StatusBar

logger = logging.getLogger(__name__)

WORKER_MESSAGES = (FrameReady, RenderFailed, SearchCompleted, SearchFailed)


class AicTuiApp(App):
    """Browse search results and view the selected artwork as ASCII art."""
    TITLE = "Art Institute of Chicago"
    CSS_PATH = "aic_tui.css"

    def __init__(self, config: Config, catalog: CatalogService, pipeline: ArtworkPipeline):
        super().__init__()
        self.config = config
        self.catalog = catalog
        self.pipeline = pipeline
        self.event_source = EventSource()
        self.machine = StateMachine(config.query)
        self.app_clock = Clock(self.event_source, config.tick_rate, config.frame_rate)
        self._signals: List[int] = []
        self._dirty = True

    def compose(self) -> ComposeResult:
        yield Header()
        yield ErrorBanner(id="error")
        with Container(id="main-container"):
            yield ArtworkList(id="browse")
            yield AsciiView(id="view")
        yield StatusBar(id="status")

    def on_mount(self) -> None:
        self._install_signal_handlers()
        self.event_source.push(Resized(self.size.width, self.size.height))
        self.run_worker(self.consume_events(), group="event_loop", exclusive=True)
        self.run_worker(self.perform_search(self.config.query), group="search_worker")
        self.app_clock.start(self)
        self.redraw()

    def on_unmount(self) -> None:
        self.app_clock.stop()
        self.event_source.close()
        loop = asyncio.get_running_loop()
        for signum in self._signals:
            loop.remove_signal_handler(signum)

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGTERM, getattr(signal, "SIGHUP", None)):
            if signum is None:
                continue
            try:
                loop.add_signal_handler(signum, self.event_source.request_terminate, signal.Signals(signum).name)
            except (NotImplementedError, RuntimeError):
                logger.debug("Cannot install a handler for %s on this platform", signum)
                continue
            self._signals.append(signum)

    # --- Producers ---

    def on_key(self, event: textual_events.Key) -> None:
        event.prevent_default()
        event.stop()
        self.event_source.push(KeyPress(event.key))

    def on_resize(self, event: textual_events.Resize) -> None:
        self.event_source.push(Resized(event.size.width, event.size.height))

    def action_help_quit(self) -> None:
        # Textual binds ctrl+c itself; route it through the keymap like any other key.
        self.event_source.push(KeyPress("ctrl+c"))

    async def action_quit(self) -> None:
        self.event_source.request_terminate("quit")

    async def perform_search(self, query: str) -> None:
        try:
            results = await asyncio.to_thread(self.catalog.search, query)
        except AicTuiError as e:
            self.event_source.push(SearchFailed(query, e))
            return
        self.event_source.push(SearchCompleted(query, results))

    async def perform_render(self, job: RenderJob) -> None:
        result = await self.pipeline.run(job)
        if result is not None:
            self.event_source.push(result)

    # --- Consumer ---

    async def consume_events(self) -> None:
        """Applies every event to the state machine, strictly in arrival order."""
        async for event in self.event_source:
            if isinstance(event, WORKER_MESSAGES):
                effects = self.machine.receive(event)
            else:
                action = translate(self.machine.state.mode, event)
                if action is None:
                    logger.debug("Ignored %s in %s mode", event, self.machine.state.mode.value)
                    continue
                effects = self.machine.apply(action)
            self.perform_effects(effects)
            if not isinstance(event, Frame):
                self._dirty = True
            if self._dirty and (isinstance(event, Frame) or self.config.frame_rate == 0):
                self.redraw()
            if self.machine.finished:
                break
        self.exit(return_code=0)

    def perform_effects(self, effects: Iterable[Effect]) -> None:
        for effect in effects:
            if isinstance(effect, StartRender):
                self.run_worker(self.perform_render(effect.job), group="render_worker")
            elif isinstance(effect, SuspendProcess):
                self.suspend_session()
            elif isinstance(effect, Shutdown):
                self.app_clock.stop()
                self.event_source.close()

    def suspend_session(self) -> None:
        try:
            self.action_suspend_process()
        except SuspendNotSupported:
            logger.warning("Suspend is not supported by this terminal")
            self.bell()

    def redraw(self) -> None:
        self._dirty = False
        state = self.machine.state
        browse = self.query_one(ArtworkList)
        view = self.query_one(AsciiView)
        browse.display = state.mode is Mode.BROWSE
        view.display = state.mode is Mode.VIEW
        if state.mode is Mode.BROWSE:
            browse.show(state)
        else:
            view.show(state)
        self.query_one(ErrorBanner).show(state)
        self.query_one(StatusBar).show(state)


def build_app(config: Config) -> AicTuiApp:
    session = build_session(config)
    catalog = CatalogService(session, config)
    pipeline = ArtworkPipeline(
        catalog,
        ImageFetcher(session, config),
        AsciiConverter(config.alphabet, invert=config.invert),
        image_width=config.image_width,
    )
    return AicTuiApp(config, catalog, pipeline)


def main(argv: Optional[List[str]] = None) -> int:
    try:
        config = load_config(argv)
        configure_logging(config)
    except StartupError as e:
        print(f"{APP_NAME}: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"{APP_NAME}: cannot write to {e.filename}: {e.strerror}", file=sys.stderr)
        return 1

    logger.info("Starting with query=%r tick_rate=%s frame_rate=%s data_dir=%s",
                config.query, config.tick_rate, config.frame_rate, config.data_dir)
    app = build_app(config)
    try:
        if not (sys.stdin.isatty() and sys.stdout.isatty()):
            raise TerminalError("an interactive terminal is required")
        app.run()
    except TerminalError as e:
        logger.error("%s", e)
        print(f"{APP_NAME}: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception("Terminal session failed")
        print(f"{APP_NAME}: {TerminalError(str(e))}", file=sys.stderr)
        return 1
    finally:
        app.catalog.session.close()
    return app.return_code or 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
