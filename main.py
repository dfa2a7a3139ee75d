from textual import events
from textual.app import App, ComposeResult
from textual.widgets import ContentSwitcher
from textual.containers import Horizontal
from textual.binding import Binding
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Any, Callable, Optional

from core import KeyEvent, PlayerController
from models.modes import Overlay
from services import LibraryError, PersistenceStore
from services.audio_player import AudioPlayer
from services.music_library import MusicLibrary
from views import NowPlayingView, TrackListView
from widgets import ConfirmScreen, Header, HelpScreen, OverlayPanel, PromptScreen, StatusLine

log_dir = Path.home() / '.local' / 'share' / 'vimplay'
log_dir.mkdir(parents=True, exist_ok=True)
log_file = log_dir / 'vimplay.log'

logging.basicConfig(
    level=logging.DEBUG if os.environ.get('VIMPLAY_DEBUG') else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_file)
    ]
)

logger = logging.getLogger(__name__)


class TextualPresenter:
    """Draws the controller's state into the app's widgets."""

    def __init__(self, app: "VimPlayApp"):
        self.app = app

    def show_status(self, message: str) -> None:
        self.app.state.status = message
        self.app.render_status()

    def refresh(self) -> None:
        self.app.render_state()

    def scroll_to_selection(self) -> None:
        # The track list keeps its cursor inside the window on every render.
        self.app.render_state()

    def prompt(self, title: str, on_submit: Callable[[str], Any], initial: str = "") -> None:
        def submitted(value: Optional[str]) -> None:
            if value is not None:
                on_submit(value)

        self.app.push_screen(PromptScreen(title, initial), callback=submitted)

    def confirm(self, question: str, on_answer: Callable[[bool], Any]) -> None:
        self.app.push_screen(ConfirmScreen(question), callback=lambda answer: on_answer(bool(answer)))

    def toggle_help(self) -> None:
        if isinstance(self.app.screen, HelpScreen):
            self.app.pop_screen()
        else:
            self.app.push_screen(HelpScreen(self.app.controller.resolver))

    def quit(self) -> None:
        self.app.exit()


class VimPlayApp(App):
    """A VIM-style terminal music player built with Textual."""

    CSS_PATH = "styles/app.tcss"
    ENABLE_COMMAND_PALETTE = False

    # Tab would otherwise move focus between widgets.
    BINDINGS = [
        Binding("tab", "forward_key('tab')", show=False, priority=True),
        Binding("shift+tab", "forward_key('shift+tab')", show=False, priority=True),
    ]

    def __init__(self, config_dir: Optional[Path] = None, *args, **kwargs):
        super().__init__(*args, **kwargs)

        logger.info("Starting vimplay application")

        try:
            self.audio_player = AudioPlayer()
        except RuntimeError as e:
            logger.critical(f"Failed to initialize audio player: {e}")
            raise

        self.music_library = MusicLibrary()
        self.store = PersistenceStore(config_dir)
        self.presenter = TextualPresenter(self)
        self.controller = PlayerController.from_store(
            self.presenter, self.audio_player, self.music_library, self.store, self
        )
        self.state = self.controller.state
        self._ready = False
        logger.info("Services initialized successfully")

    def compose(self) -> ComposeResult:
        """Compose the main application layout."""
        yield Header(id="header")

        with Horizontal(id="main"):
            with ContentSwitcher(id="view-switcher", initial="track-list"):
                yield TrackListView(self.state, id="track-list")
                yield OverlayPanel(self.state, id="overlay")
            yield NowPlayingView(self.state, id="now_playing")

        yield StatusLine(self.state, id="status-line")

    def on_mount(self) -> None:
        """Start the progress poll and load the default folder."""
        self._ready = True
        self.controller.start()
        self.render_state()

        folder = self.controller.default_folder()
        if folder:
            self.run_worker(self._load_default_folder(folder), exclusive=True)
        else:
            self.presenter.show_status("No default folder. Press o to open one, :setdefault to remember it")

    def on_unmount(self) -> None:
        self.controller.shutdown()
        self.audio_player.close()

    async def _load_default_folder(self, folder: str) -> None:
        """Scan the default folder in a background thread."""
        self.presenter.show_status("Loading...")
        try:
            tracks = await asyncio.to_thread(self.music_library.load_folder, folder)
        except LibraryError as e:
            logger.error(f"Failed to load default folder {folder}: {e}")
            self.presenter.show_status(f"Error: {e}")
            return
        self.controller.library.apply_loaded_folder(folder, tracks)

    # Rendering

    def render_state(self) -> None:
        """Push the whole application state into the widgets."""
        if not self._ready:
            return
        state = self.state
        playback = state.playback

        switcher = self.query_one("#view-switcher", ContentSwitcher)
        switcher.current = "track-list" if state.overlay is Overlay.NONE else "overlay"
        self.query_one("#track-list", TrackListView).refresh()
        self.query_one("#overlay", OverlayPanel).refresh()
        self.query_one("#now_playing", NowPlayingView).update_from(self.controller.session.sleep_remaining())

        header = self.query_one(Header)
        header.volume_level = round(playback.volume * 100)
        header.is_muted = playback.volume == 0
        header.is_shuffle = playback.shuffle.enabled
        header.repeat_mode = playback.repeat_mode.value
        header.speed = playback.speed

        self.render_status()

    def render_status(self) -> None:
        if self._ready:
            self.query_one("#status-line", StatusLine).refresh(layout=True)

    # Input

    def on_key(self, event: events.Key) -> None:
        """Hand every key to the controller unless a modal screen is open."""
        if len(self.screen_stack) > 1:
            return
        event.prevent_default()
        event.stop()
        self._dispatch(KeyEvent.from_textual(event.key, event.character))

    def action_forward_key(self, key: str) -> None:
        if len(self.screen_stack) > 1:
            return
        self._dispatch(KeyEvent.from_textual(key))

    def _dispatch(self, key_event: KeyEvent) -> None:
        try:
            self.controller.handle_key(key_event)
        except Exception as e:
            logger.error(f"Error handling key {key_event.key!r}: {type(e).__name__}: {e}", exc_info=True)
            self.notify(
                f"❌ {type(e).__name__}: {str(e)[:60]}",
                severity="error",
                timeout=3
            )


def main():
    """Entry point for the vimplay application.

    Handles initialization errors and provides user-friendly error messages.
    """
    try:
        logger.info("=" * 60)
        logger.info("vimplay starting up")
        logger.info("=" * 60)

        app = VimPlayApp()
        app.run()

        logger.info("vimplay shut down cleanly")

    except RuntimeError as e:
        logger.critical(f"Fatal error during startup: {e}")
        print("\n❌ vimplay cannot start\n")
        print(f"{e}\n")
        print(f"Check {log_file} for more details.\n")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("vimplay interrupted by user")
        print("\n\nGoodbye! 👋\n")
        sys.exit(0)
    except Exception as e:
        logger.critical(f"Unexpected fatal error: {type(e).__name__}: {e}", exc_info=True)
        print("\n❌ vimplay encountered an unexpected error\n")
        print(f"{type(e).__name__}: {e}\n")
        print(f"Check {log_file} for more details.\n")
        sys.exit(1)


if __name__ == "__main__":
    main()
