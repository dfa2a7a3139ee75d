from typing import Optional

from textual.app import ComposeResult
from textual.containers import Container, Vertical
from textual.widgets import Static
from rich.text import Text

from models.app_state import AppState
from models.playback import LoopRange
from models.track import format_time
from styles import COLOR_LOOP_MARK, COLOR_MUTED, COLOR_TRACK, bar_color

PROGRESS_BAR_WIDTH = 40


def playback_label(state: AppState) -> str:
    playback = state.playback
    if playback.is_paused:
        return "Paused"
    if playback.is_playing:
        return "Playing"
    return "Stopped"


def loop_label(loop: LoopRange) -> str:
    if loop.a is None:
        return ""
    if loop.b is None:
        return f"Loop A {format_time(loop.a)} → B ?"
    return f"Loop A {format_time(loop.a)} → B {format_time(loop.b)}"


def sleep_label(remaining: Optional[float]) -> str:
    if remaining is None:
        return ""
    return f"Sleep in {format_time(remaining)}"


class NowPlayingView(Container):
    """Widget displaying the playing track, progress and transport extras."""

    DEFAULT_CSS = """
    NowPlayingView {
        width: 1fr;
        height: 100%;
        border: solid #cc5500;
        padding: 1 2;
    }

    NowPlayingView .music-icon {
        color: #ff8c00;
        text-style: bold;
    }

    NowPlayingView .track-title {
        color: #ffb347;
        text-style: bold;
        margin-bottom: 1;
    }

    NowPlayingView .track-metadata {
        color: #888888;
    }
    """

    def __init__(self, state: AppState, **kwargs):
        super().__init__(**kwargs)
        self.state = state
        self._title_widget: Static | None = None
        self._time_widget: Static | None = None
        self._progress_widget: Static | None = None
        self._state_widget: Static | None = None
        self._loop_widget: Static | None = None
        self._sleep_widget: Static | None = None

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static("♪", classes="music-icon")
            yield Static("No track playing", id="np-title", classes="track-title")
            yield Static("0:00 / 0:00", id="np-time", classes="time-display")
            yield Static(self._render_progress(0, None), id="np-progress")
            yield Static("State: Stopped", id="np-state", classes="track-metadata")
            yield Static("", id="np-loop", classes="track-metadata")
            yield Static("", id="np-sleep", classes="track-metadata")

    def on_mount(self) -> None:
        self._title_widget = self.query_one("#np-title", Static)
        self._time_widget = self.query_one("#np-time", Static)
        self._progress_widget = self.query_one("#np-progress", Static)
        self._state_widget = self.query_one("#np-state", Static)
        self._loop_widget = self.query_one("#np-loop", Static)
        self._sleep_widget = self.query_one("#np-sleep", Static)

    def update_from(self, sleep_remaining: Optional[float] = None) -> None:
        """Redraw every line from the shared application state."""
        if self._title_widget is None:
            return
        playback = self.state.playback
        track = self.state.playing_track

        if track is not None and playback.playing_index >= 0:
            self._title_widget.update(track.name)
            self._time_widget.update(f"{format_time(playback.elapsed)} / {format_time(playback.duration)}")
            self._progress_widget.update(self._render_progress(playback.elapsed, playback.duration))
        else:
            self._title_widget.update("No track playing")
            self._time_widget.update("0:00 / 0:00")
            self._progress_widget.update(self._render_progress(0, None))

        state_line = f"State: {playback_label(self.state)}"
        if playback.speed != 1.0:
            state_line += f"    Speed {playback.speed:.2f}x"
        self._state_widget.update(state_line)
        self._loop_widget.update(loop_label(self.state.loop))
        self._sleep_widget.update(sleep_label(sleep_remaining))

    def _render_progress(self, elapsed: float, duration: Optional[float]) -> Text:
        """Render a horizontal progress bar with the loop range marked."""
        result = Text()
        fraction = min(1.0, elapsed / duration) if duration else 0.0
        filled = int(fraction * PROGRESS_BAR_WIDTH)

        loop = self.state.loop
        marks = set()
        if duration and loop.active:
            marks = {int(loop.a / duration * PROGRESS_BAR_WIDTH), int(loop.b / duration * PROGRESS_BAR_WIDTH)}

        result.append("│", style=COLOR_MUTED)
        for i in range(PROGRESS_BAR_WIDTH):
            if i in marks:
                result.append("┃", style=COLOR_LOOP_MARK)
            elif i < filled:
                result.append("█", style=bar_color(i, PROGRESS_BAR_WIDTH))
            else:
                result.append("─", style=COLOR_TRACK)
        result.append(f"│ {int(fraction * 100):3d}%", style=COLOR_MUTED)
        return result
