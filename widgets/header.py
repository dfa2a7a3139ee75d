from textual.widgets import Static
from textual.reactive import reactive
from textual.containers import Vertical
from textual.app import ComposeResult
from textual.css.query import NoMatches
from rich.text import Text
from styles import COLOR_DIM, COLOR_MUTED, COLOR_PRIMARY, COLOR_TRACK, bar_color

VIMPLAY_ASCII = """
 ██╗   ██╗██╗███╗   ███╗██████╗ ██╗      █████╗ ██╗   ██╗
 ██║   ██║██║████╗ ████║██╔══██╗██║     ██╔══██╗╚██╗ ██╔╝
 ██║   ██║██║██╔████╔██║██████╔╝██║     ███████║ ╚████╔╝
 ╚██╗ ██╔╝██║██║╚██╔╝██║██╔═══╝ ██║     ██╔══██║  ╚██╔╝
  ╚████╔╝ ██║██║ ╚═╝ ██║██║     ███████╗██║  ██║   ██║
   ╚═══╝  ╚═╝╚═╝     ╚═╝╚═╝     ╚══════╝╚═╝  ╚═╝   ╚═╝
"""

VOLUME_BAR_WIDTH = 20
SEPARATOR = "    │    "


def volume_bar(level: int, muted: bool) -> Text:
    """Gradient volume bar, or an empty track marked MUTED."""
    result = Text()
    result.append("Volume │", style=COLOR_MUTED)
    if muted:
        result.append("─" * VOLUME_BAR_WIDTH, style=COLOR_TRACK)
        result.append("│ ", style=COLOR_MUTED)
        result.append("MUTED", style=f"{COLOR_MUTED} bold")
        return result
    filled = int(level / 100 * VOLUME_BAR_WIDTH)
    for i in range(VOLUME_BAR_WIDTH):
        if i < filled:
            result.append("█", style=bar_color(i, VOLUME_BAR_WIDTH))
        else:
            result.append("─", style=COLOR_TRACK)
    result.append("│ ", style=COLOR_MUTED)
    result.append(f"{level}%", style=f"{COLOR_PRIMARY} bold")
    return result


def transport_summary(level: int, muted: bool, shuffle: bool, repeat: str, speed: float) -> Text:
    """One header line: volume, shuffle, repeat and playback speed."""
    result = volume_bar(level, muted)

    def section(label: str, value: str, active: bool) -> None:
        result.append(f"{SEPARATOR}{label} ", style=COLOR_MUTED)
        result.append(value, style=f"{COLOR_PRIMARY} bold" if active else COLOR_DIM)

    section("Shuffle", "ON" if shuffle else "OFF", shuffle)
    section("Repeat", repeat.upper(), repeat != "off")
    section("Speed", f"{speed:.2f}x", speed != 1.0)
    return result


class Header(Vertical):
    """Logo plus a transport line mirrored from the playback state."""

    volume_level: reactive[int] = reactive(100)
    is_muted: reactive[bool] = reactive(False)
    is_shuffle: reactive[bool] = reactive(False)
    repeat_mode: reactive[str] = reactive("off")
    speed: reactive[float] = reactive(1.0)

    DEFAULT_CSS = """
    Header {
        height: auto;
    }

    #header-logo {
        color: #cc5500;
        text-style: bold;
    }

    #header-transport {
        padding: 0 1;
        border-top: solid #555555;
    }
    """

    def compose(self) -> ComposeResult:
        yield Static(VIMPLAY_ASCII, id="header-logo")
        yield Static(self._summary(), id="header-transport")

    def _summary(self) -> Text:
        return transport_summary(self.volume_level, self.is_muted, self.is_shuffle, self.repeat_mode, self.speed)

    def _refresh_bar(self) -> None:
        try:
            self.query_one("#header-transport", Static).update(self._summary())
        except NoMatches:
            pass

    def watch_volume_level(self, new_value: int) -> None:
        self._refresh_bar()

    def watch_is_muted(self, new_value: bool) -> None:
        self._refresh_bar()

    def watch_is_shuffle(self, new_value: bool) -> None:
        self._refresh_bar()

    def watch_repeat_mode(self, new_value: str) -> None:
        self._refresh_bar()

    def watch_speed(self, new_value: float) -> None:
        self._refresh_bar()
