from __future__ import annotations

from rich.text import Text
from textual.widget import Widget

from models.app_state import AppState
from models.modes import Mode, PendingKind
from models.playback import RepeatMode
from styles import COLOR_BACKGROUND, COLOR_HIGHLIGHT, COLOR_MUTED, COLOR_PRIMARY

CURSOR = "█"


def indicators(state: AppState) -> list[str]:
    """Short flags for repeat, shuffle and queue length."""
    flags = []
    repeat = state.playback.repeat_mode
    if repeat is RepeatMode.ONE:
        flags.append("R1")
    elif repeat is RepeatMode.ALL:
        flags.append("RA")
    if state.playback.shuffle.enabled:
        flags.append("S")
    if state.queue:
        flags.append(f"Q:{len(state.queue)}")
    return flags


def pending_keys(state: AppState) -> str:
    """Typed-but-unfinished keys, vim's showcmd."""
    pending = state.pending.value if isinstance(state.pending, PendingKind) else ""
    return f"{state.count_prefix}{pending}"


def message_line(state: AppState) -> Text:
    if state.mode is Mode.COMMAND:
        return Text(f":{state.command_buffer}{CURSOR}", style=COLOR_HIGHLIGHT)
    if state.mode is Mode.FILTER:
        return Text(f"/{state.filter_text}{CURSOR}", style=COLOR_HIGHLIGHT)
    return Text(state.status, style=COLOR_MUTED)


class StatusLine(Widget):
    """Mode badge and indicators over the command line or last message."""

    DEFAULT_CSS = """
    StatusLine {
        height: auto;
        max-height: 12;
        background: #2d2d2d;
        padding: 0 1;
    }
    """

    def __init__(self, state: AppState, **kwargs):
        super().__init__(**kwargs)
        self.state = state

    def render(self) -> Text:
        state = self.state
        result = Text()
        result.append(f" {state.mode.value.upper()} ", style=f"bold {COLOR_BACKGROUND} on {COLOR_PRIMARY}")
        flags = indicators(state)
        if flags:
            result.append("  " + " ".join(flags), style=f"{COLOR_PRIMARY} bold")
        keys = pending_keys(state)
        if keys:
            result.append(f"  {keys}", style=COLOR_HIGHLIGHT)
        result.append("\n")
        result.append_text(message_line(state))
        return result
