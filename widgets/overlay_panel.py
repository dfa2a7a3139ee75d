from __future__ import annotations

from pathlib import Path

from rich.text import Text
from textual.widget import Widget

from core.playlists import NEW_PLAYLIST_LABEL
from models.app_state import AppState
from models.modes import Overlay
from styles import COLOR_HIGHLIGHT, COLOR_MUTED, COLOR_PRIMARY, COLOR_SURFACE

OVERLAY_HINTS = {
    Overlay.QUEUE: "j/k move  J/K reorder  dd remove  c clear  Enter play  q close",
    Overlay.PLAYLIST_MANAGER: "j/k move  Enter load  dd delete  q close",
    Overlay.ADD_TO_PLAYLIST: "j/k move  Enter add  q close",
}


def overlay_rows(state: AppState) -> tuple[str, list[str], int]:
    """Title, row labels and cursor of the open overlay."""
    pickers = state.pickers
    if state.overlay is Overlay.QUEUE:
        rows = []
        for position, index in enumerate(state.queue, start=1):
            track = state.track_at(index)
            rows.append(f"{position}. {track.name if track else f'#{index + 1}'}")
        return f"Queue ({len(state.queue)})", rows, state.queue_selected_index
    if state.overlay is Overlay.PLAYLIST_MANAGER:
        rows = [f"{p.name}  ({p.track_count})" for p in pickers.saved_playlists]
        return "Playlists", rows, pickers.manager_index
    if state.overlay is Overlay.ADD_TO_PLAYLIST:
        count = len(pickers.picker_tracks)
        title = f"Add {Path(pickers.picker_tracks[0]).name if count == 1 else f'{count} tracks'} to playlist"
        rows = [NEW_PLAYLIST_LABEL] + [f"{p.name}  ({p.track_count})" for p in pickers.saved_playlists]
        return title, rows, pickers.picker_index
    return "", [], 0


class OverlayPanel(Widget):
    """Queue, playlist manager and add-to-playlist picker."""

    DEFAULT_CSS = """
    OverlayPanel {
        height: 1fr;
        padding: 0 1;
    }
    """

    def __init__(self, state: AppState, **kwargs):
        super().__init__(**kwargs)
        self.state = state

    def render(self) -> Text:
        title, rows, cursor = overlay_rows(self.state)
        result = Text(no_wrap=True, overflow="ellipsis")
        result.append(title, style=f"{COLOR_HIGHLIGHT} bold")
        result.append("\n")
        result.append(OVERLAY_HINTS.get(self.state.overlay, ""), style=COLOR_MUTED)
        result.append("\n")
        if not rows:
            result.append("\n(empty)", style=COLOR_MUTED)
            return result

        visible = max(1, self.size.height - 3)
        top = max(0, cursor - visible + 1)
        for index in range(top, min(len(rows), top + visible)):
            row = Text(f"{'▶' if index == cursor else ' '} {rows[index]}", style=COLOR_PRIMARY)
            if index == cursor:
                row.stylize(f"bold {COLOR_HIGHLIGHT} on {COLOR_SURFACE}")
            result.append("\n")
            result.append_text(row)
        return result
