from __future__ import annotations

from typing import Optional

from rich.text import Text
from textual.widget import Widget

from core.component import plural
from core.library import breadcrumb, folder_name
from models.app_state import LIBRARY_ROOT, PLAYLIST_ROOT_PREFIX, AppState, FilterMatch
from models.modes import ArtistSubView, Mode, ViewMode
from models.settings import Settings
from models.track import ArtistInfo, FolderItem, Track, format_time
from styles import COLOR_DIM, COLOR_HIGHLIGHT, COLOR_MUTED, COLOR_PRIMARY, COLOR_SELECTION, COLOR_SURFACE

PLAYING_ICON = "♪"
FOLDER_ICON = "▸"


def line_number(index: int, cursor: int, settings: Settings) -> str:
    """Gutter label for row `index`.

    Relative numbering shows the distance from the cursor, with the
    absolute line number on the cursor row itself.
    """
    if settings.relativenumber:
        return str(index + 1) if index == cursor else str(abs(index - cursor))
    if settings.number:
        return str(index + 1)
    return ""


def window_start(top: int, cursor: int, rows: int, total: int) -> int:
    """First visible row so that `cursor` stays inside a window of `rows`."""
    if rows <= 0:
        return 0
    if cursor < top:
        top = cursor
    elif cursor >= top + rows:
        top = cursor - rows + 1
    return max(0, min(top, max(0, total - rows)))


def root_label(root: Optional[str]) -> str:
    if not root:
        return "No folder loaded"
    if root == LIBRARY_ROOT or root.startswith(PLAYLIST_ROOT_PREFIX):
        return root
    return folder_name(root)


def view_title(state: AppState) -> str:
    view = state.view_mode
    if view is ViewMode.FOLDER:
        return f"Browse: {breadcrumb(state.folder.current, state.folder.root)}"
    if view is ViewMode.ARTIST:
        artist = state.artist
        if artist.sub_view is ArtistSubView.ARTISTS:
            return f"Artists ({len(artist.artists)})"
        return f"Artist: {artist.current_artist} ({plural(len(artist.tracks), 'track')})"
    return f"{root_label(state.folder.root)} ({plural(len(state.playlist), 'track')})"


def active_view(state: AppState) -> tuple[list, int, list[FilterMatch]]:
    """Items, cursor and filter matches of the navigable list."""
    view = state.view_mode
    if view is ViewMode.FOLDER:
        return state.folder.contents, state.folder.selected_index, state.folder.filtered
    if view is ViewMode.ARTIST:
        return state.artist.items, state.artist.selected_index, state.artist.filtered
    return state.playlist, state.selected_index, state.filtered_playlist


def item_columns(item) -> tuple[str, str]:
    """Label and right-hand detail for one row."""
    if isinstance(item, FolderItem):
        if item.is_folder:
            return f"{FOLDER_ICON} {item.name}/", plural(item.track_count, "track")
        return item.name, format_time(item.duration) if item.duration else ""
    if isinstance(item, ArtistInfo):
        return item.name, plural(item.track_count, "track")
    if isinstance(item, Track):
        return item.name, format_time(item.duration) if item.duration else ""
    return str(item), ""


def is_playing_row(state: AppState, index: int, item) -> bool:
    if not state.playback.is_playing:
        return False
    if state.view_mode is ViewMode.LIST:
        return index == state.playback.playing_index
    playing = state.playing_track
    path = getattr(item, "path", None)
    return playing is not None and path == playing.path


def gutter_width(settings: Settings, total: int) -> int:
    if not (settings.number or settings.relativenumber):
        return 0
    return len(str(max(1, total))) + 1


def render_row(state: AppState, index: int, item, cursor: int, width: int, gutter: int,
               selected_rows: set[int], matched_rows: set[int]) -> Text:
    """One list row with gutter, playing marker and duration."""
    label, detail = item_columns(item)
    playing = is_playing_row(state, index, item)

    row = Text(no_wrap=True, overflow="ellipsis")
    if gutter:
        number = line_number(index, cursor, state.settings)
        row.append(number.rjust(gutter - 1) + " ",
                   style=COLOR_HIGHLIGHT if index == cursor else COLOR_DIM)
    row.append(f"{PLAYING_ICON} " if playing else "  ", style=f"{COLOR_PRIMARY} bold")

    room = max(1, width - gutter - 2 - len(detail) - 1)
    if len(label) > room:
        label = label[:max(0, room - 1)] + "…"
    label_style = COLOR_PRIMARY
    if playing:
        label_style = f"{COLOR_HIGHLIGHT} bold"
    elif index in matched_rows:
        label_style = f"{COLOR_HIGHLIGHT} underline"
    row.append(label.ljust(room), style=label_style)
    if detail:
        row.append(" " + detail, style=COLOR_MUTED)

    if index == cursor:
        row.stylize(f"bold on {COLOR_SURFACE}")
    elif index in selected_rows:
        row.stylize(f"on {COLOR_SELECTION}")
    return row


class TrackListView(Widget):
    """The navigable list: playlist, folder browser or artist browser.

    Only the rows that fit are rendered, so large playlists stay cheap
    to redraw on every progress tick.
    """

    DEFAULT_CSS = """
    TrackListView {
        height: 1fr;
        padding: 0 1;
    }
    """

    def __init__(self, state: AppState, **kwargs):
        super().__init__(**kwargs)
        self.state = state
        self._top = 0

    def render(self) -> Text:
        state = self.state
        items, cursor, matches = active_view(state)
        width = max(10, self.size.width)
        rows = max(1, self.size.height - 1)

        result = Text(no_wrap=True, overflow="ellipsis")
        result.append(view_title(state), style=f"{COLOR_HIGHLIGHT} bold")
        if state.filter_text:
            result.append(f"  /{state.filter_text}", style=COLOR_MUTED)

        if not items:
            result.append("\n")
            result.append(self._empty_message(), style=COLOR_MUTED)
            return result

        self._top = window_start(self._top, cursor, rows, len(items))
        selected_rows = set()
        if state.mode is Mode.VISUAL and state.visual_start != -1:
            low, high = sorted((state.visual_start, cursor))
            selected_rows = set(range(low, high + 1))
        matched_rows = {match.index for match in matches}

        gutter = gutter_width(state.settings, len(items))
        for index in range(self._top, min(len(items), self._top + rows)):
            result.append("\n")
            result.append_text(render_row(state, index, items[index], cursor, width, gutter,
                                         selected_rows, matched_rows))
        return result

    def _empty_message(self) -> str:
        if self.state.view_mode is ViewMode.FOLDER:
            return "No audio files here"
        if self.state.view_mode is ViewMode.ARTIST:
            return "No artists"
        return "No tracks loaded. Press o to open a folder"
