from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from models.modes import ArtistSubView, Mode, Overlay, PendingKind, ViewMode
from models.playback import Bookmark, LoopRange, PlaybackState, SleepTimer
from models.settings import Settings
from models.track import ArtistInfo, FolderItem, SavedPlaylist, Track

LIBRARY_ROOT = "Library"
PLAYLIST_ROOT_PREFIX = "Playlist: "


@dataclass(frozen=True)
class FilterMatch:
    """A filtered row and its index in the unfiltered list."""
    item: object
    index: int


@dataclass
class FolderState:
    root: Optional[str] = None
    previous_root: Optional[str] = None
    current: Optional[str] = None
    parent: Optional[str] = None
    contents: list[FolderItem] = field(default_factory=list)
    selected_index: int = 0
    filtered: list[FilterMatch] = field(default_factory=list)


@dataclass
class ArtistState:
    sub_view: ArtistSubView = ArtistSubView.ARTISTS
    artists: list[ArtistInfo] = field(default_factory=list)
    current_artist: Optional[str] = None
    tracks: list[Track] = field(default_factory=list)
    selected_index: int = 0
    filtered: list[FilterMatch] = field(default_factory=list)

    @property
    def items(self) -> list:
        return self.artists if self.sub_view is ArtistSubView.ARTISTS else self.tracks


@dataclass
class PickerState:
    """Selection lists for the playlist manager and add-to-playlist overlays."""
    saved_playlists: list[SavedPlaylist] = field(default_factory=list)
    manager_index: int = 0
    picker_index: int = 0
    picker_tracks: list[str] = field(default_factory=list)


@dataclass
class AppState:
    """All in-memory application state, passed explicitly to every handler."""
    playlist: list[Track] = field(default_factory=list)
    selected_index: int = 0
    filtered_playlist: list[FilterMatch] = field(default_factory=list)
    filter_text: str = ""
    command_buffer: str = ""

    mode: Mode = Mode.NORMAL
    overlay: Overlay = Overlay.NONE
    view_mode: ViewMode = ViewMode.LIST
    pending: Optional[PendingKind] = None
    count_prefix: str = ""
    visual_start: int = -1

    playback: PlaybackState = field(default_factory=PlaybackState)
    queue: list[int] = field(default_factory=list)
    queue_selected_index: int = 0

    folder: FolderState = field(default_factory=FolderState)
    artist: ArtistState = field(default_factory=ArtistState)
    pickers: PickerState = field(default_factory=PickerState)

    bookmarks: dict[str, Bookmark] = field(default_factory=dict)
    loop: LoopRange = field(default_factory=LoopRange)
    sleep: SleepTimer = field(default_factory=SleepTimer)
    settings: Settings = field(default_factory=Settings)

    status: str = ""

    @property
    def count(self) -> int:
        """Numeric count prefix, defaulting to 1."""
        return int(self.count_prefix) if self.count_prefix else 1

    def clear_count(self) -> None:
        self.count_prefix = ""

    def track_at(self, index: int) -> Optional[Track]:
        if 0 <= index < len(self.playlist):
            return self.playlist[index]
        return None

    def index_of_path(self, path: Optional[str]) -> int:
        """Playlist index of the track with this path, or -1."""
        if path is None:
            return -1
        for i, track in enumerate(self.playlist):
            if track.path == path:
                return i
        return -1

    @property
    def playing_track(self) -> Optional[Track]:
        return self.track_at(self.playback.playing_index)
