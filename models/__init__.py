from .track import Track, FolderItem, FolderListing, ArtistInfo, SavedPlaylist
from .playback import PlaybackState, RepeatMode, Bookmark, LoopRange, SleepTimer, EngineStatus, TrackInfo
from .modes import Mode, Overlay, ViewMode, ArtistSubView, PendingKind
from .actions import Action
from .settings import Settings
from .app_state import AppState, FilterMatch

__all__ = [
    "Track",
    "FolderItem",
    "FolderListing",
    "ArtistInfo",
    "SavedPlaylist",
    "PlaybackState",
    "RepeatMode",
    "Bookmark",
    "LoopRange",
    "SleepTimer",
    "EngineStatus",
    "TrackInfo",
    "Mode",
    "Overlay",
    "ViewMode",
    "ArtistSubView",
    "PendingKind",
    "Action",
    "Settings",
    "AppState",
    "FilterMatch",
]
