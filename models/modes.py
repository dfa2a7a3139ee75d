from enum import Enum


class Mode(Enum):
    """Input mode. Exactly one is active."""
    NORMAL = "normal"
    COMMAND = "command"
    FILTER = "filter"
    VISUAL = "visual"


class Overlay(Enum):
    """Modal sub-views that take all key input while open."""
    NONE = "none"
    QUEUE = "queue"
    PLAYLIST_MANAGER = "playlist_manager"
    ADD_TO_PLAYLIST = "add_to_playlist"


class ViewMode(Enum):
    """Which item collection is navigable."""
    LIST = "list"
    FOLDER = "folder"
    ARTIST = "artist"


class ArtistSubView(Enum):
    ARTISTS = "artists"
    TRACKS = "tracks"


class PendingKind(Enum):
    """First key of a two-key sequence awaiting its continuation."""
    GOTO_PREFIX = "g"
    DELETE_PREFIX = "d"
    MARK_SET = "m"
    MARK_JUMP = "'"
