from .track_list import TrackListView
from .now_playing import NowPlayingView

__all__ = ["TrackListView", "NowPlayingView"]
