from __future__ import annotations

from enum import Enum
from typing import Optional


class Action(Enum):
    """Named actions a key chord can be bound to.

    Values are the names used in keybindings.json.
    """
    # Navigation
    MOVE_DOWN = "moveDown"
    MOVE_UP = "moveUp"
    PENDING_G = "pendingG"
    GO_TO_TOP = "goToTop"
    GO_TO_END = "goToEnd"
    PAGE_DOWN = "pageDown"
    PAGE_UP = "pageUp"
    # Playback
    PLAY_SELECTED = "playSelected"
    TOGGLE_PAUSE = "togglePause"
    STOP = "stop"
    NEXT_TRACK = "nextTrack"
    PREV_TRACK = "prevTrack"
    # Volume
    VOLUME_UP = "volumeUp"
    VOLUME_DOWN = "volumeDown"
    TOGGLE_MUTE = "toggleMute"
    # Speed
    SPEED_UP = "speedUp"
    SPEED_DOWN = "speedDown"
    SPEED_RESET = "speedReset"
    # Seek
    SEEK_FORWARD = "seekForward"
    SEEK_BACKWARD = "seekBackward"
    SEEK_FORWARD_LARGE = "seekForwardLarge"
    SEEK_BACKWARD_LARGE = "seekBackwardLarge"
    # Modes
    COMMAND_MODE = "commandMode"
    FILTER_MODE = "filterMode"
    NORMAL_MODE = "normalMode"
    VISUAL_MODE = "visualMode"
    # View
    TOGGLE_VIEW = "toggleView"
    # Repeat/Shuffle
    CYCLE_REPEAT = "cycleRepeat"
    TOGGLE_SHUFFLE = "toggleShuffle"
    # Queue
    ADD_TO_QUEUE = "addToQueue"
    TOGGLE_QUEUE_VIEW = "toggleQueueView"
    # Folder
    OPEN_FOLDER = "openFolder"
    RELOAD_CONTENT = "reloadContent"
    # Playlist
    OPEN_PLAYLIST_MANAGER = "openPlaylistManager"
    ADD_TO_PLAYLIST = "addToPlaylist"
    # Help
    TOGGLE_HELP = "toggleHelp"
    # Two-key sequences
    PENDING_D = "pendingD"
    PENDING_M = "pendingM"
    PENDING_QUOTE = "pendingQuote"
    # A-B loop
    SET_LOOP_A = "setLoopA"
    SET_LOOP_B = "setLoopB"
    CLEAR_LOOP = "clearLoop"

    @classmethod
    def from_name(cls, name: str) -> Optional["Action"]:
        """Look up an action by its keybindings.json name."""
        try:
            return cls(name)
        except ValueError:
            return None

    @property
    def label(self) -> str:
        """Human readable label for help display, e.g. 'Seek forward large'."""
        words = []
        current = ""
        for ch in self.value:
            if ch.isupper() and current:
                words.append(current)
                current = ch.lower()
            else:
                current += ch
        words.append(current)
        return " ".join(words).capitalize()
