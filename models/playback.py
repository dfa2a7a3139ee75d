from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

MIN_SPEED = 0.25
MAX_SPEED = 3.0


class RepeatMode(Enum):
    """Repeat modes, cycled off -> one -> all."""
    OFF = "off"
    ONE = "one"
    ALL = "all"

    def next(self) -> "RepeatMode":
        order = list(RepeatMode)
        return order[(order.index(self) + 1) % len(order)]


@dataclass
class ShuffleState:
    enabled: bool = False
    history: list[int] = field(default_factory=list)
    cursor: int = -1

    def reset(self) -> None:
        self.history = []
        self.cursor = -1


@dataclass
class PlaybackState:
    """Transport state mirrored from the playback engine.

    Invariants: is_paused implies is_playing, and playing_index is -1
    exactly when nothing is playing (except at end of playlist, where the
    finished track stays highlighted).
    """
    playing_index: int = -1
    is_playing: bool = False
    is_paused: bool = False
    elapsed: float = 0
    duration: Optional[float] = None
    volume: float = 1.0
    previous_volume: float = 1.0
    speed: float = 1.0
    repeat_mode: RepeatMode = RepeatMode.OFF
    shuffle: ShuffleState = field(default_factory=ShuffleState)


@dataclass(frozen=True)
class Bookmark:
    key: str
    track_path: str
    position: float


@dataclass
class LoopRange:
    """A-B loop bounds in seconds. Monitoring needs both."""
    a: Optional[float] = None
    b: Optional[float] = None

    @property
    def active(self) -> bool:
        return self.a is not None and self.b is not None

    def clear(self) -> None:
        self.a = None
        self.b = None


@dataclass
class SleepTimer:
    end_timestamp: Optional[float] = None

    @property
    def armed(self) -> bool:
        return self.end_timestamp is not None


@dataclass(frozen=True)
class TrackInfo:
    """Engine answer to play/next/prev requests."""
    name: str
    duration: Optional[float] = None
    index: int = -1


@dataclass(frozen=True)
class EngineStatus:
    elapsed: float = 0
    duration: Optional[float] = None
    speed: float = 1.0
    is_playing: bool = False
    is_paused: bool = False
    is_finished: bool = False
    current_track: Optional[str] = None
    volume: float = 1.0
