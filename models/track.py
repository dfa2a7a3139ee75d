from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional


def format_time(seconds: Optional[float]) -> str:
    """Format seconds as M:SS, or --:-- when unknown."""
    if seconds is None:
        return "--:--"
    seconds = int(seconds)
    return f"{seconds // 60}:{seconds % 60:02d}"


@dataclass(frozen=True)
class Track:
    """A playable audio file. Identity is the path."""
    path: str
    name: str
    duration: Optional[int] = None

    @classmethod
    def from_file(cls, file_path: Path, metadata: Optional[Dict[str, Any]] = None) -> "Track":
        """Build a Track from a file path and optional extracted metadata."""
        duration = None
        if metadata and metadata.get("duration"):
            duration = int(metadata["duration"])
        return cls(path=str(file_path), name=file_path.name, duration=duration)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Track":
        return cls(path=data["path"], name=data.get("name") or Path(data["path"]).name,
                   duration=data.get("duration"))

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "name": self.name, "duration": self.duration}


@dataclass(frozen=True)
class FolderItem:
    """A row in the folder browser: either a sub-folder or an audio file."""
    name: str
    path: str
    is_folder: bool
    duration: Optional[int] = None
    track_count: int = 0


@dataclass
class FolderListing:
    """Result of browsing one folder."""
    items: list[FolderItem] = field(default_factory=list)
    path: str = ""
    parent: Optional[str] = None


@dataclass(frozen=True)
class ArtistInfo:
    name: str
    track_count: int


@dataclass(frozen=True)
class SavedPlaylist:
    name: str
    track_count: int
