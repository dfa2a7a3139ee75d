import logging
import subprocess
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from mutagen import File as MutagenFile

from models.track import ArtistInfo, FolderItem, FolderListing, Track
from services.errors import LibraryError

logger = logging.getLogger(__name__)

UNKNOWN_ARTIST = "Unknown Artist"


class MusicLibrary:
    """Service for discovering music files and reading their metadata."""

    SUPPORTED_EXTENSIONS = {'.mp3', '.flac', '.wav', '.ogg', '.m4a'}

    def __init__(self):
        self._artist_cache: Dict[str, str] = {}

    def is_audio_file(self, path: Path) -> bool:
        return path.is_file() and path.suffix.lower() in self.SUPPORTED_EXTENSIONS

    def _audio_files(self, folder: Path) -> List[Path]:
        return sorted(p for p in folder.rglob("*") if self.is_audio_file(p))

    def load_folder(self, path: str) -> List[Track]:
        """Scan a folder recursively for audio files.

        Args:
            path: Folder to scan.

        Returns:
            Tracks sorted by path, with durations where mutagen can read them.

        Raises:
            LibraryError: If the folder does not exist or cannot be read.
        """
        folder = Path(path).expanduser()
        if not folder.is_dir():
            raise LibraryError(f"Not a folder: {path}")
        try:
            files = self._audio_files(folder)
        except OSError as e:
            raise LibraryError(f"Cannot read {path}: {e}") from e

        tracks = [Track.from_file(file_path, self._extract_metadata(file_path)) for file_path in files]
        logger.info(f"Loaded {len(tracks)} tracks from {folder}")
        return tracks

    def browse_folder(self, path: str, root_path: Optional[str] = None) -> FolderListing:
        """List one folder: sub-folders holding music first, then audio files.

        Args:
            path: Folder to list.
            root_path: Browsing root; its parent is never offered.

        Returns:
            FolderListing with items, the resolved path and the parent (None at the root).
        """
        folder = Path(path).expanduser()
        if not folder.is_dir():
            raise LibraryError(f"Not a folder: {path}")

        folders: List[FolderItem] = []
        files: List[FolderItem] = []
        try:
            entries = sorted(folder.iterdir(), key=lambda p: p.name.lower())
            for entry in entries:
                if entry.name.startswith("."):
                    continue
                if entry.is_dir():
                    count = len(self._audio_files(entry))
                    if count:
                        folders.append(FolderItem(entry.name, str(entry), True, track_count=count))
                elif self.is_audio_file(entry):
                    duration = self._extract_metadata(entry).get("duration")
                    files.append(FolderItem(entry.name, str(entry), False,
                                            duration=int(duration) if duration else None))
        except OSError as e:
            raise LibraryError(f"Cannot read {path}: {e}") from e

        at_root = root_path is not None and Path(root_path).expanduser() == folder
        parent = None if at_root or folder.parent == folder else str(folder.parent)
        return FolderListing(items=folders + files, path=str(folder), parent=parent)

    def get_artists(self, tracks: Iterable[Track]) -> List[ArtistInfo]:
        """Group tracks by their artist tag."""
        counts: Dict[str, int] = {}
        for track in tracks:
            artist = self._artist_for(track.path)
            counts[artist] = counts.get(artist, 0) + 1
        return [ArtistInfo(name, counts[name]) for name in sorted(counts, key=str.lower)]

    def get_artist_tracks(self, artist: str, tracks: Iterable[Track]) -> List[Track]:
        return [track for track in tracks if self._artist_for(track.path) == artist]

    def _artist_for(self, path: str) -> str:
        if path not in self._artist_cache:
            self._artist_cache[path] = self._extract_metadata(Path(path)).get("artist", UNKNOWN_ARTIST)
        return self._artist_cache[path]

    def reveal_in_explorer(self, path: str) -> None:
        """Open the platform file manager at `path`."""
        target = Path(path)
        if sys.platform == "darwin":
            command = ["open", "-R", str(target)]
        elif sys.platform.startswith("win"):
            command = ["explorer", f"/select,{target}"]
        else:
            command = ["xdg-open", str(target.parent if target.is_file() else target)]
        try:
            subprocess.Popen(command, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except OSError as e:
            raise LibraryError(f"Cannot open file manager: {e}") from e

    @staticmethod
    def _extract_metadata(file_path: Path) -> Dict[str, Any]:
        """Extract artist and duration from an audio file using mutagen.

        Args:
            file_path: Path to audio file.

        Returns:
            Dictionary with artist and duration; unreadable files yield
            the fallbacks rather than an error.
        """
        try:
            audio = MutagenFile(file_path, easy=True)
        except Exception as e:
            logger.warning(f"Could not extract metadata from {file_path}: {e}")
            return {'artist': UNKNOWN_ARTIST, 'duration': None}

        if audio is None:
            return {'artist': UNKNOWN_ARTIST, 'duration': None}

        artist = UNKNOWN_ARTIST
        if audio.tags and 'artist' in audio.tags:
            value = audio.tags['artist']
            artist = str(value[0]) if isinstance(value, list) else str(value)

        duration = None
        if audio.info and hasattr(audio.info, 'length'):
            duration = float(audio.info.length)

        return {'artist': artist, 'duration': duration}
