import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from models.track import SavedPlaylist, Track
from services.errors import PersistenceError

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.json"
SETTINGS_FILE = "settings.json"
KEYBINDINGS_FILE = "keybindings.json"
PLAYLISTS_DIR = "playlists"

INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def default_config_dir() -> Path:
    """$VIMPLAY_CONFIG_DIR, else $XDG_CONFIG_HOME/vimplay, else ~/.config/vimplay."""
    override = os.environ.get("VIMPLAY_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / "vimplay"


def playlist_filename(name: str) -> str:
    cleaned = INVALID_FILENAME_CHARS.sub("_", name.strip()).strip(". ")
    return f"{cleaned or 'playlist'}.json"


class PersistenceStore:
    """JSON files under the config directory: config, settings, keybindings and playlists."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else default_config_dir()
        self.playlists_dir = self.config_dir / PLAYLISTS_DIR

    # Raw JSON

    def _read(self, path: Path, default: Any) -> Any:
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning(f"Corrupted {path.name}, using defaults: {e}")
            return default
        except OSError as e:
            raise PersistenceError(f"Cannot read {path}: {e}") from e

    def _write(self, path: Path, data: Any) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Cannot write {path}: {e}") from e

    def _config(self) -> Dict[str, Any]:
        data = self._read(self.config_dir / CONFIG_FILE, {})
        return data if isinstance(data, dict) else {}

    def _save_config(self, config: Dict[str, Any]) -> None:
        self._write(self.config_dir / CONFIG_FILE, config)

    # Default folder

    def get_default_folder(self) -> Optional[str]:
        return self._config().get("default_folder")

    def set_default_folder(self, path: str) -> None:
        config = self._config()
        config["default_folder"] = path
        self._save_config(config)
        logger.info(f"Default folder set to {path}")

    def clear_default_folder(self) -> None:
        config = self._config()
        config.pop("default_folder", None)
        self._save_config(config)

    # Library folders

    def get_library_folders(self) -> List[str]:
        folders = self._config().get("library_folders", [])
        return [str(f) for f in folders] if isinstance(folders, list) else []

    def add_library_folder(self, folder: str) -> List[str]:
        config = self._config()
        folders = self.get_library_folders()
        if folder not in folders:
            folders.append(folder)
        config["library_folders"] = folders
        self._save_config(config)
        return folders

    def remove_library_folder(self, folder: str) -> List[str]:
        config = self._config()
        folders = [f for f in self.get_library_folders() if f != folder]
        config["library_folders"] = folders
        self._save_config(config)
        return folders

    # Settings and keybindings

    def get_settings(self) -> Dict[str, Any]:
        data = self._read(self.config_dir / SETTINGS_FILE, {})
        return data if isinstance(data, dict) else {}

    def save_settings(self, settings: Dict[str, Any]) -> None:
        self._write(self.config_dir / SETTINGS_FILE, settings)

    def get_keybindings(self) -> Dict[str, str]:
        data = self._read(self.config_dir / KEYBINDINGS_FILE, {})
        if not isinstance(data, dict):
            logger.warning(f"{KEYBINDINGS_FILE} must hold an object of chord -> action")
            return {}
        return {str(chord): str(action) for chord, action in data.items()}

    # Playlists

    def _find_playlist(self, name: str) -> Optional[Path]:
        """Playlist file whose stored name matches case-insensitively."""
        if not self.playlists_dir.is_dir():
            return None
        wanted = name.strip().lower()
        for path in sorted(self.playlists_dir.glob("*.json")):
            data = self._read(path, None)
            if isinstance(data, dict) and str(data.get("name", path.stem)).lower() == wanted:
                return path
        return None

    def list_playlists(self) -> List[SavedPlaylist]:
        if not self.playlists_dir.is_dir():
            return []
        playlists = []
        for path in self.playlists_dir.glob("*.json"):
            data = self._read(path, None)
            if not isinstance(data, dict):
                continue
            playlists.append(SavedPlaylist(str(data.get("name", path.stem)), len(data.get("tracks", []))))
        return sorted(playlists, key=lambda p: p.name.lower())

    def save_playlist(self, name: str, tracks: Iterable[Track]) -> None:
        path = self._find_playlist(name) or self.playlists_dir / playlist_filename(name)
        self._write(path, {"name": name, "tracks": [track.to_dict() for track in tracks]})
        logger.info(f"Saved playlist {name!r} to {path}")

    def load_playlist(self, name: str) -> List[Track]:
        path = self._find_playlist(name)
        if path is None:
            raise PersistenceError(f'Playlist "{name}" not found')
        data = self._read(path, {})
        try:
            return [Track.from_dict(entry) for entry in data.get("tracks", [])]
        except (KeyError, TypeError) as e:
            raise PersistenceError(f'Playlist "{name}" is malformed: {e}') from e

    def delete_playlist(self, name: str) -> None:
        path = self._find_playlist(name)
        if path is None:
            raise PersistenceError(f'Playlist "{name}" not found')
        try:
            path.unlink()
        except OSError as e:
            raise PersistenceError(f"Cannot delete {path}: {e}") from e

    def rename_playlist(self, old_name: str, new_name: str) -> None:
        path = self._find_playlist(old_name)
        if path is None:
            raise PersistenceError(f'Playlist "{old_name}" not found')
        existing = self._find_playlist(new_name)
        if existing is not None and existing != path:
            raise PersistenceError(f'Playlist "{new_name}" already exists')
        data = self._read(path, {})
        data["name"] = new_name
        target = self.playlists_dir / playlist_filename(new_name)
        self._write(target, data)
        if target != path:
            try:
                path.unlink()
            except OSError as e:
                raise PersistenceError(f"Cannot remove {path}: {e}") from e

    def add_tracks_to_playlist(self, name: str, paths: Iterable[str]) -> int:
        """Append tracks to a playlist, creating it if needed. Returns how many were new."""
        path = self._find_playlist(name)
        data = self._read(path, {}) if path else {}
        entries = list(data.get("tracks", []))
        known = {entry.get("path") for entry in entries if isinstance(entry, dict)}
        added = 0
        for track_path in paths:
            if track_path in known:
                continue
            entries.append(Track(path=track_path, name=Path(track_path).name).to_dict())
            known.add(track_path)
            added += 1
        target = path or self.playlists_dir / playlist_filename(name)
        self._write(target, {"name": data.get("name", name), "tracks": entries})
        return added
