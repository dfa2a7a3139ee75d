from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from core.component import Component, plural
from core.filtering import FilterEngine
from core.navigation import Navigator
from core.queue import QueueManager
from core.session import PlaybackSession
from models.app_state import LIBRARY_ROOT, PLAYLIST_ROOT_PREFIX, AppState
from models.modes import ArtistSubView, Mode, ViewMode
from models.track import Track
from services.errors import LibraryError, PersistenceError

logger = logging.getLogger(__name__)

SORT_KEYS = {
    "name": lambda track: track.name.casefold(),
    "duration": lambda track: track.duration or 0,
    "path": lambda track: track.path.casefold(),
}


def folder_name(path: str) -> str:
    """Last component of a path, or the path itself for a root."""
    return Path(path).name or path


def breadcrumb(current: Optional[str], root: Optional[str]) -> str:
    """'root / sub / dir' for the folder browser title."""
    if not current or not root:
        return ""
    root_path = Path(root)
    try:
        relative = Path(current).relative_to(root_path)
    except ValueError:
        return folder_name(current)
    return " / ".join([folder_name(root), *relative.parts])


class LibraryOperations(Component):
    """Playlist mutation and folder, library and artist browsing."""

    def __init__(self, state: AppState, presenter, library, store, session: PlaybackSession,
                 queue: QueueManager, filters: FilterEngine, navigator: Navigator):
        super().__init__(state, presenter)
        self.library = library
        self.store = store
        self.session = session
        self.queue = queue
        self.filters = filters
        self.navigator = navigator

    # Playlist replacement

    def replace_playlist(self, tracks: list[Track], root: Optional[str], remember_previous: bool = True) -> None:
        """Install a freshly loaded playlist, keeping the playing track by path."""
        state = self.state
        playing = state.playing_track
        if remember_previous and state.folder.root and state.folder.root != root:
            state.folder.previous_root = state.folder.root

        state.playlist = list(tracks)
        state.selected_index = 0
        state.view_mode = ViewMode.LIST
        state.folder.root = root
        state.folder.current = root if root and not self._is_virtual_root(root) else None
        state.queue = []
        state.queue_selected_index = 0
        state.playback.shuffle.reset()
        self._exit_visual()

        if playing is not None:
            state.playback.playing_index = state.index_of_path(playing.path)
            if state.playback.playing_index == -1 and state.playback.is_playing:
                self.session.stop()
        self.session.sync_engine_playlist()
        self.filters.refilter()
        self.presenter.refresh()

    @staticmethod
    def _is_virtual_root(root: str) -> bool:
        return root == LIBRARY_ROOT or root.startswith(PLAYLIST_ROOT_PREFIX)

    def _exit_visual(self) -> None:
        if self.state.mode is Mode.VISUAL:
            self.state.mode = Mode.NORMAL
        self.state.visual_start = -1

    # Deletion

    def delete_indices(self, indices: Iterable[int]) -> int:
        """Remove playlist rows, highest first, re-mapping every index that points into the list."""
        state = self.state
        doomed = sorted({i for i in indices if 0 <= i < len(state.playlist)}, reverse=True)
        if not doomed:
            return 0

        playing_index = state.playback.playing_index
        for index in doomed:
            del state.playlist[index]
            if index < playing_index:
                playing_index -= 1
            elif index == playing_index:
                playing_index = -1

        lost_playing = state.playback.playing_index != -1 and playing_index == -1
        state.playback.playing_index = playing_index
        if lost_playing and state.playback.is_playing:
            self.session.stop()
        self.queue.remap_after_delete(doomed)
        state.playback.shuffle.reset()
        if state.selected_index >= len(state.playlist):
            state.selected_index = max(0, len(state.playlist) - 1)
        self.session.sync_engine_playlist()
        self.filters.refilter()
        self.presenter.refresh()
        return len(doomed)

    def delete_range(self, start: int, end: int) -> None:
        """Delete 1-based inclusive lines `start`..`end`, clamped to the playlist."""
        if not self.state.playlist:
            return
        first = max(0, start - 1)
        last = min(len(self.state.playlist) - 1, end - 1)
        if first > last:
            self.status("Invalid range")
            return
        count = self.delete_indices(range(first, last + 1))
        self.status(f"Deleted {plural(count, 'track')} (lines {start}-{end})")

    def delete_selected(self) -> None:
        """Delete the visual selection, or the row under the cursor."""
        if not self.state.playlist:
            return
        if self.state.mode is Mode.VISUAL:
            indices = self.navigator.visual_range()
            self._exit_visual()
        else:
            indices = [self.state.selected_index]
        count = self.delete_indices(indices)
        if count:
            self.status(f"Deleted {plural(count, 'track')}")

    # Sorting

    def sort(self, field: str) -> None:
        state = self.state
        if not state.playlist:
            self.status("No tracks to sort")
            return
        reverse = field.endswith("!")
        key = field[:-1] if reverse else field
        if key not in SORT_KEYS:
            self.status(f"Unknown sort field: {key}. Use name, duration, or path")
            return

        playing = state.playing_track
        selected = state.track_at(state.selected_index)
        state.playlist.sort(key=SORT_KEYS[key], reverse=reverse)
        if playing is not None:
            state.playback.playing_index = state.index_of_path(playing.path)
        if selected is not None:
            state.selected_index = max(0, state.index_of_path(selected.path))
        state.playback.shuffle.reset()

        label = f"Sorted by {key}{' (reversed)' if reverse else ''}"
        if state.queue:
            state.queue = []
            state.queue_selected_index = 0
            label += ", queue cleared"
        self.session.sync_engine_playlist()
        self.filters.refilter()
        self.presenter.refresh()
        self.presenter.scroll_to_selection()
        self.status(label)

    # Folder and library loading

    def open_folder(self) -> None:
        self.presenter.prompt("Open folder", self.load_folder)

    def load_folder(self, path: str, remember_previous: bool = True) -> bool:
        path = os.path.expanduser(path.strip())
        if not path:
            return False
        self.status("Loading...")
        try:
            tracks = self.library.load_folder(path)
        except LibraryError as e:
            logger.error(f"Failed to load folder {path}: {e}")
            self.status(f"Error: {e}")
            return False
        self.replace_playlist(tracks, path, remember_previous)
        self.status(f"Loaded {plural(len(tracks), 'track')}")
        return True

    def apply_loaded_folder(self, path: str, tracks: list[Track]) -> None:
        """Install tracks scanned off the UI thread."""
        self.replace_playlist(tracks, path)
        self.status(f"Loaded {plural(len(tracks), 'track')}")

    def scan_library(self, remember_previous: bool = True) -> None:
        folders = self._library_folders()
        if folders is None:
            return
        if not folders:
            self.status("No library folders. Use :addlib to add folders")
            return

        seen = set()
        tracks: list[Track] = []
        for folder in folders:
            try:
                scanned = self.library.load_folder(folder)
            except LibraryError as e:
                logger.warning(f"Failed to scan {folder}: {e}")
                continue
            for track in scanned:
                if track.path not in seen:
                    seen.add(track.path)
                    tracks.append(track)
        tracks.sort(key=lambda track: track.name.casefold())

        self.replace_playlist(tracks, LIBRARY_ROOT, remember_previous)
        self.status(f"Library: {len(tracks)} tracks from {plural(len(folders), 'folder')}")

    def reload(self) -> None:
        state = self.state
        root = state.folder.root
        if not root:
            self.status("No folder loaded")
            return
        if root == LIBRARY_ROOT:
            self.scan_library(remember_previous=False)
            return
        if root.startswith(PLAYLIST_ROOT_PREFIX):
            self.load_saved_playlist(root[len(PLAYLIST_ROOT_PREFIX):], remember_previous=False)
            return

        previous_count = len(state.playlist)
        selected_row = state.selected_index
        selected = state.track_at(selected_row)
        view = state.view_mode
        current_folder = state.folder.current
        self.status("Reloading...")
        try:
            tracks = self.library.load_folder(root)
        except LibraryError as e:
            logger.error(f"Failed to reload {root}: {e}")
            self.status(f"Error: {e}")
            return
        self.replace_playlist(tracks, root, remember_previous=False)
        index = state.index_of_path(selected.path) if selected is not None else -1
        state.selected_index = index if index >= 0 else min(selected_row, max(0, len(tracks) - 1))
        if view is ViewMode.FOLDER and current_folder:
            state.view_mode = ViewMode.FOLDER
            self.load_folder_contents(current_folder)

        diff = len(tracks) - previous_count
        diff_text = f" (+{diff})" if diff > 0 else f" ({diff})" if diff < 0 else ""
        self.status(f"Reloaded: {len(tracks)} tracks{diff_text}")

    def load_saved_playlist(self, name: str, remember_previous: bool = True) -> None:
        self.status("Loading playlist...")
        try:
            tracks = self.store.load_playlist(name)
        except PersistenceError as e:
            logger.error(f"Failed to load playlist {name}: {e}")
            self.status(f"Error: {e}")
            return
        self.replace_playlist(tracks, f"{PLAYLIST_ROOT_PREFIX}{name}", remember_previous)
        self.status(f'Loaded "{name}" ({plural(len(tracks), "track")})')

    def go_back(self) -> None:
        folder = self.state.folder
        if not folder.previous_root:
            self.status("No previous folder to go back to")
            return
        previous = folder.previous_root
        folder.previous_root = folder.root
        if previous == LIBRARY_ROOT:
            self.scan_library(remember_previous=False)
        elif previous.startswith(PLAYLIST_ROOT_PREFIX):
            self.load_saved_playlist(previous[len(PLAYLIST_ROOT_PREFIX):], remember_previous=False)
        else:
            self.load_folder(previous, remember_previous=False)

    # Library folders and the default folder

    def _library_folders(self) -> Optional[list[str]]:
        try:
            return self.store.get_library_folders()
        except PersistenceError as e:
            logger.error(f"Failed to read library folders: {e}")
            self.status(f"Error: {e}")
            return None

    def add_library_folder(self) -> None:
        self.presenter.prompt("Add library folder", self._add_library_folder)

    def _add_library_folder(self, path: str) -> None:
        path = os.path.expanduser(path.strip())
        if not path:
            return
        try:
            folders = self.store.add_library_folder(path)
        except PersistenceError as e:
            logger.error(f"Failed to add library folder: {e}")
            self.status(f"Error: {e}")
            return
        self.status(f"Library folder added ({len(folders)} total)")

    def remove_library_folder(self, number: int) -> None:
        folders = self._library_folders()
        if folders is None:
            return
        if not 1 <= number <= len(folders):
            self.status("Invalid folder number. Use :libs to see folders")
            return
        try:
            remaining = self.store.remove_library_folder(folders[number - 1])
        except PersistenceError as e:
            logger.error(f"Failed to remove library folder: {e}")
            self.status(f"Error: {e}")
            return
        self.status(f"Library folder removed ({len(remaining)} remaining)")

    def show_library_folders(self) -> None:
        folders = self._library_folders()
        if folders is None:
            return
        if not folders:
            self.status("No library folders. Use :addlib to add folders")
            return
        listing = "\n".join(f"{i}. {folder}" for i, folder in enumerate(folders, start=1))
        self.status(f"Library folders:\n{listing}")

    def set_default_folder(self) -> None:
        self.presenter.prompt("Default music folder", self._set_default_folder)

    def _set_default_folder(self, path: str) -> None:
        path = os.path.expanduser(path.strip())
        if not path:
            return
        try:
            self.store.set_default_folder(path)
        except PersistenceError as e:
            logger.error(f"Failed to set default folder: {e}")
            self.status(f"Error: {e}")
            return
        if self.load_folder(path):
            self.status("Default folder set")

    def clear_default_folder(self) -> None:
        try:
            self.store.clear_default_folder()
        except PersistenceError as e:
            logger.error(f"Failed to clear default folder: {e}")
            return
        self.status("Default folder cleared")

    # Folder view

    def toggle_view(self) -> None:
        state = self.state
        if state.view_mode is ViewMode.ARTIST:
            self._show_list()
            return
        if not state.folder.root:
            self.status("No folder loaded")
            return
        if state.view_mode is ViewMode.LIST:
            if self._is_virtual_root(state.folder.root):
                self.status("Folder view needs a folder root")
                return
            state.view_mode = ViewMode.FOLDER
            self.load_folder_contents(state.folder.root)
        else:
            state.selected_index = 0
            self._show_list()
            self.status("List view")

    def _show_list(self) -> None:
        self.state.view_mode = ViewMode.LIST
        self.navigator.clamp_cursor()
        self.filters.refilter()
        self.presenter.refresh()
        self.presenter.scroll_to_selection()

    def load_folder_contents(self, path: str) -> None:
        folder = self.state.folder
        try:
            listing = self.library.browse_folder(path, folder.root)
        except LibraryError as e:
            logger.error(f"Failed to browse {path}: {e}")
            self.status(f"Error: {e}")
            return
        folder.contents = listing.items
        folder.current = listing.path
        folder.parent = listing.parent
        folder.selected_index = 0
        self.filters.refilter()
        self.presenter.refresh()
        self.presenter.scroll_to_selection()
        self.status(f"Folder: {folder_name(listing.path)}")

    def folder_up(self) -> None:
        folder = self.state.folder
        if folder.parent and folder.current != folder.root:
            self.load_folder_contents(folder.parent)

    def activate_folder_item(self) -> None:
        folder = self.state.folder
        if not 0 <= folder.selected_index < len(folder.contents):
            return
        item = folder.contents[folder.selected_index]
        if item.is_folder:
            self.load_folder_contents(item.path)
        else:
            self.play_path(item.path)

    def play_path(self, path: str) -> None:
        index = self.state.index_of_path(path)
        if index == -1:
            self.status("Track not in playlist")
            return
        self.session.play_track(index)

    def load_current_folder_as_playlist(self) -> None:
        folder = self.state.folder
        if not folder.contents or not folder.current:
            return
        if not any(not item.is_folder for item in folder.contents):
            self.status("No audio files in this folder")
            return
        self.status("Loading folder...")
        try:
            tracks = self.library.load_folder(folder.current)
        except LibraryError as e:
            logger.error(f"Failed to load folder {folder.current}: {e}")
            self.status(f"Error: {e}")
            return
        root = folder.root
        self.replace_playlist(tracks, root, remember_previous=False)
        self.status(f"Loaded {plural(len(tracks), 'track')} from folder")

    # Artist view

    def open_artist_view(self) -> None:
        state = self.state
        if not state.playlist:
            self.status("No tracks loaded. Load a folder or library first.")
            return
        self.status("Scanning metadata...")
        try:
            artists = self.library.get_artists(state.playlist)
        except LibraryError as e:
            logger.error(f"Failed to scan artists: {e}")
            self.status(f"Failed to scan metadata: {e}")
            return
        self._exit_visual()
        state.artist.artists = artists
        state.artist.sub_view = ArtistSubView.ARTISTS
        state.artist.current_artist = None
        state.artist.tracks = []
        state.artist.selected_index = 0
        state.view_mode = ViewMode.ARTIST
        self.filters.refilter()
        self.presenter.refresh()
        self.status(f"{plural(len(artists), 'artist')} found")

    def open_artist_tracks(self, artist_name: str) -> None:
        artist = self.state.artist
        try:
            tracks = self.library.get_artist_tracks(artist_name, self.state.playlist)
        except LibraryError as e:
            logger.error(f"Failed to load tracks for {artist_name}: {e}")
            self.status(f"Failed to load artist tracks: {e}")
            return
        artist.current_artist = artist_name
        artist.tracks = tracks
        artist.sub_view = ArtistSubView.TRACKS
        artist.selected_index = 0
        self.filters.refilter()
        self.presenter.refresh()
        self.presenter.scroll_to_selection()

    def artist_back(self) -> None:
        artist = self.state.artist
        if artist.sub_view is ArtistSubView.TRACKS:
            artist.sub_view = ArtistSubView.ARTISTS
            names = [a.name for a in artist.artists]
            artist.selected_index = names.index(artist.current_artist) if artist.current_artist in names else 0
            self.filters.refilter()
            self.presenter.refresh()
            self.presenter.scroll_to_selection()
        else:
            self._show_list()

    def activate_artist_item(self) -> None:
        artist = self.state.artist
        items = artist.items
        if not 0 <= artist.selected_index < len(items):
            return
        if artist.sub_view is ArtistSubView.ARTISTS:
            self.open_artist_tracks(items[artist.selected_index].name)
        else:
            self.play_path(items[artist.selected_index].path)

    def close_artist_view(self) -> None:
        """Escape from the artist browser: drop the filter and show the playlist."""
        self.filters.clear()
        self._show_list()

    # Reveal

    def selected_path(self) -> Optional[str]:
        state = self.state
        if state.view_mode is ViewMode.FOLDER:
            items = state.folder.contents
            index = state.folder.selected_index
        elif state.view_mode is ViewMode.ARTIST:
            if state.artist.sub_view is ArtistSubView.ARTISTS:
                return None
            items = state.artist.tracks
            index = state.artist.selected_index
        else:
            items = state.playlist
            index = state.selected_index
        if 0 <= index < len(items):
            return items[index].path
        return None

    def reveal_selected(self) -> None:
        path = self.selected_path()
        if not path:
            self.status("No track selected")
            return
        try:
            self.library.reveal_in_explorer(path)
        except LibraryError as e:
            logger.error(f"Failed to reveal {path}: {e}")
            self.status(f"Failed to reveal: {e}")
            return
        self.status(f"Revealed: {folder_name(path)}")
