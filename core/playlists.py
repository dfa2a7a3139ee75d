from __future__ import annotations

import logging
from typing import Optional

from core.component import Component, plural
from core.library import LibraryOperations
from core.navigation import Navigator, clamp
from models.app_state import PLAYLIST_ROOT_PREFIX, AppState
from models.modes import ArtistSubView, Mode, Overlay, ViewMode
from services.errors import PersistenceError

logger = logging.getLogger(__name__)

NEW_PLAYLIST_LABEL = "New Playlist..."


class PlaylistOperations(Component):
    """Saved playlists: save/load/rename/delete plus the manager and picker overlays."""

    def __init__(self, state: AppState, presenter, store, library: LibraryOperations, navigator: Navigator):
        super().__init__(state, presenter)
        self.store = store
        self.library = library
        self.navigator = navigator

    def _list(self) -> Optional[list]:
        try:
            return self.store.list_playlists()
        except PersistenceError as e:
            logger.error(f"Failed to list playlists: {e}")
            self.status(f"Error: {e}")
            return None

    # Commands

    def save(self, name: str) -> None:
        name = name.strip()
        if not self.state.playlist:
            self.status("No tracks to save")
            return
        if not name:
            self.status("Usage: :save <playlist name>")
            return
        playlists = self._list()
        if playlists is None:
            return
        if any(p.name.lower() == name.lower() for p in playlists):
            self.presenter.confirm(
                f'Playlist "{name}" already exists. Overwrite?',
                lambda ok: self._write(name) if ok else self.status("Save cancelled"),
            )
            return
        self._write(name)

    def _write(self, name: str) -> None:
        try:
            self.store.save_playlist(name, self.state.playlist)
        except PersistenceError as e:
            logger.error(f"Failed to save playlist {name}: {e}")
            self.status(f"Error: {e}")
            return
        self.status(f'Playlist "{name}" saved ({plural(len(self.state.playlist), "track")})')

    def load(self, name: str) -> None:
        self.library.load_saved_playlist(name.strip())

    def rename(self, old_name: str, new_name: str) -> None:
        try:
            self.store.rename_playlist(old_name, new_name)
        except PersistenceError as e:
            logger.error(f"Failed to rename playlist {old_name}: {e}")
            self.status(f"Error: {e}")
            return
        self.status(f'Playlist renamed: "{old_name}" → "{new_name}"')
        folder = self.state.folder
        if folder.root and folder.root.lower() == f"{PLAYLIST_ROOT_PREFIX}{old_name}".lower():
            folder.root = f"{PLAYLIST_ROOT_PREFIX}{new_name}"
        if self.state.overlay is Overlay.PLAYLIST_MANAGER:
            self.refresh_manager()

    def delete(self, name: str) -> None:
        try:
            self.store.delete_playlist(name)
        except PersistenceError as e:
            logger.error(f"Failed to delete playlist {name}: {e}")
            self.status(f"Error: {e}")
            return
        self.status(f'Playlist "{name}" deleted')
        if self.state.overlay is Overlay.PLAYLIST_MANAGER:
            self.refresh_manager()

    # Playlist manager overlay

    def open_manager(self) -> None:
        playlists = self._list()
        if playlists is None:
            return
        self.state.pickers.saved_playlists = playlists
        self.state.pickers.manager_index = 0
        self.state.overlay = Overlay.PLAYLIST_MANAGER
        self.presenter.refresh()

    def refresh_manager(self) -> None:
        playlists = self._list()
        if playlists is None:
            return
        pickers = self.state.pickers
        pickers.saved_playlists = playlists
        pickers.manager_index = min(pickers.manager_index, max(0, len(playlists) - 1))
        self.presenter.refresh()

    def close_overlay(self) -> None:
        self.state.overlay = Overlay.NONE
        self.state.pickers.picker_tracks = []
        self.presenter.refresh()

    def move_manager(self, delta: int) -> None:
        pickers = self.state.pickers
        if pickers.saved_playlists:
            pickers.manager_index = clamp(pickers.manager_index + delta, 0, len(pickers.saved_playlists) - 1)
            self.presenter.refresh()

    def manager_to(self, index: int) -> None:
        pickers = self.state.pickers
        pickers.manager_index = clamp(index, 0, max(0, len(pickers.saved_playlists) - 1))
        self.presenter.refresh()

    def load_selected(self) -> None:
        pickers = self.state.pickers
        if not pickers.saved_playlists:
            return
        playlist = pickers.saved_playlists[pickers.manager_index]
        self.close_overlay()
        self.library.load_saved_playlist(playlist.name)

    def delete_selected(self) -> None:
        pickers = self.state.pickers
        if not pickers.saved_playlists:
            return
        name = pickers.saved_playlists[pickers.manager_index].name
        self.presenter.confirm(f'Delete playlist "{name}"?', lambda ok: self.delete(name) if ok else None)

    # Add-to-playlist picker

    def selected_track_paths(self, indices: Optional[list[int]] = None) -> list[str]:
        """Paths behind the given rows (or the cursor row) of the active view; folders are skipped."""
        state = self.state
        if state.view_mode is ViewMode.FOLDER:
            items = state.folder.contents
            rows = indices if indices is not None else [state.folder.selected_index]
            return [items[i].path for i in rows if 0 <= i < len(items) and not items[i].is_folder]
        if state.view_mode is ViewMode.ARTIST:
            if state.artist.sub_view is ArtistSubView.ARTISTS:
                return []
            items = state.artist.tracks
            rows = indices if indices is not None else [state.artist.selected_index]
            return [items[i].path for i in rows if 0 <= i < len(items)]
        rows = indices if indices is not None else [state.selected_index]
        return [state.playlist[i].path for i in rows if 0 <= i < len(state.playlist)]

    def add_selection_to_playlist(self) -> None:
        """Open the picker for the visual selection or the cursor row."""
        indices = self.navigator.visual_range() if self.state.mode is Mode.VISUAL else None
        self.show_picker(self.selected_track_paths(indices))

    def show_picker(self, paths: list[str]) -> None:
        paths = [p for p in paths if p]
        if not paths:
            self.status("No tracks selected")
            return
        playlists = self._list()
        if playlists is None:
            return
        pickers = self.state.pickers
        pickers.saved_playlists = playlists
        pickers.picker_tracks = paths
        pickers.picker_index = 0
        if self.state.mode is Mode.VISUAL:
            self.state.mode = Mode.NORMAL
            self.state.visual_start = -1
        self.state.overlay = Overlay.ADD_TO_PLAYLIST
        self.presenter.refresh()

    @property
    def picker_rows(self) -> int:
        return len(self.state.pickers.saved_playlists) + 1

    def move_picker(self, delta: int) -> None:
        pickers = self.state.pickers
        pickers.picker_index = clamp(pickers.picker_index + delta, 0, self.picker_rows - 1)
        self.presenter.refresh()

    def picker_to(self, index: int) -> None:
        self.state.pickers.picker_index = clamp(index, 0, self.picker_rows - 1)
        self.presenter.refresh()

    def confirm_picker(self) -> None:
        pickers = self.state.pickers
        tracks = list(pickers.picker_tracks)
        if pickers.picker_index == 0:
            self.close_overlay()
            self.presenter.prompt(
                "Enter playlist name:",
                lambda name: self.add_tracks_by_name(name.strip(), tracks) if name.strip() else None,
            )
            return
        name = pickers.saved_playlists[pickers.picker_index - 1].name
        self.add_tracks_by_name(name, tracks)
        self.close_overlay()

    def add_tracks_by_name(self, name: str, paths: list[str]) -> None:
        try:
            added = self.store.add_tracks_to_playlist(name, paths)
        except PersistenceError as e:
            logger.error(f"Failed to add tracks to playlist {name}: {e}")
            self.status(f"Error: {e}")
            return
        self.status(f'Added {plural(added, "track")} to "{name}"')
