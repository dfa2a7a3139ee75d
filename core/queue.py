from __future__ import annotations

import logging
from typing import Iterable, Optional

from core.component import Component, plural
from models.modes import ArtistSubView, ViewMode

logger = logging.getLogger(__name__)


class QueueManager(Component):
    """FIFO of playlist indices to play before normal track-end handling."""

    @property
    def entries(self) -> list[int]:
        return self.state.queue

    def enqueue(self, index: int) -> None:
        self.state.queue.append(index)

    def dequeue_front(self) -> Optional[int]:
        if not self.state.queue:
            return None
        index = self.state.queue.pop(0)
        self.clamp_selection()
        return index

    def take(self, position: int) -> Optional[int]:
        """Remove and return the entry at `position`."""
        if not 0 <= position < len(self.state.queue):
            return None
        index = self.state.queue.pop(position)
        self.clamp_selection()
        return index

    def remove(self, position: int) -> None:
        index = self.take(position)
        if index is None:
            return
        track = self.state.track_at(index)
        self.status(f"Removed from queue: {track.name if track else index + 1}")
        self.presenter.refresh()

    def reorder(self, position: int, direction: int) -> int:
        """Swap the entry at `position` with its neighbour; returns the new position."""
        target = position + direction
        queue = self.state.queue
        if not (0 <= position < len(queue) and 0 <= target < len(queue)):
            return position
        queue[position], queue[target] = queue[target], queue[position]
        self.presenter.refresh()
        return target

    def clear(self) -> None:
        self.state.queue = []
        self.state.queue_selected_index = 0
        self.status("Queue cleared")
        self.presenter.refresh()

    def clamp_selection(self) -> None:
        if self.state.queue_selected_index >= len(self.state.queue):
            self.state.queue_selected_index = max(0, len(self.state.queue) - 1)

    def remap_after_delete(self, deleted: Iterable[int]) -> None:
        """Drop entries for deleted rows and shift the rest down."""
        removed = sorted(set(deleted))
        if not removed or not self.state.queue:
            return
        remapped = []
        for index in self.state.queue:
            if index in removed:
                continue
            remapped.append(index - sum(1 for r in removed if r < index))
        dropped = len(self.state.queue) - len(remapped)
        self.state.queue = remapped
        self.clamp_selection()
        if dropped:
            logger.debug(f"Dropped {dropped} queue entries for deleted tracks")

    def add_indices(self, indices: Iterable[int]) -> int:
        added = 0
        for index in indices:
            if 0 <= index < len(self.state.playlist):
                self.enqueue(index)
                added += 1
        return added

    def add_selected(self) -> None:
        """Queue the item under the cursor, resolving non-list rows by path."""
        view = self.state.view_mode
        if view is ViewMode.FOLDER:
            item = _at(self.state.folder.contents, self.state.folder.selected_index)
            if item is None:
                return
            if item.is_folder:
                self.status("Cannot queue a folder. Select a track.")
                return
            self._add_by_path(item.path, item.name)
            return
        if view is ViewMode.ARTIST:
            if self.state.artist.sub_view is ArtistSubView.ARTISTS:
                self.status("Open an artist to queue its tracks")
                return
            track = _at(self.state.artist.tracks, self.state.artist.selected_index)
            if track is not None:
                self._add_by_path(track.path, track.name)
            return
        track = self.state.track_at(self.state.selected_index)
        if track is None:
            return
        self.enqueue(self.state.selected_index)
        self.status(f"Added to queue: {track.name} ({len(self.state.queue)} in queue)")
        self.presenter.refresh()

    def _add_by_path(self, path: str, name: str) -> None:
        index = self.state.index_of_path(path)
        if index == -1:
            self.status("Track not in playlist")
            return
        self.enqueue(index)
        self.status(f"Added to queue: {name} ({len(self.state.queue)} in queue)")
        self.presenter.refresh()

    def describe(self) -> str:
        return plural(len(self.state.queue), "track")


def _at(items: list, index: int):
    if 0 <= index < len(items):
        return items[index]
    return None
