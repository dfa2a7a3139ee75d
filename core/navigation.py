from __future__ import annotations

from models.app_state import AppState
from models.modes import ViewMode


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


class Navigator:
    """Cursor movement over whichever list the current ViewMode makes active."""

    def __init__(self, state: AppState, presenter):
        self.state = state
        self.presenter = presenter

    def items(self) -> list:
        view = self.state.view_mode
        if view is ViewMode.FOLDER:
            return self.state.folder.contents
        if view is ViewMode.ARTIST:
            return self.state.artist.items
        return self.state.playlist

    @property
    def cursor(self) -> int:
        view = self.state.view_mode
        if view is ViewMode.FOLDER:
            return self.state.folder.selected_index
        if view is ViewMode.ARTIST:
            return self.state.artist.selected_index
        return self.state.selected_index

    @cursor.setter
    def cursor(self, index: int) -> None:
        view = self.state.view_mode
        if view is ViewMode.FOLDER:
            self.state.folder.selected_index = index
        elif view is ViewMode.ARTIST:
            self.state.artist.selected_index = index
        else:
            self.state.selected_index = index

    def select(self, index: int) -> None:
        """Move the cursor to `index` (clamped) and ask the view to scroll to it."""
        length = len(self.items())
        if length == 0:
            return
        self.cursor = clamp(index, 0, length - 1)
        self.presenter.refresh()
        self.presenter.scroll_to_selection()

    def move(self, delta: int, count: int = 1) -> None:
        self.select(self.cursor + delta * count)

    def go_to_top(self) -> None:
        self.select(0)

    def go_to_bottom(self) -> None:
        self.select(len(self.items()) - 1)

    def go_to_line(self, line: int) -> None:
        """Select 1-based line `line`, stopping at the last row."""
        self.select(min(line - 1, len(self.items()) - 1))

    def clamp_cursor(self) -> None:
        """Pull the cursor back into bounds after the list shrank."""
        length = len(self.items())
        if self.cursor >= length:
            self.cursor = max(0, length - 1)
        elif self.cursor < 0:
            self.cursor = 0

    def visual_range(self) -> list[int]:
        """Inclusive range between the visual anchor and the live cursor."""
        start = self.state.visual_start
        if start == -1:
            return []
        current = self.cursor
        return list(range(min(start, current), max(start, current) + 1))
