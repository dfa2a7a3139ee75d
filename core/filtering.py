from __future__ import annotations

import re
from typing import Callable, Optional, Sequence

from models.app_state import FilterMatch
from models.modes import ViewMode


def compile_matcher(query: str) -> Callable[[str], bool]:
    """Case-insensitive regex matcher, or a substring matcher if the query is not a valid pattern."""
    try:
        pattern = re.compile(query, re.IGNORECASE)
    except re.error:
        needle = query.lower()
        return lambda text: needle in text.lower()
    return lambda text: pattern.search(text) is not None


def apply_filter(query: str, items: Sequence) -> list[FilterMatch]:
    """Rows of `items` whose `name` matches `query`. An empty query matches nothing."""
    if not query:
        return []
    matches = compile_matcher(query)
    return [FilterMatch(item, index) for index, item in enumerate(items) if matches(item.name)]


def next_match_index(matches: Sequence[FilterMatch], current: int) -> Optional[int]:
    """First matched index after `current`, wrapping to the first match."""
    if not matches:
        return None
    for match in matches:
        if match.index > current:
            return match.index
    return matches[0].index


def prev_match_index(matches: Sequence[FilterMatch], current: int) -> Optional[int]:
    """Last matched index before `current`, wrapping to the last match."""
    if not matches:
        return None
    for match in reversed(matches):
        if match.index < current:
            return match.index
    return matches[-1].index


class FilterEngine:
    """Incremental filter over the active view with n/N match navigation."""

    def __init__(self, state, presenter, navigator):
        self.state = state
        self.presenter = presenter
        self.navigator = navigator

    def _matches(self) -> list[FilterMatch]:
        view = self.state.view_mode
        if view is ViewMode.FOLDER:
            return self.state.folder.filtered
        if view is ViewMode.ARTIST:
            return self.state.artist.filtered
        return self.state.filtered_playlist

    def _store(self, matches: list[FilterMatch]) -> None:
        view = self.state.view_mode
        if view is ViewMode.FOLDER:
            self.state.folder.filtered = matches
        elif view is ViewMode.ARTIST:
            self.state.artist.filtered = matches
        else:
            self.state.filtered_playlist = matches

    @property
    def matches(self) -> list[FilterMatch]:
        return self._matches()

    def apply(self) -> None:
        """Re-run the current query against the active view."""
        text = self.state.filter_text
        if not text:
            self._clear_results()
            self.presenter.refresh()
            return
        matches = apply_filter(text, self.navigator.items())
        self._store(matches)
        self.presenter.refresh()
        self.state.status = f"{len(matches)} matches" if matches else "No matches"
        self.presenter.show_status(self.state.status)

    def refilter(self) -> None:
        """Keep results in step with a changed item list."""
        if self.state.filter_text:
            self._store(apply_filter(self.state.filter_text, self.navigator.items()))
        else:
            self._clear_results()

    def clear(self) -> None:
        self.state.filter_text = ""
        self._clear_results()
        self.presenter.refresh()

    def _clear_results(self) -> None:
        self.state.filtered_playlist = []
        self.state.folder.filtered = []
        self.state.artist.filtered = []

    def jump_to_next_match(self) -> None:
        index = next_match_index(self._matches(), self.navigator.cursor)
        if index is not None:
            self.navigator.select(index)

    def jump_to_prev_match(self) -> None:
        index = prev_match_index(self._matches(), self.navigator.cursor)
        if index is not None:
            self.navigator.select(index)
