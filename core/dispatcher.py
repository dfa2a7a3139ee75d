from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple

from core.keybindings import KeyEvent, KeybindingResolver
from models.actions import Action
from models.app_state import AppState
from models.modes import Mode, Overlay, PendingKind, ViewMode

logger = logging.getLogger(__name__)

PENDING_ACTIONS = {Action.PENDING_G, Action.PENDING_D, Action.PENDING_M, Action.PENDING_QUOTE}

# Actions that keep working while the artist browser has the keyboard.
ARTIST_PASSTHROUGH = {
    Action.TOGGLE_PAUSE, Action.STOP, Action.NEXT_TRACK, Action.PREV_TRACK,
    Action.VOLUME_UP, Action.VOLUME_DOWN, Action.TOGGLE_MUTE,
    Action.SPEED_UP, Action.SPEED_DOWN, Action.SPEED_RESET,
    Action.SEEK_FORWARD, Action.SEEK_BACKWARD, Action.SEEK_FORWARD_LARGE, Action.SEEK_BACKWARD_LARGE,
    Action.COMMAND_MODE, Action.FILTER_MODE, Action.TOGGLE_HELP,
    Action.CYCLE_REPEAT, Action.TOGGLE_SHUFFLE, Action.ADD_TO_QUEUE, Action.TOGGLE_QUEUE_VIEW,
    Action.SET_LOOP_A, Action.SET_LOOP_B, Action.CLEAR_LOOP,
}


class KeyDispatcher:
    """Routes each key event to exactly one handler.

    Routing is a priority table: an open overlay wins, then the text
    line modes, then the artist browser, then visual mode, and finally
    normal mode with its keybindings.
    """

    def __init__(self, state: AppState, presenter, resolver: KeybindingResolver, navigator, filters,
                 session, queue, library, playlists, commands):
        self.state = state
        self.presenter = presenter
        self.resolver = resolver
        self.navigator = navigator
        self.filters = filters
        self.session = session
        self.queue = queue
        self.library = library
        self.playlists = playlists
        self.commands = commands
        self.handlers: Dict[Action, Callable[[], None]] = self._build_handlers()
        self.routes: List[Tuple[Callable[[], bool], Callable[[KeyEvent], None]]] = [
            (lambda: self.state.overlay is Overlay.QUEUE, self._queue_key),
            (lambda: self.state.overlay is Overlay.PLAYLIST_MANAGER, self._manager_key),
            (lambda: self.state.overlay is Overlay.ADD_TO_PLAYLIST, self._picker_key),
            (lambda: self.state.mode is Mode.COMMAND, self._command_key),
            (lambda: self.state.mode is Mode.FILTER, self._filter_key),
            (lambda: self.state.view_mode is ViewMode.ARTIST, self._artist_key),
            (lambda: self.state.mode is Mode.VISUAL, self._visual_key),
        ]

    def handle(self, event: KeyEvent) -> None:
        for applies, handler in self.routes:
            if applies():
                handler(event)
                return
        self._normal_key(event)

    def _build_handlers(self) -> Dict[Action, Callable[[], None]]:
        state = self.state
        nav = self.navigator
        session = self.session
        return {
            Action.MOVE_DOWN: lambda: nav.move(1, state.count),
            Action.MOVE_UP: lambda: nav.move(-1, state.count),
            Action.PENDING_G: lambda: self._set_pending(PendingKind.GOTO_PREFIX),
            Action.GO_TO_TOP: nav.go_to_top,
            Action.GO_TO_END: self._go_to_end,
            Action.PAGE_DOWN: lambda: nav.move(10, state.count),
            Action.PAGE_UP: lambda: nav.move(-10, state.count),
            Action.PLAY_SELECTED: session.play_selected,
            Action.TOGGLE_PAUSE: session.toggle_pause,
            Action.STOP: session.stop,
            Action.NEXT_TRACK: session.next_track,
            Action.PREV_TRACK: session.prev_track,
            Action.VOLUME_UP: lambda: session.adjust_volume(state.settings.volumestep),
            Action.VOLUME_DOWN: lambda: session.adjust_volume(-state.settings.volumestep),
            Action.TOGGLE_MUTE: session.toggle_mute,
            Action.SPEED_UP: lambda: session.change_speed(state.settings.speedstep),
            Action.SPEED_DOWN: lambda: session.change_speed(-state.settings.speedstep),
            Action.SPEED_RESET: session.reset_speed,
            Action.SEEK_FORWARD: lambda: session.seek_relative(state.settings.seektime * state.count),
            Action.SEEK_BACKWARD: lambda: session.seek_relative(-state.settings.seektime * state.count),
            Action.SEEK_FORWARD_LARGE: lambda: session.seek_relative(state.settings.seektimelarge * state.count),
            Action.SEEK_BACKWARD_LARGE: lambda: session.seek_relative(-state.settings.seektimelarge * state.count),
            Action.COMMAND_MODE: self.enter_command_mode,
            Action.FILTER_MODE: self.enter_filter_mode,
            Action.NORMAL_MODE: self._normal_mode,
            Action.VISUAL_MODE: self.enter_visual_mode,
            Action.TOGGLE_VIEW: self.library.toggle_view,
            Action.CYCLE_REPEAT: session.cycle_repeat,
            Action.TOGGLE_SHUFFLE: session.toggle_shuffle,
            Action.ADD_TO_QUEUE: self.queue.add_selected,
            Action.TOGGLE_QUEUE_VIEW: self.toggle_queue_view,
            Action.OPEN_FOLDER: self.library.open_folder,
            Action.RELOAD_CONTENT: self.library.reload,
            Action.OPEN_PLAYLIST_MANAGER: self.playlists.open_manager,
            Action.ADD_TO_PLAYLIST: self._add_to_playlist,
            Action.TOGGLE_HELP: self.presenter.toggle_help,
            Action.PENDING_D: lambda: self._set_pending(PendingKind.DELETE_PREFIX),
            Action.PENDING_M: lambda: self._set_pending(PendingKind.MARK_SET),
            Action.PENDING_QUOTE: lambda: self._set_pending(PendingKind.MARK_JUMP),
            Action.SET_LOOP_A: session.set_loop_a,
            Action.SET_LOOP_B: session.set_loop_b,
            Action.CLEAR_LOOP: session.clear_loop,
        }

    def run(self, action: Action) -> None:
        """Execute an action, consuming the count prefix unless it starts a sequence."""
        logger.debug(f"Action {action.value} (count {self.state.count_prefix or '-'})")
        self.handlers[action]()
        if action not in PENDING_ACTIONS:
            self.state.clear_count()

    # Shared helpers

    def _set_pending(self, kind: PendingKind) -> None:
        self.state.pending = kind

    def _take_pending(self) -> Optional[PendingKind]:
        pending = self.state.pending
        self.state.pending = None
        return pending

    def _accumulate_count(self, event: KeyEvent) -> bool:
        """Append a digit to the count prefix. A leading 0 never starts a count."""
        key = event.key
        if not (len(key) == 1 and key.isdigit()) or self.state.pending is not None:
            return False
        if event.ctrl or event.alt or event.meta:
            return False
        if not self.state.count_prefix and key == "0":
            return False
        self.state.count_prefix += key
        return True

    def _go_to_end(self) -> None:
        if self.state.count_prefix:
            self.navigator.go_to_line(self.state.count)
        else:
            self.navigator.go_to_bottom()

    def _go_to_top_or_line(self) -> None:
        if self.state.count_prefix:
            self.navigator.go_to_line(self.state.count)
        else:
            self.navigator.go_to_top()

    def _normal_mode(self) -> None:
        if self.state.filter_text:
            self.filters.clear()
            return
        self.state.mode = Mode.NORMAL
        self.presenter.refresh()

    def _add_to_playlist(self) -> None:
        if self.state.view_mode is ViewMode.FOLDER:
            self.library.load_current_folder_as_playlist()
        else:
            self.playlists.add_selection_to_playlist()

    # Mode transitions

    def enter_command_mode(self) -> None:
        self.state.mode = Mode.COMMAND
        self.state.command_buffer = ""
        self.presenter.refresh()

    def enter_filter_mode(self) -> None:
        self.state.mode = Mode.FILTER
        self.state.filter_text = ""
        self.filters.apply()

    def enter_visual_mode(self) -> None:
        if not self.navigator.items():
            return
        self.state.mode = Mode.VISUAL
        self.state.visual_start = self.navigator.cursor
        self.presenter.refresh()

    def exit_visual_mode(self) -> None:
        self.state.mode = Mode.NORMAL
        self.state.visual_start = -1
        self.presenter.refresh()

    def toggle_queue_view(self) -> None:
        if self.state.overlay is Overlay.QUEUE:
            self.state.overlay = Overlay.NONE
        else:
            self.state.overlay = Overlay.QUEUE
            self.state.queue_selected_index = 0
        self.presenter.refresh()

    # Normal mode

    def _normal_key(self, event: KeyEvent) -> None:
        if self._accumulate_count(event):
            return

        pending = self._take_pending()
        if pending is not None:
            self._continue_sequence(pending, event)
            self.state.clear_count()
            return

        if self.state.filter_text and event.key in ("n", "N") and not event.ctrl:
            if event.key == "n":
                self.filters.jump_to_next_match()
            else:
                self.filters.jump_to_prev_match()
            self.state.clear_count()
            return

        action = self.resolver.resolve_event(event)
        if action is not None:
            self.run(action)
            return

        if event.key == "Backspace":
            if self.state.view_mode is ViewMode.FOLDER:
                self.library.folder_up()
            else:
                self.library.go_back()
        self.state.clear_count()

    def _continue_sequence(self, pending: PendingKind, event: KeyEvent) -> None:
        key = event.key
        if pending is PendingKind.GOTO_PREFIX:
            if key == "g":
                self._go_to_top_or_line()
        elif pending is PendingKind.DELETE_PREFIX:
            if key == "d" and self.state.view_mode is ViewMode.LIST:
                self.library.delete_selected()
        elif len(key) == 1 and key.isalpha() and key.isascii():
            if pending is PendingKind.MARK_JUMP:
                self.session.jump_to_bookmark(key.lower())
            else:
                self.session.set_bookmark(key.lower())

    # Text line modes

    def _edit_line(self, event: KeyEvent, text: str) -> Optional[str]:
        """Apply an editing key to `text`; None means leave the mode."""
        if event.key == "Backspace":
            return text[:-1] if text else None
        return text + event.text

    def _command_key(self, event: KeyEvent) -> None:
        state = self.state
        if event.key == "Enter":
            line = state.command_buffer
            state.command_buffer = ""
            state.mode = Mode.NORMAL
            self.presenter.refresh()
            self.commands.execute(line)
            return
        if event.key == "Escape":
            state.command_buffer = ""
            state.mode = Mode.NORMAL
            self.presenter.refresh()
            return
        edited = self._edit_line(event, state.command_buffer)
        if edited is None:
            state.mode = Mode.NORMAL
        else:
            state.command_buffer = edited
        self.presenter.refresh()

    def _filter_key(self, event: KeyEvent) -> None:
        state = self.state
        if event.key == "Enter":
            state.mode = Mode.NORMAL
            matches = self.filters.matches
            if matches:
                self.navigator.select(matches[0].index)
            self.presenter.refresh()
            return
        if event.key == "Escape":
            state.mode = Mode.NORMAL
            self.filters.clear()
            return
        edited = self._edit_line(event, state.filter_text)
        if edited is None:
            state.mode = Mode.NORMAL
            self.presenter.refresh()
            return
        if edited != state.filter_text:
            state.filter_text = edited
            self.filters.apply()

    # Artist browser

    def _artist_key(self, event: KeyEvent) -> None:
        if self._accumulate_count(event):
            return
        state = self.state
        nav = self.navigator
        pending = self._take_pending()
        key = event.key
        if pending is PendingKind.GOTO_PREFIX:
            if key == "g":
                self._go_to_top_or_line()
            state.clear_count()
            return

        if key == "j":
            nav.move(1, state.count)
        elif key == "k":
            nav.move(-1, state.count)
        elif key == "Enter":
            self.library.activate_artist_item()
        elif key == "Backspace":
            self.library.artist_back()
        elif key == "g":
            self._set_pending(PendingKind.GOTO_PREFIX)
            return
        elif key == "G":
            self._go_to_end()
        elif key == "Tab":
            self.library.toggle_view()
        elif key == "Escape":
            self.library.close_artist_view()
        elif key == "n" and state.filter_text:
            self.filters.jump_to_next_match()
        elif key == "N" and state.filter_text:
            self.filters.jump_to_prev_match()
        else:
            action = self.resolver.resolve_event(event)
            if action in ARTIST_PASSTHROUGH:
                self.run(action)
                return
        state.clear_count()

    # Visual mode

    def _visual_key(self, event: KeyEvent) -> None:
        key = event.key
        nav = self.navigator
        pending = self._take_pending()
        if pending is PendingKind.GOTO_PREFIX:
            if key == "g":
                nav.go_to_top()
            return

        if key == "j":
            nav.move(1)
        elif key == "k":
            nav.move(-1)
        elif key == "g":
            self._set_pending(PendingKind.GOTO_PREFIX)
        elif key == "G":
            nav.go_to_bottom()
        elif key == "a":
            self._visual_add_to_queue()
        elif key == "d":
            self._visual_delete()
        elif key == "p":
            self.playlists.add_selection_to_playlist()
        elif key in ("v", "Escape"):
            self.exit_visual_mode()

    def _visual_add_to_queue(self) -> None:
        if self.state.view_mode is not ViewMode.LIST:
            self.queue.status("Visual queue works in list view only. Use a on a single track")
            return
        added = self.queue.add_indices(self.navigator.visual_range())
        self.exit_visual_mode()
        self.queue.status(f"Added {added} tracks to queue")

    def _visual_delete(self) -> None:
        if self.state.view_mode is not ViewMode.LIST:
            self.library.status("Delete works in list view only")
            return
        self.library.delete_selected()

    # Overlays

    def _queue_key(self, event: KeyEvent) -> None:
        state = self.state
        key = event.key
        pending = self._take_pending()
        if pending is PendingKind.DELETE_PREFIX:
            if key == "d":
                self.queue.remove(state.queue_selected_index)
            return
        if pending is PendingKind.GOTO_PREFIX:
            if key == "g":
                state.queue_selected_index = 0
                self.presenter.refresh()
            return

        last = max(0, len(state.queue) - 1)
        if key == "j":
            state.queue_selected_index = min(state.queue_selected_index + 1, last)
            self.presenter.refresh()
        elif key == "k":
            state.queue_selected_index = max(state.queue_selected_index - 1, 0)
            self.presenter.refresh()
        elif key == "J":
            state.queue_selected_index = self.queue.reorder(state.queue_selected_index, 1)
        elif key == "K":
            state.queue_selected_index = self.queue.reorder(state.queue_selected_index, -1)
        elif key == "g":
            self._set_pending(PendingKind.GOTO_PREFIX)
        elif key == "G":
            state.queue_selected_index = last
            self.presenter.refresh()
        elif key == "d":
            self._set_pending(PendingKind.DELETE_PREFIX)
        elif key == "c":
            self.queue.clear()
        elif key == "Enter":
            index = self.queue.take(state.queue_selected_index)
            if index is not None:
                self.session.play_track(index)
        elif key in ("q", "Escape"):
            state.overlay = Overlay.NONE
            self.presenter.refresh()

    def _manager_key(self, event: KeyEvent) -> None:
        key = event.key
        pending = self._take_pending()
        if pending is PendingKind.GOTO_PREFIX:
            if key == "g":
                self.playlists.manager_to(0)
            return
        if pending is PendingKind.DELETE_PREFIX:
            if key == "d":
                self.playlists.delete_selected()
            return

        if key == "j":
            self.playlists.move_manager(1)
        elif key == "k":
            self.playlists.move_manager(-1)
        elif key == "g":
            self._set_pending(PendingKind.GOTO_PREFIX)
        elif key == "G":
            self.playlists.manager_to(len(self.state.pickers.saved_playlists) - 1)
        elif key == "Enter":
            self.playlists.load_selected()
        elif key == "d":
            self._set_pending(PendingKind.DELETE_PREFIX)
        elif key in ("q", "Escape"):
            self.playlists.close_overlay()

    def _picker_key(self, event: KeyEvent) -> None:
        key = event.key
        pending = self._take_pending()
        if pending is PendingKind.GOTO_PREFIX:
            if key == "g":
                self.playlists.picker_to(0)
            return

        if key == "j":
            self.playlists.move_picker(1)
        elif key == "k":
            self.playlists.move_picker(-1)
        elif key == "g":
            self._set_pending(PendingKind.GOTO_PREFIX)
        elif key == "G":
            self.playlists.picker_to(self.playlists.picker_rows - 1)
        elif key == "Enter":
            self.playlists.confirm_picker()
        elif key in ("q", "Escape"):
            self.playlists.close_overlay()
