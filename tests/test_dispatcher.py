from conftest import make_tracks, press, type_line

from core.keybindings import KeyEvent
from models.actions import Action
from models.modes import Mode, Overlay, PendingKind, ViewMode


class TestRouting:
    """Tests for the key routing table."""

    def test_every_action_has_a_handler(self, controller):
        assert set(controller.dispatcher.handlers) == set(Action)

    def test_user_override(self, make_controller, engine):
        controller = make_controller({"j": "togglePause"})
        controller.library.load_folder("/music")
        press(controller, "j")
        assert engine.played == [0]
        assert controller.state.selected_index == 0

    def test_unbound_key_is_ignored(self, loaded, presenter):
        statuses = len(presenter.statuses)
        press(loaded, "x")
        assert len(presenter.statuses) == statuses

    def test_help(self, loaded, presenter):
        press(loaded, "?")
        assert presenter.help_toggles == 1


class TestCounts:
    """Tests for numeric count prefixes."""

    def test_count_moves(self, loaded):
        press(loaded, "3", "j")
        assert loaded.state.selected_index == 3
        assert loaded.state.count_prefix == ""

    def test_leading_zero_ignored(self, loaded):
        press(loaded, "0", "j")
        assert loaded.state.selected_index == 1

    def test_count_goto_line(self, loaded):
        press(loaded, "4", "G")
        assert loaded.state.selected_index == 3
        press(loaded, "2", "g", "g")
        assert loaded.state.selected_index == 1

    def test_g_sequences(self, loaded):
        press(loaded, "G")
        assert loaded.state.selected_index == 4
        press(loaded, "g", "g")
        assert loaded.state.selected_index == 0

    def test_pending_keeps_count(self, loaded):
        press(loaded, "5", "g")
        assert loaded.state.pending is PendingKind.GOTO_PREFIX
        assert loaded.state.count_prefix == "5"

    def test_count_seek(self, loaded, engine):
        loaded.session.play_track(0)
        press(loaded, "3", "l")
        assert engine.seeks == [15]

    def test_page_down(self, make_controller, library):
        library.folders["/big"] = make_tracks(30, "/big")
        controller = make_controller()
        controller.library.load_folder("/big")
        press(controller, KeyEvent("d", ctrl=True))
        assert controller.state.selected_index == 10


class TestSequences:
    """Tests for two-key sequences."""

    def test_dd_deletes(self, loaded):
        press(loaded, "d", "d")
        assert len(loaded.state.playlist) == 4
        assert loaded.state.pending is None

    def test_d_then_other_key_cancels(self, loaded):
        press(loaded, "d", "j")
        assert len(loaded.state.playlist) == 5
        assert loaded.state.selected_index == 0

    def test_marks(self, loaded, engine, presenter):
        loaded.session.play_track(2)
        loaded.state.playback.elapsed = 42
        press(loaded, "m", "a")
        assert presenter.last_status == "Bookmark 'a' set at 0:42"
        press(loaded, "'", "a")
        assert engine.seeks == [42]

    def test_mark_with_non_letter_is_ignored(self, loaded):
        loaded.session.play_track(2)
        press(loaded, "m", "1")
        assert loaded.state.bookmarks == {}
        assert loaded.state.pending is None


class TestCommandMode:
    """Tests for the : line."""

    def test_type_and_execute(self, loaded, engine):
        press(loaded, ":")
        type_line(loaded, "vol 50")
        assert loaded.state.command_buffer == "vol 50"
        press(loaded, "Enter")
        assert loaded.state.mode is Mode.NORMAL
        assert engine.volume == 0.5

    def test_backspace_on_empty_leaves_mode(self, loaded):
        press(loaded, ":", "a", "Backspace")
        assert loaded.state.command_buffer == ""
        assert loaded.state.mode is Mode.COMMAND
        press(loaded, "Backspace")
        assert loaded.state.mode is Mode.NORMAL

    def test_escape_discards(self, loaded, presenter):
        press(loaded, ":", "q", "Escape")
        assert loaded.state.mode is Mode.NORMAL
        assert not presenter.quit_called

    def test_bound_keys_are_typed(self, loaded, engine):
        press(loaded, ":", "j", "s")
        assert loaded.state.command_buffer == "js"
        assert loaded.state.selected_index == 0


class TestFilterMode:
    """Tests for the / filter line."""

    def test_enter_selects_first_match_then_n(self, loaded):
        press(loaded, "/")
        type_line(loaded, r"[13]\.")
        assert [m.index for m in loaded.state.filtered_playlist] == [1, 3]
        press(loaded, "Enter")
        assert loaded.state.mode is Mode.NORMAL
        assert loaded.state.selected_index == 1

        press(loaded, "n")
        assert loaded.state.selected_index == 3
        press(loaded, "n")
        assert loaded.state.selected_index == 1
        press(loaded, "N")
        assert loaded.state.selected_index == 3

    def test_escape_in_filter_clears(self, loaded):
        press(loaded, "/", "3", "Escape")
        assert loaded.state.filter_text == ""
        assert loaded.state.filtered_playlist == []

    def test_escape_in_normal_clears_kept_filter(self, loaded):
        press(loaded, "/", "3", "Enter")
        assert loaded.state.filter_text == "3"
        press(loaded, "Escape")
        assert loaded.state.filter_text == ""


class TestVisualMode:
    """Tests for visual selection."""

    def test_queue_selection(self, loaded, presenter):
        press(loaded, "j", "v", "j", "j", "a")
        assert loaded.state.queue == [1, 2, 3]
        assert loaded.state.mode is Mode.NORMAL
        assert presenter.last_status == "Added 3 tracks to queue"

    def test_delete_selection(self, loaded):
        press(loaded, "v", "j", "d")
        assert len(loaded.state.playlist) == 3
        assert loaded.state.mode is Mode.NORMAL

    def test_escape_leaves(self, loaded):
        press(loaded, "v", "Escape")
        assert loaded.state.mode is Mode.NORMAL
        assert loaded.state.visual_start == -1

    def test_queue_outside_list_view(self, loaded, presenter):
        loaded.state.view_mode = ViewMode.FOLDER
        loaded.state.mode = Mode.VISUAL
        loaded.state.visual_start = 0
        press(loaded, "a")
        assert presenter.last_status == "Visual queue works in list view only. Use a on a single track"
        press(loaded, "d")
        assert presenter.last_status == "Delete works in list view only"


class TestQueueOverlay:
    """Tests for keys inside the queue overlay."""

    def open_queue(self, controller, *entries):
        controller.state.queue = list(entries)
        press(controller, "q")
        assert controller.state.overlay is Overlay.QUEUE

    def test_overlay_takes_priority(self, loaded):
        self.open_queue(loaded, 0, 1)
        press(loaded, "j")
        assert loaded.state.queue_selected_index == 1
        assert loaded.state.selected_index == 0

    def test_reorder_and_remove(self, loaded):
        self.open_queue(loaded, 0, 1, 2)
        press(loaded, "J")
        assert loaded.state.queue == [1, 0, 2]
        assert loaded.state.queue_selected_index == 1
        press(loaded, "d", "d")
        assert loaded.state.queue == [1, 2]

    def test_enter_plays_and_removes(self, loaded, engine):
        self.open_queue(loaded, 3, 4)
        press(loaded, "G", "Enter")
        assert engine.played == [4]
        assert loaded.state.queue == [3]

    def test_clear_and_close(self, loaded):
        self.open_queue(loaded, 1)
        press(loaded, "c", "q")
        assert loaded.state.queue == []
        assert loaded.state.overlay is Overlay.NONE


class TestViewKeys:
    """Tests for folder and artist keys."""

    def test_backspace_goes_back(self, loaded, presenter):
        press(loaded, "Backspace")
        assert presenter.last_status == "No previous folder to go back to"

    def test_artist_view_passes_transport_keys(self, loaded, engine):
        loaded.session.play_track(0)
        loaded.library.open_artist_view()
        press(loaded, "J")
        assert engine.played == [0, 1]

    def test_artist_view_blocks_other_keys(self, loaded):
        loaded.library.open_artist_view()
        press(loaded, "d", "d")
        assert len(loaded.state.playlist) == 5

    def test_artist_escape_returns_to_list(self, loaded):
        loaded.library.open_artist_view()
        press(loaded, "Escape")
        assert loaded.state.view_mode is ViewMode.LIST

    def test_tab_without_folder(self, controller, presenter):
        press(controller, "Tab")
        assert presenter.last_status == "No folder loaded"
