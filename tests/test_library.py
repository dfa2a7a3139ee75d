from conftest import make_tracks

from models.app_state import LIBRARY_ROOT
from models.modes import ArtistSubView, Mode, ViewMode
from models.track import FolderItem, FolderListing


class TestDelete:
    """Tests for removing playlist rows and re-mapping indices."""

    def test_deleting_playing_track_stops(self, loaded, engine, presenter):
        loaded.session.play_track(1)
        loaded.library.delete_indices({1, 3})
        assert loaded.state.playback.playing_index == -1
        assert engine.playing is False
        assert [t.name for t in loaded.state.playlist] == ["track00.mp3", "track02.mp3", "track04.mp3"]

    def test_playing_index_shifts_down(self, loaded, engine):
        loaded.session.play_track(3)
        loaded.library.delete_indices({1})
        assert loaded.state.playback.playing_index == 2
        assert loaded.state.playing_track.name == "track03.mp3"
        assert engine.playing is True

    def test_delete_range(self, loaded, presenter):
        loaded.library.delete_range(2, 3)
        assert len(loaded.state.playlist) == 3
        assert presenter.last_status == "Deleted 2 tracks (lines 2-3)"

    def test_range_clamped_to_playlist(self, loaded):
        loaded.library.delete_range(4, 99)
        assert len(loaded.state.playlist) == 3

    def test_range_past_end_is_invalid(self, loaded, presenter):
        loaded.library.delete_range(9, 12)
        assert presenter.last_status == "Invalid range"
        assert len(loaded.state.playlist) == 5

    def test_delete_visual_selection(self, loaded, presenter):
        loaded.state.mode = Mode.VISUAL
        loaded.state.visual_start = 1
        loaded.state.selected_index = 2
        loaded.library.delete_selected()
        assert loaded.state.mode is Mode.NORMAL
        assert len(loaded.state.playlist) == 3
        assert presenter.last_status == "Deleted 2 tracks"

    def test_cursor_clamped(self, loaded):
        loaded.state.selected_index = 4
        loaded.library.delete_indices([4])
        assert loaded.state.selected_index == 3

    def test_engine_gets_new_order(self, loaded, engine):
        loaded.library.delete_indices([0])
        assert engine.playlist[0] == "/music/track01.mp3"


class TestSort:
    """Tests for :sort."""

    def test_reverse_name_sort_clears_queue(self, loaded, presenter):
        loaded.state.queue = [0]
        loaded.library.sort("name!")
        assert loaded.state.playlist[0].name == "track04.mp3"
        assert loaded.state.queue == []
        assert presenter.last_status == "Sorted by name (reversed), queue cleared"

    def test_keeps_playing_and_selected_by_path(self, loaded):
        loaded.session.play_track(1)
        loaded.state.selected_index = 3
        loaded.library.sort("name!")
        assert loaded.state.playing_track.name == "track01.mp3"
        assert loaded.state.playlist[loaded.state.selected_index].name == "track03.mp3"

    def test_unknown_field(self, loaded, presenter):
        loaded.library.sort("x")
        assert presenter.last_status == "Unknown sort field: x. Use name, duration, or path"

    def test_sort_by_path(self, controller, library, presenter):
        library.folders["/mixed"] = [*make_tracks(1, "/z"), *make_tracks(1, "/a")]
        controller.library.load_folder("/mixed")
        controller.library.sort("path")
        assert controller.state.playlist[0].path == "/a/track00.mp3"
        assert presenter.last_status == "Sorted by path"


class TestLoading:
    """Tests for folder, library and reload."""

    def test_load_folder(self, controller, presenter, engine):
        assert controller.library.load_folder("/music") is True
        assert len(controller.state.playlist) == 5
        assert controller.state.folder.root == "/music"
        assert presenter.last_status == "Loaded 5 tracks"
        assert len(engine.playlist) == 5

    def test_load_failure_keeps_playlist(self, loaded, presenter):
        assert loaded.library.load_folder("/missing") is False
        assert presenter.last_status == "Error: Not a folder: /missing"
        assert len(loaded.state.playlist) == 5

    def test_replace_keeps_playing_by_path(self, loaded, library, engine):
        library.folders["/music"] = make_tracks(6)[::-1]
        loaded.session.play_track(2)
        loaded.library.load_folder("/music")
        assert loaded.state.playback.playing_index == 3
        assert engine.playing is True

    def test_replace_stops_when_track_gone(self, loaded, engine):
        loaded.session.play_track(2)
        loaded.library.load_folder("/other")
        assert loaded.state.playback.playing_index == -1
        assert engine.playing is False

    def test_replace_resets_queue_and_visual(self, loaded):
        loaded.state.queue = [1]
        loaded.state.mode = Mode.VISUAL
        loaded.state.visual_start = 0
        loaded.library.load_folder("/other")
        assert loaded.state.queue == []
        assert loaded.state.mode is Mode.NORMAL
        assert loaded.state.visual_start == -1

    def test_go_back_swaps_roots(self, loaded, presenter):
        loaded.library.load_folder("/other")
        assert loaded.state.folder.previous_root == "/music"
        loaded.library.go_back()
        assert loaded.state.folder.root == "/music"
        assert loaded.state.folder.previous_root == "/other"

    def test_go_back_without_history(self, loaded, presenter):
        loaded.library.go_back()
        assert presenter.last_status == "No previous folder to go back to"

    def test_scan_library_dedupes(self, controller, store, library, presenter):
        library.folders["/dupes"] = make_tracks(2)
        store.add_library_folder("/music")
        store.add_library_folder("/dupes")
        controller.library.scan_library()
        assert len(controller.state.playlist) == 5
        assert controller.state.folder.root == LIBRARY_ROOT
        assert presenter.last_status == "Library: 5 tracks from 2 folders"

    def test_scan_library_skips_failed_folder(self, controller, store, presenter):
        store.add_library_folder("/music")
        store.add_library_folder("/missing")
        controller.library.scan_library()
        assert len(controller.state.playlist) == 5
        assert presenter.last_status == "Library: 5 tracks from 2 folders"

    def test_scan_library_without_folders(self, controller, presenter):
        controller.library.scan_library()
        assert presenter.last_status == "No library folders. Use :addlib to add folders"

    def test_reload_reports_difference(self, loaded, library, presenter):
        library.folders["/music"] = make_tracks(6)
        loaded.library.reload()
        assert presenter.last_status == "Reloaded: 6 tracks (+1)"

    def test_reload_keeps_selected_track_by_path(self, loaded, library):
        loaded.state.selected_index = 3
        loaded.session.play_track(3)
        library.folders["/music"] = [*make_tracks(1, prefix="aaa"), *make_tracks(5)]
        loaded.library.reload()
        assert loaded.state.playlist[loaded.state.selected_index].name == "track03.mp3"
        assert loaded.state.playing_track.name == "track03.mp3"

    def test_reload_clamps_when_selected_track_is_gone(self, loaded, library):
        loaded.state.selected_index = 4
        library.folders["/music"] = make_tracks(2)
        loaded.library.reload()
        assert loaded.state.selected_index == 1

    def test_reload_without_root(self, controller, presenter):
        controller.library.reload()
        assert presenter.last_status == "No folder loaded"


class TestFolderView:
    """Tests for the folder browser."""

    def listing(self, library):
        library.listings["/music"] = FolderListing(
            items=[
                FolderItem("live", "/music/live", True, track_count=2),
                FolderItem("track00.mp3", "/music/track00.mp3", False),
            ],
            path="/music",
            parent=None,
        )
        library.listings["/music/live"] = FolderListing(
            items=[FolderItem("track03.mp3", "/music/track03.mp3", False)],
            path="/music/live",
            parent="/music",
        )

    def test_refused_for_virtual_root(self, controller, store, presenter):
        store.add_library_folder("/music")
        controller.library.scan_library()
        controller.library.toggle_view()
        assert controller.state.view_mode is ViewMode.LIST
        assert presenter.last_status == "Folder view needs a folder root"

    def test_browse_into_and_up(self, loaded, library):
        self.listing(library)
        loaded.library.toggle_view()
        assert loaded.state.view_mode is ViewMode.FOLDER
        loaded.library.activate_folder_item()
        assert loaded.state.folder.current == "/music/live"
        loaded.library.folder_up()
        assert loaded.state.folder.current == "/music"

    def test_play_file_by_path(self, loaded, library, engine):
        self.listing(library)
        loaded.library.toggle_view()
        loaded.state.folder.selected_index = 1
        loaded.library.activate_folder_item()
        assert engine.played == [0]

    def test_toggle_back_to_list(self, loaded, library, presenter):
        self.listing(library)
        loaded.library.toggle_view()
        loaded.library.toggle_view()
        assert loaded.state.view_mode is ViewMode.LIST
        assert presenter.last_status == "List view"

    def test_load_current_folder_as_playlist(self, loaded, library, presenter):
        self.listing(library)
        library.folders["/music/live"] = make_tracks(2, "/music/live")
        loaded.library.toggle_view()
        loaded.library.activate_folder_item()
        loaded.library.load_current_folder_as_playlist()
        assert loaded.state.view_mode is ViewMode.LIST
        assert len(loaded.state.playlist) == 2
        assert loaded.state.folder.root == "/music"
        assert presenter.last_status == "Loaded 2 tracks from folder"


class TestArtistView:
    """Tests for the artist browser."""

    def test_open_and_drill_down(self, loaded, library, presenter):
        library.artists["/music/track01.mp3"] = "Alpha"
        library.artists["/music/track03.mp3"] = "Alpha"
        loaded.library.open_artist_view()
        assert loaded.state.view_mode is ViewMode.ARTIST
        assert presenter.last_status == "2 artists found"

        loaded.library.activate_artist_item()
        artist = loaded.state.artist
        assert artist.sub_view is ArtistSubView.TRACKS
        assert [t.name for t in artist.tracks] == ["track01.mp3", "track03.mp3"]

    def test_back_restores_artist_cursor(self, loaded, library):
        library.artists["/music/track01.mp3"] = "Zed"
        loaded.library.open_artist_view()
        loaded.state.artist.selected_index = 1
        loaded.library.activate_artist_item()
        loaded.library.artist_back()
        assert loaded.state.artist.sub_view is ArtistSubView.ARTISTS
        assert loaded.state.artist.selected_index == 1

    def test_needs_tracks(self, controller, presenter):
        controller.library.open_artist_view()
        assert presenter.last_status == "No tracks loaded. Load a folder or library first."

    def test_reveal(self, loaded, library, presenter):
        loaded.state.selected_index = 2
        loaded.library.reveal_selected()
        assert library.revealed == ["/music/track02.mp3"]
        assert presenter.last_status == "Revealed: track02.mp3"
