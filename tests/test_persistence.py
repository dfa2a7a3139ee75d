import json

import pytest

from conftest import make_tracks

from services.errors import PersistenceError
from services.persistence import PersistenceStore, default_config_dir, playlist_filename


@pytest.fixture
def config_dir(tmp_path):
    return tmp_path / "config"


class TestConfig:
    """Tests for config.json values."""

    def test_default_folder(self, store):
        assert store.get_default_folder() is None
        store.set_default_folder("/music")
        assert store.get_default_folder() == "/music"
        store.clear_default_folder()
        assert store.get_default_folder() is None

    def test_library_folders_unique(self, store):
        store.add_library_folder("/a")
        assert store.add_library_folder("/a") == ["/a"]
        store.add_library_folder("/b")
        assert store.remove_library_folder("/a") == ["/b"]

    def test_folders_share_one_file(self, store, config_dir):
        store.set_default_folder("/music")
        store.add_library_folder("/a")
        data = json.loads((config_dir / "config.json").read_text())
        assert data == {"default_folder": "/music", "library_folders": ["/a"]}

    def test_corrupt_json_falls_back(self, store, config_dir):
        config_dir.mkdir(parents=True)
        (config_dir / "config.json").write_text("{not json")
        assert store.get_default_folder() is None
        assert store.get_library_folders() == []


class TestSettingsAndKeybindings:
    def test_settings_round_trip(self, store):
        store.save_settings({"seektime": 10})
        assert store.get_settings() == {"seektime": 10}

    def test_keybindings(self, store, config_dir):
        config_dir.mkdir(parents=True)
        (config_dir / "keybindings.json").write_text(json.dumps({"j": "togglePause"}))
        assert store.get_keybindings() == {"j": "togglePause"}

    def test_keybindings_must_be_object(self, store, config_dir):
        config_dir.mkdir(parents=True)
        (config_dir / "keybindings.json").write_text("[1, 2]")
        assert store.get_keybindings() == {}


class TestPlaylists:
    """Tests for saved playlist files."""

    def test_save_list_load(self, store):
        store.save_playlist("Road Trip", make_tracks(3))
        assert [(p.name, p.track_count) for p in store.list_playlists()] == [("Road Trip", 3)]
        tracks = store.load_playlist("road trip")
        assert tracks[0].path == "/music/track00.mp3"
        assert tracks[0].duration == 180

    def test_load_missing_raises(self, store):
        with pytest.raises(PersistenceError):
            store.load_playlist("nope")

    def test_rename(self, store):
        store.save_playlist("Old", make_tracks(1))
        store.rename_playlist("old", "New")
        assert [p.name for p in store.list_playlists()] == ["New"]

    def test_rename_case_only(self, store):
        store.save_playlist("mix", make_tracks(1))
        store.rename_playlist("mix", "Mix")
        assert [p.name for p in store.list_playlists()] == ["Mix"]

    def test_rename_conflict(self, store):
        store.save_playlist("A", make_tracks(1))
        store.save_playlist("B", make_tracks(1))
        with pytest.raises(PersistenceError, match="already exists"):
            store.rename_playlist("A", "b")

    def test_delete(self, store):
        store.save_playlist("A", make_tracks(1))
        store.delete_playlist("a")
        assert store.list_playlists() == []
        with pytest.raises(PersistenceError):
            store.delete_playlist("a")

    def test_add_tracks_skips_duplicates(self, store):
        assert store.add_tracks_to_playlist("Mix", ["/m/a.mp3", "/m/b.mp3", "/m/a.mp3"]) == 2
        assert store.add_tracks_to_playlist("mix", ["/m/b.mp3", "/m/c.mp3"]) == 1
        assert [t.name for t in store.load_playlist("Mix")] == ["a.mp3", "b.mp3", "c.mp3"]

    def test_filename_sanitized(self):
        assert playlist_filename('a/b:c?') == "a_b_c_.json"
        assert playlist_filename("...") == "playlist.json"


class TestConfigDir:
    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("VIMPLAY_CONFIG_DIR", str(tmp_path / "custom"))
        assert default_config_dir() == tmp_path / "custom"

    def test_xdg(self, monkeypatch, tmp_path):
        monkeypatch.delenv("VIMPLAY_CONFIG_DIR", raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert default_config_dir() == tmp_path / "vimplay"
        assert PersistenceStore().config_dir == tmp_path / "vimplay"
