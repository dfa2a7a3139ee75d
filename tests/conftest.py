import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from core.controller import PlayerController
from core.keybindings import KeyEvent, KeybindingResolver
from models.playback import EngineStatus, TrackInfo
from models.track import ArtistInfo, Track
from services.errors import EngineError, LibraryError
from services.persistence import PersistenceStore

TRACK_DURATION = 180.0


def make_tracks(count, folder="/music", prefix="track"):
    """Tracks named track00.mp3, track01.mp3, ... under `folder`."""
    return [
        Track(path=f"{folder}/{prefix}{i:02d}.mp3", name=f"{prefix}{i:02d}.mp3", duration=int(TRACK_DURATION))
        for i in range(count)
    ]


class FakePresenter:
    """Records everything the core asks the UI to do."""

    def __init__(self):
        self.statuses = []
        self.refreshes = 0
        self.scrolls = 0
        self.prompts = []
        self.confirms = []
        self.help_toggles = 0
        self.quit_called = False

    @property
    def last_status(self):
        return self.statuses[-1] if self.statuses else None

    def show_status(self, message):
        self.statuses.append(message)

    def refresh(self):
        self.refreshes += 1

    def scroll_to_selection(self):
        self.scrolls += 1

    def prompt(self, title, on_submit, initial=""):
        self.prompts.append((title, on_submit))

    def confirm(self, question, on_answer):
        self.confirms.append((question, on_answer))

    def toggle_help(self):
        self.help_toggles += 1

    def quit(self):
        self.quit_called = True


class FakeTimer:
    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.stopped = False

    def stop(self):
        self.stopped = True


class FakeScheduler:
    def __init__(self):
        self.timers = []

    def set_interval(self, interval, callback):
        timer = FakeTimer(interval, callback)
        self.timers.append(timer)
        return timer

    def active(self, interval=None):
        return [t for t in self.timers if not t.stopped and (interval is None or t.interval == interval)]


class FakeEngine:
    """In-memory playback engine with the AudioPlayer interface."""

    def __init__(self):
        self.playlist = []
        self.current = -1
        self.playing = False
        self.paused = False
        self.position = 0.0
        self.volume = 1.0
        self.speed = 1.0
        self.finished = False
        self.played = []
        self.seeks = []
        self.devices = ["Speakers", "Headphones"]
        self.device = None

    def set_playlist(self, paths, current_index=-1):
        self.playlist = list(paths)
        if 0 <= current_index < len(self.playlist):
            self.current = current_index

    def play_track(self, index, skip_secs=0):
        if not 0 <= index < len(self.playlist):
            raise EngineError("Invalid track index")
        self.current = index
        self.playing = True
        self.paused = False
        self.finished = False
        self.position = skip_secs
        self.played.append(index)
        return TrackInfo(name=Path(self.playlist[index]).name, duration=TRACK_DURATION, index=index)

    def toggle_pause(self):
        if not self.playing:
            raise EngineError("No track is playing")
        self.paused = not self.paused
        return self.paused

    def stop(self):
        self.playing = False
        self.paused = False
        self.current = -1

    def next_track(self):
        if not self.playlist:
            raise EngineError("Playlist is empty")
        return self.play_track((self.current + 1) % len(self.playlist))

    def prev_track(self):
        if not self.playlist:
            raise EngineError("Playlist is empty")
        return self.play_track((self.current - 1) % len(self.playlist))

    def set_volume(self, volume):
        self.volume = volume
        return volume

    def set_speed(self, speed):
        self.speed = speed
        return speed

    def seek(self, position):
        if not self.playing:
            raise EngineError("No track is playing")
        self.position = max(0.0, position)
        self.seeks.append(self.position)
        return self.position

    def seek_relative(self, delta):
        if not self.playing:
            raise EngineError("No track is playing")
        return self.seek(self.position + delta)

    def finish(self):
        self.finished = True

    def get_status(self):
        finished = self.finished
        if finished:
            self.finished = False
            self.playing = False
        return EngineStatus(
            elapsed=self.position,
            duration=TRACK_DURATION if self.current >= 0 else None,
            speed=self.speed,
            is_playing=finished or self.playing,
            is_paused=self.paused,
            is_finished=finished,
            volume=self.volume,
        )

    def list_audio_devices(self):
        return list(self.devices)

    def set_audio_device(self, name):
        if name and name not in self.devices:
            raise EngineError(f"Unknown device: {name}")
        self.device = name


class FakeLibrary:
    """Folder scans, listings and artist tags served from dictionaries."""

    def __init__(self, folders=None, listings=None, artists=None):
        self.folders = folders or {}
        self.listings = listings or {}
        self.artists = artists or {}
        self.revealed = []

    def load_folder(self, path):
        if path not in self.folders:
            raise LibraryError(f"Not a folder: {path}")
        return list(self.folders[path])

    def browse_folder(self, path, root_path=None):
        if path not in self.listings:
            raise LibraryError(f"Not a folder: {path}")
        return self.listings[path]

    def _artist(self, track):
        return self.artists.get(track.path, "Unknown Artist")

    def get_artists(self, tracks):
        counts = {}
        for track in tracks:
            counts[self._artist(track)] = counts.get(self._artist(track), 0) + 1
        return [ArtistInfo(name, counts[name]) for name in sorted(counts)]

    def get_artist_tracks(self, artist, tracks):
        return [track for track in tracks if self._artist(track) == artist]

    def reveal_in_explorer(self, path):
        self.revealed.append(path)


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def press(controller, *keys):
    """Feed keys to the controller. Strings are single keys; KeyEvents pass through."""
    for key in keys:
        controller.handle_key(key if isinstance(key, KeyEvent) else KeyEvent(key))


def type_line(controller, text):
    press(controller, *[("Space" if ch == " " else ch) for ch in text])


@pytest.fixture
def presenter():
    return FakePresenter()


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def library():
    return FakeLibrary(folders={
        "/music": make_tracks(5),
        "/other": make_tracks(3, folder="/other", prefix="other"),
    })


@pytest.fixture
def store(tmp_path):
    return PersistenceStore(tmp_path / "config")


@pytest.fixture
def make_controller(presenter, engine, library, store, scheduler, clock):
    def factory(bindings=None):
        resolver = KeybindingResolver.from_config(bindings) if bindings else None
        return PlayerController(presenter, engine, library, store, scheduler,
                                resolver=resolver, clock=clock, rng=random.Random(7))
    return factory


@pytest.fixture
def controller(make_controller):
    return make_controller()


@pytest.fixture
def loaded(controller):
    """Controller with /music (5 tracks) loaded as the playlist."""
    controller.library.load_folder("/music")
    return controller
