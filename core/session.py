from __future__ import annotations

import logging
import math
import random
import time
from typing import Callable, Optional

from core.component import Component, plural
from core.queue import QueueManager
from core.timers import PeriodicTask, Scheduler
from models.app_state import AppState
from models.modes import ViewMode
from models.playback import MAX_SPEED, MIN_SPEED, Bookmark, RepeatMode, TrackInfo
from models.track import format_time
from services.errors import EngineError

logger = logging.getLogger(__name__)

PROGRESS_POLL_INTERVAL = 0.5
LOOP_MONITOR_INTERVAL = 0.1
SLEEP_TICK_INTERVAL = 1.0


class PlaybackSession(Component):
    """Transport state plus every command sent to the playback engine.

    Owns the three periodic tasks: progress poll, A-B loop monitor and
    sleep timer tick.
    """

    def __init__(self, state: AppState, presenter, engine, queue: QueueManager,
                 scheduler: Scheduler, play_selected: Optional[Callable[[], None]] = None,
                 clock: Callable[[], float] = time.time, rng: Optional[random.Random] = None):
        super().__init__(state, presenter)
        self.engine = engine
        self.queue = queue
        self.clock = clock
        self.rng = rng or random.Random()
        self._play_selected = play_selected
        self.progress_task = PeriodicTask(scheduler, PROGRESS_POLL_INTERVAL, self.poll, "progress poll")
        self.loop_task = PeriodicTask(scheduler, LOOP_MONITOR_INTERVAL, self.loop_tick, "loop monitor")
        self.sleep_task = PeriodicTask(scheduler, SLEEP_TICK_INTERVAL, self.sleep_tick, "sleep timer")

    @property
    def playback(self):
        return self.state.playback

    # Engine sync

    def sync_engine_playlist(self) -> None:
        """Hand the current playlist order to the engine."""
        paths = [track.path for track in self.state.playlist]
        try:
            self.engine.set_playlist(paths, self.playback.playing_index)
        except EngineError as e:
            logger.error(f"Failed to sync playlist with engine: {e}")

    def refresh_status(self) -> None:
        """Pull transport flags and volume from the engine (startup)."""
        try:
            status = self.engine.get_status()
        except EngineError as e:
            logger.error(f"Failed to get status: {e}")
            return
        self.playback.is_playing = status.is_playing
        self.playback.is_paused = status.is_paused and status.is_playing
        self.playback.volume = status.volume
        if not status.is_playing:
            self.playback.playing_index = -1
        self.presenter.refresh()

    # Transport

    def play_track(self, index: int, seek_seconds: float = 0) -> bool:
        """Play playlist row `index`. Callers guarantee the index is valid."""
        if self.playback.playing_index != index:
            self.clear_loop(announce=False)
        try:
            info = self.engine.play_track(index, seek_seconds)
        except EngineError as e:
            logger.error(f"Failed to play track {index}: {e}")
            self.status(f"Error: {e}")
            return False
        self._now_playing(index, info)
        self.playback.elapsed = seek_seconds
        self.presenter.refresh()
        return True

    def _now_playing(self, index: int, info: TrackInfo) -> None:
        self.playback.playing_index = index
        self.playback.is_playing = True
        self.playback.is_paused = False
        self.playback.duration = info.duration
        self.status(f"Playing: {info.name}")

    def play_selected(self) -> None:
        if self._play_selected is not None:
            self._play_selected()
            return
        if self.state.playlist:
            self.play_track(self.state.selected_index)

    def toggle_pause(self) -> None:
        try:
            is_paused = self.engine.toggle_pause()
        except EngineError:
            logger.debug("Nothing loaded to pause; starting selection instead")
            if self.state.playlist or self.state.view_mode is not ViewMode.LIST:
                self.play_selected()
            return
        self.playback.is_paused = is_paused
        self.status("Paused" if is_paused else "Playing")
        self.presenter.refresh()

    def stop(self) -> None:
        try:
            self.engine.stop()
        except EngineError as e:
            logger.error(f"Failed to stop: {e}")
            return
        self.playback.is_playing = False
        self.playback.is_paused = False
        self.playback.playing_index = -1
        self.playback.duration = None
        self.playback.elapsed = 0
        self.status("Stopped")
        self.presenter.refresh()

    def next_track(self) -> None:
        if self.playback.shuffle.enabled and self.playback.is_playing:
            self.play_next_shuffle()
            return
        self._step(self.engine.next_track, "next")

    def prev_track(self) -> None:
        if self.playback.shuffle.enabled and self.playback.is_playing:
            self.play_prev_shuffle()
            return
        self._step(self.engine.prev_track, "previous")

    def _step(self, request: Callable[[], TrackInfo], label: str) -> None:
        try:
            info = request()
        except EngineError as e:
            logger.error(f"Failed to play {label} track: {e}")
            return
        if info.index != self.playback.playing_index:
            self.clear_loop(announce=False)
        self._now_playing(info.index, info)
        self.playback.elapsed = 0
        if self.state.view_mode is ViewMode.LIST:
            self.state.selected_index = info.index
        self.presenter.refresh()
        self.presenter.scroll_to_selection()

    # Volume and speed

    def adjust_volume(self, delta: float) -> None:
        self.set_volume(self.playback.volume + delta)

    def set_volume(self, volume: float) -> None:
        volume = max(0.0, min(1.0, volume))
        try:
            self.playback.volume = self.engine.set_volume(volume)
        except EngineError as e:
            logger.error(f"Failed to set volume: {e}")
            return
        self.status(f"Volume {round(self.playback.volume * 100)}%")
        self.presenter.refresh()

    def toggle_mute(self) -> None:
        if self.playback.volume > 0:
            self.playback.previous_volume = self.playback.volume
            self.set_volume(0)
        else:
            self.set_volume(self.playback.previous_volume)

    def change_speed(self, delta: float) -> None:
        self.set_speed(self.playback.speed + delta)

    def reset_speed(self) -> None:
        self.set_speed(1.0)

    def set_speed(self, speed: float) -> None:
        speed = round(max(MIN_SPEED, min(MAX_SPEED, speed)), 2)
        try:
            self.playback.speed = self.engine.set_speed(speed)
        except EngineError as e:
            logger.error(f"Failed to set speed: {e}")
            return
        self.status(f"Speed {self.playback.speed:.2f}x")
        self.presenter.refresh()

    # Seeking

    def seek_relative(self, delta: float) -> None:
        try:
            position = self.engine.seek_relative(delta)
        except EngineError:
            return
        if position is not None:
            self.playback.elapsed = position
        self.presenter.refresh()

    def seek_to(self, position: float) -> None:
        try:
            result = self.engine.seek(position)
        except EngineError:
            return
        self.playback.elapsed = result if result is not None else position
        self.presenter.refresh()

    def jump_to_percent(self, percent: float) -> None:
        if not self.playback.is_playing or not self.playback.duration:
            self.status("No track playing")
            return
        self.seek_to(math.floor(percent / 100 * self.playback.duration))
        self.status(f"Jumped to {percent:g}%")

    # Repeat and shuffle

    def cycle_repeat(self) -> None:
        self.set_repeat(self.playback.repeat_mode.next())

    def set_repeat(self, mode: RepeatMode) -> None:
        self.playback.repeat_mode = mode
        if mode is RepeatMode.ONE and self.playback.shuffle.enabled:
            self.playback.shuffle.enabled = False
        self.status(f"Repeat: {mode.value}")
        self.presenter.refresh()

    def toggle_shuffle(self) -> None:
        shuffle = self.playback.shuffle
        shuffle.enabled = not shuffle.enabled
        if shuffle.enabled:
            shuffle.reset()
            if self.playback.repeat_mode is RepeatMode.ONE:
                self.playback.repeat_mode = RepeatMode.OFF
        self.status(f"Shuffle: {'on' if shuffle.enabled else 'off'}")
        self.presenter.refresh()

    def play_next_shuffle(self) -> None:
        """Redo forward through history, or pick a new random track at its end."""
        length = len(self.state.playlist)
        if length == 0:
            return
        shuffle = self.playback.shuffle
        if shuffle.cursor < len(shuffle.history) - 1:
            shuffle.cursor += 1
            self.play_track(shuffle.history[shuffle.cursor])
            return
        if length == 1:
            pick = 0
        else:
            candidates = [i for i in range(length) if i != self.playback.playing_index]
            pick = self.rng.choice(candidates)
        shuffle.history.append(pick)
        shuffle.cursor = len(shuffle.history) - 1
        self.play_track(pick)

    def play_prev_shuffle(self) -> None:
        shuffle = self.playback.shuffle
        if not shuffle.history or shuffle.cursor <= 0:
            return
        shuffle.cursor -= 1
        self.play_track(shuffle.history[shuffle.cursor])

    # Progress and track end

    def poll(self) -> None:
        """Progress tick: mirror engine status and react to track end."""
        if not self.playback.is_playing:
            return
        try:
            status = self.engine.get_status()
        except EngineError as e:
            logger.debug(f"Status poll failed: {e}")
            return
        self.playback.elapsed = status.elapsed
        self.playback.duration = status.duration
        if status.speed != self.playback.speed:
            self.playback.speed = status.speed
        if status.is_finished:
            self.handle_track_end()
        self.presenter.refresh()

    def handle_track_end(self) -> None:
        playback = self.playback
        if playback.duration:
            playback.elapsed = playback.duration
        length = len(self.state.playlist)

        if playback.repeat_mode is not RepeatMode.ONE and self.state.queue:
            self.play_track(self.queue.dequeue_front())
        elif playback.repeat_mode is RepeatMode.ONE and playback.playing_index >= 0:
            self.play_track(playback.playing_index)
        elif playback.shuffle.enabled:
            self.play_next_shuffle()
        elif playback.repeat_mode is RepeatMode.ALL and length:
            self.play_track((playback.playing_index + 1) % length)
        elif 0 <= playback.playing_index < length - 1:
            self.play_track(playback.playing_index + 1)
        else:
            playback.is_playing = False
            playback.is_paused = False
            self.status("End of playlist")

    # A-B loop

    def set_loop_a(self) -> None:
        if not self.playback.is_playing:
            self.status("No track playing")
            return
        self.state.loop.a = self.playback.elapsed
        self.state.loop.b = None
        self.loop_task.stop()
        self.status(f"Loop A set at {format_time(self.state.loop.a)} - press B to set end point")
        self.presenter.refresh()

    def set_loop_b(self) -> None:
        if not self.playback.is_playing:
            self.status("No track playing")
            return
        if self.state.loop.a is None:
            self.status("Set loop point A first (press b)")
            return
        if self.playback.elapsed <= self.state.loop.a:
            self.status("Loop B must be after loop A")
            return
        self.state.loop.b = self.playback.elapsed
        self.loop_task.start()
        self.status(f"Loop: {format_time(self.state.loop.a)} - {format_time(self.state.loop.b)}")
        self.presenter.refresh()

    def clear_loop(self, announce: bool = True) -> None:
        self.state.loop.clear()
        self.loop_task.stop()
        if announce:
            self.status("Loop cleared")
            self.presenter.refresh()

    def loop_tick(self) -> None:
        loop = self.state.loop
        if not self.playback.is_playing or not loop.active:
            self.loop_task.stop()
            return
        if self.playback.elapsed >= loop.b:
            self.seek_to(loop.a)
            self.playback.elapsed = loop.a

    # Bookmarks

    def set_bookmark(self, key: str) -> None:
        track = self.state.playing_track
        if not self.playback.is_playing or track is None:
            self.status("No track playing to bookmark")
            return
        self.state.bookmarks[key] = Bookmark(key, track.path, self.playback.elapsed)
        self.status(f"Bookmark '{key}' set at {format_time(self.playback.elapsed)}")

    def jump_to_bookmark(self, key: str) -> None:
        bookmark = self.state.bookmarks.get(key)
        if bookmark is None:
            self.status(f"No bookmark '{key}'")
            return
        playing = self.state.playing_track
        if self.playback.is_playing and playing is not None and playing.path == bookmark.track_path:
            self.seek_to(bookmark.position)
        else:
            index = self.state.index_of_path(bookmark.track_path)
            if index == -1:
                self.status(f"Bookmark '{key}' track not in playlist")
                return
            if not self.play_track(index, bookmark.position):
                return
        self.status(f"Jumped to bookmark '{key}' at {format_time(bookmark.position)}")

    def delete_bookmark(self, key: str) -> None:
        if self.state.bookmarks.pop(key, None) is None:
            self.status(f"No bookmark '{key}'")
        else:
            self.status(f"Bookmark '{key}' deleted")

    def show_bookmarks(self) -> None:
        if not self.state.bookmarks:
            self.status("No bookmarks set")
            return
        entries = []
        for key in sorted(self.state.bookmarks):
            bookmark = self.state.bookmarks[key]
            index = self.state.index_of_path(bookmark.track_path)
            name = self.state.playlist[index].name if index >= 0 else "Unknown"
            entries.append(f"'{key}': {name} @ {format_time(bookmark.position)}")
        self.status("Bookmarks: " + ", ".join(entries))

    # Sleep timer

    def sleep_remaining(self) -> Optional[float]:
        """Seconds until the sleep timer fires, or None."""
        if self.state.sleep.end_timestamp is None:
            return None
        return max(0.0, self.state.sleep.end_timestamp - self.clock())

    def set_sleep_timer(self, minutes: int) -> None:
        self.clear_sleep_timer()
        if minutes <= 0:
            self.status("Sleep timer cleared")
            return
        self.state.sleep.end_timestamp = self.clock() + minutes * 60
        self.sleep_task.start()
        self.status(f"Sleep timer set for {plural(minutes, 'minute')}")
        self.presenter.refresh()

    def adjust_sleep_timer(self, delta_minutes: int) -> None:
        if not self.state.sleep.armed:
            if delta_minutes > 0:
                self.set_sleep_timer(delta_minutes)
            else:
                self.status("No sleep timer to adjust")
            return
        new_end = self.state.sleep.end_timestamp + delta_minutes * 60
        remaining = new_end - self.clock()
        if remaining <= 0:
            self.clear_sleep_timer()
            self.status("Sleep timer cleared")
            return
        self.state.sleep.end_timestamp = new_end
        sign = "+" if delta_minutes > 0 else ""
        self.status(f"Sleep timer: {sign}{delta_minutes} min ({math.ceil(remaining / 60)} min remaining)")
        self.presenter.refresh()

    def clear_sleep_timer(self) -> None:
        self.sleep_task.stop()
        self.state.sleep.end_timestamp = None
        self.presenter.refresh()

    def describe_sleep_timer(self) -> None:
        remaining = self.sleep_remaining()
        if remaining is None:
            self.status("No sleep timer set. Usage: :sleep <minutes>")
            return
        self.status(f"Sleep timer: {plural(math.ceil(remaining / 60), 'minute')} remaining")

    def sleep_tick(self) -> None:
        remaining = self.sleep_remaining()
        if remaining is None:
            self.sleep_task.stop()
            return
        if remaining <= 0:
            self.clear_sleep_timer()
            self.stop()
            self.status("Sleep timer: Playback stopped")
            return
        self.presenter.refresh()

    # Output devices

    def show_audio_devices(self) -> None:
        devices = self._list_devices()
        if devices is None:
            return
        if not devices:
            self.status("No audio output devices found")
            return
        listing = "\n".join(f"{i}. {name}" for i, name in enumerate(devices, start=1))
        self.status(f"Audio devices:\n{listing}\nUse :device <number> to switch")

    def set_audio_device(self, name: str) -> None:
        try:
            self.engine.set_audio_device(name)
        except EngineError as e:
            logger.error(f"Failed to switch audio device to {name!r}: {e}")
            self.status(f"Error: {e}")
            return
        self.status(f"Audio output: {name or 'Default'}")

    def set_audio_device_by_number(self, number: int) -> None:
        devices = self._list_devices()
        if devices is None:
            return
        if not 1 <= number <= len(devices):
            self.status("Invalid device number. Use :devices to see list")
            return
        self.set_audio_device(devices[number - 1])

    def _list_devices(self) -> Optional[list[str]]:
        try:
            return self.engine.list_audio_devices()
        except EngineError as e:
            logger.error(f"Failed to list audio devices: {e}")
            self.status(f"Error: {e}")
            return None

    def shutdown(self) -> None:
        self.progress_task.stop()
        self.loop_task.stop()
        self.sleep_task.stop()

