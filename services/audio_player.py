import logging
import time
from pathlib import Path
from typing import List, Optional

import pygame
import sounddevice as sd
from mutagen import File as MutagenFile

from models.playback import EngineStatus, TrackInfo
from services.errors import EngineError

logger = logging.getLogger(__name__)

MIXER_SETTINGS = dict(frequency=44100, size=-16, channels=2, buffer=512)


class AudioPlayer:
    """Playback engine on top of pygame.mixer.music.

    Holds its own copy of the playlist as a list of paths and answers
    play/next/prev requests with TrackInfo. Positions are tracked with a
    wall clock because mixer.music.get_pos() resets on every seek.
    """

    def __init__(self, device_name: Optional[str] = None):
        self._device_name = device_name
        self._init_mixer(device_name)

        self._playlist: List[str] = []
        self._current_index: int = 0
        self._current_path: Optional[str] = None
        self._duration: Optional[float] = None
        self._volume: float = 1.0
        self._speed: float = 1.0
        self._is_playing: bool = False
        self._is_paused: bool = False
        self._start_time: float = 0
        self._pause_position: float = 0

        pygame.mixer.music.set_volume(self._volume)

    @staticmethod
    def _init_mixer(device_name: Optional[str]) -> None:
        try:
            if device_name:
                pygame.mixer.init(devicename=device_name, **MIXER_SETTINGS)
            else:
                pygame.mixer.init(**MIXER_SETTINGS)
        except pygame.error as e:
            raise RuntimeError(f"Audio output unavailable: {e}") from e

    def set_playlist(self, paths: List[str], current_index: int = -1) -> None:
        """Replace the engine playlist. The playing file is left alone."""
        self._playlist = list(paths)
        if 0 <= current_index < len(self._playlist):
            self._current_index = current_index
        else:
            self._current_index = 0

    def play_track(self, index: int, skip_secs: float = 0) -> TrackInfo:
        if not 0 <= index < len(self._playlist):
            raise EngineError("Invalid track index")
        path = self._playlist[index]
        try:
            pygame.mixer.music.load(path)
            pygame.mixer.music.play(start=skip_secs)
        except pygame.error as e:
            self._is_playing = False
            self._is_paused = False
            raise EngineError(f"Cannot play {Path(path).name}: {e}") from e

        self._current_index = index
        self._current_path = path
        self._duration = _probe_duration(path)
        self._is_playing = True
        self._is_paused = False
        self._start_time = time.time() - skip_secs
        self._pause_position = 0
        logger.info(f"Playing {path}")
        return TrackInfo(name=Path(path).name, duration=self._duration, index=index)

    def toggle_pause(self) -> bool:
        """Pause or resume; returns the new paused flag."""
        if not self._is_playing:
            raise EngineError("No track is playing")
        if self._is_paused:
            pygame.mixer.music.unpause()
            self._start_time = time.time() - self._pause_position
            self._is_paused = False
        else:
            pygame.mixer.music.pause()
            self._pause_position = time.time() - self._start_time
            self._is_paused = True
        return self._is_paused

    def stop(self) -> None:
        pygame.mixer.music.stop()
        self._is_playing = False
        self._is_paused = False
        self._current_path = None
        self._start_time = 0
        self._pause_position = 0

    def next_track(self) -> TrackInfo:
        if not self._playlist:
            raise EngineError("Playlist is empty")
        return self.play_track((self._current_index + 1) % len(self._playlist))

    def prev_track(self) -> TrackInfo:
        if not self._playlist:
            raise EngineError("Playlist is empty")
        return self.play_track((self._current_index - 1) % len(self._playlist))

    def set_volume(self, volume: float) -> float:
        self._volume = max(0.0, min(1.0, volume))
        pygame.mixer.music.set_volume(self._volume)
        return self._volume

    def set_speed(self, speed: float) -> float:
        # mixer.music has no time-stretching; the rate is recorded and reported only.
        self._speed = speed
        return self._speed

    def get_position(self) -> float:
        if not self._is_playing:
            return 0.0
        if self._is_paused:
            return self._pause_position
        return time.time() - self._start_time

    def seek(self, position: float) -> float:
        if not self._is_playing:
            raise EngineError("No track is playing")
        position = max(0.0, position)
        if self._duration is not None:
            position = min(position, self._duration)
        try:
            pygame.mixer.music.play(start=position)
        except pygame.error as e:
            raise EngineError(f"Seek failed: {e}") from e
        if self._is_paused:
            pygame.mixer.music.pause()
            self._pause_position = position
        self._start_time = time.time() - position
        return position

    def seek_relative(self, delta: float) -> float:
        if not self._is_playing:
            raise EngineError("No track is playing")
        return self.seek(self.get_position() + delta)

    def get_status(self) -> EngineStatus:
        finished = self._is_playing and not self._is_paused and not pygame.mixer.music.get_busy()
        elapsed = self.get_position()
        if self._duration is not None:
            elapsed = min(elapsed, self._duration)
        if finished:
            # Reported once; afterwards the engine is idle until the next play.
            self._is_playing = False
        return EngineStatus(
            elapsed=elapsed,
            duration=self._duration,
            speed=self._speed,
            is_playing=finished or self._is_playing,
            is_paused=self._is_paused,
            is_finished=finished,
            current_track=Path(self._current_path).name if self._current_path else None,
            volume=self._volume,
        )

    def list_audio_devices(self) -> List[str]:
        """Names of output-capable devices reported by PortAudio."""
        try:
            devices = sd.query_devices()
        except sd.PortAudioError as e:
            raise EngineError(f"Cannot list audio devices: {e}") from e
        names = []
        for device in devices:
            if device.get("max_output_channels", 0) > 0 and device["name"] not in names:
                names.append(device["name"])
        return names

    def set_audio_device(self, device_name: str) -> None:
        """Reopen the mixer on another output device, resuming the current track."""
        path = self._current_path
        position = self.get_position()
        was_playing = self._is_playing
        was_paused = self._is_paused

        pygame.mixer.quit()
        try:
            self._init_mixer(device_name or None)
        except RuntimeError as e:
            logger.error(f"Failed to open {device_name!r}, falling back to default: {e}")
            self._init_mixer(self._device_name)
            raise EngineError(str(e)) from e
        self._device_name = device_name or None
        pygame.mixer.music.set_volume(self._volume)

        if was_playing and path:
            pygame.mixer.music.load(path)
            pygame.mixer.music.play(start=position)
            self._start_time = time.time() - position
            if was_paused:
                pygame.mixer.music.pause()
                self._pause_position = position
        logger.info(f"Audio output switched to {device_name or 'default'}")

    def close(self) -> None:
        pygame.mixer.quit()


def _probe_duration(path: str) -> Optional[float]:
    try:
        audio = MutagenFile(path)
    except Exception as e:
        logger.warning(f"Could not read duration of {path}: {e}")
        return None
    if audio is None or audio.info is None:
        return None
    return float(audio.info.length)
