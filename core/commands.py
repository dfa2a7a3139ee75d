from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from core.component import Component
from services.errors import PersistenceError

logger = logging.getLogger(__name__)

RANGE_DELETE = re.compile(r"^(\d+),(\d+)([a-z]+)$", re.IGNORECASE)
LINE_DELETE = re.compile(r"^(\d+)([a-z]+)$", re.IGNORECASE)
RELATIVE_JUMP = re.compile(r"^[+-]\d+$")
MARK_KEY = re.compile(r"^[a-z]$", re.IGNORECASE)
DELETE_VERBS = {"d", "delete"}


@dataclass(frozen=True)
class ParsedCommand:
    """One command line, classified.

    `kind` is "delete" (1-based inclusive `start`..`end`), "relative"
    (`offset` rows), "verb" (`verb` plus raw `args`) or "empty".
    """
    kind: str
    verb: str = ""
    args: List[str] = field(default_factory=list)
    start: int = 0
    end: int = 0
    offset: int = 0

    @property
    def rest(self) -> str:
        return " ".join(self.args)


def parse_command(text: str) -> ParsedCommand:
    """Classify a command line. Line/range deletes are recognised before any verb."""
    trimmed = text.strip()
    if not trimmed:
        return ParsedCommand("empty")

    match = RANGE_DELETE.match(trimmed)
    if match and match.group(3).lower() in DELETE_VERBS:
        return ParsedCommand("delete", start=int(match.group(1)), end=int(match.group(2)))

    match = LINE_DELETE.match(trimmed)
    if match and match.group(2).lower() in DELETE_VERBS:
        line = int(match.group(1))
        return ParsedCommand("delete", start=line, end=line)

    if RELATIVE_JUMP.match(trimmed):
        return ParsedCommand("relative", offset=int(trimmed))

    verb, *args = trimmed.split()
    return ParsedCommand("verb", verb=verb.lower(), args=args)


def parse_time(text: str) -> Optional[int]:
    """Seconds for 'm:ss' or 'h:mm:ss', else None."""
    parts = text.split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        return None
    seconds = 0
    for part in parts:
        seconds = seconds * 60 + int(part)
    return seconds


def parse_int(text: str) -> Optional[int]:
    try:
        return int(text)
    except ValueError:
        return None


class CommandLineInterpreter(Component):
    """Executes `:` command lines against the core components."""

    def __init__(self, state, presenter, session, library, playlists, navigator, store):
        super().__init__(state, presenter)
        self.session = session
        self.library = library
        self.playlists = playlists
        self.navigator = navigator
        self.store = store
        self.verbs: Dict[str, Callable[[ParsedCommand], None]] = {}
        self._register()

    def _register(self) -> None:
        table = {
            ("q", "quit"): lambda cmd: self.presenter.quit(),
            ("open", "o"): lambda cmd: self.library.open_folder(),
            ("reload", "r"): lambda cmd: self.library.reload(),
            ("play", "p"): self._play,
            ("stop",): lambda cmd: self.session.stop(),
            ("next", "n"): lambda cmd: self.session.next_track(),
            ("prev",): lambda cmd: self.session.prev_track(),
            ("vol", "volume"): self._volume,
            ("help", "h"): lambda cmd: self.presenter.toggle_help(),
            ("setdefault", "sd"): lambda cmd: self.library.set_default_folder(),
            ("cleardefault", "cd"): lambda cmd: self.library.clear_default_folder(),
            ("save", "w"): self._save,
            ("load", "e"): self._load,
            ("playlists", "pl"): lambda cmd: self.playlists.open_manager(),
            ("delplaylist", "dp"): self._delete_playlist,
            ("rename", "rn"): self._rename,
            ("sleep",): self._sleep,
            ("mark",): self._mark,
            ("marks",): lambda cmd: self.session.show_bookmarks(),
            ("delmark", "dm"): self._delmark,
            ("jump", "j"): self._jump,
            ("addlib", "al"): lambda cmd: self.library.add_library_folder(),
            ("libs", "library"): lambda cmd: self.library.show_library_folders(),
            ("removelib", "rl"): self._removelib,
            ("scanlib", "scan", "sl"): lambda cmd: self.library.scan_library(),
            ("back", "b"): lambda cmd: self.library.go_back(),
            ("artists", "ar"): lambda cmd: self.library.open_artist_view(),
            ("devices", "dev"): lambda cmd: self.session.show_audio_devices(),
            ("device", "d"): self._device,
            ("reveal", "rv"): lambda cmd: self.library.reveal_selected(),
            ("sort",): self._sort,
            ("set",): self._set,
        }
        for names, handler in table.items():
            for name in names:
                self.verbs[name] = handler

    def execute(self, text: str) -> None:
        command = parse_command(text)
        logger.debug(f"Command {text!r} parsed as {command.kind}")
        if command.kind == "delete":
            self.library.delete_range(command.start, command.end)
        elif command.kind == "relative":
            self.navigator.move(command.offset)
        elif command.kind == "verb":
            handler = self.verbs.get(command.verb)
            if handler is None:
                self.status(f"Not an editor command: {command.verb}")
                return
            handler(command)

    def _play(self, cmd: ParsedCommand) -> None:
        if not cmd.args:
            self.session.play_selected()
            return
        number = parse_int(cmd.args[0])
        if number is not None and 1 <= number <= len(self.state.playlist):
            self.session.play_track(number - 1)
        else:
            self.status(f"Invalid track number. Use 1-{len(self.state.playlist)}")

    def _volume(self, cmd: ParsedCommand) -> None:
        if not cmd.args:
            self.status(f"Volume {round(self.state.playback.volume * 100)}%")
            return
        level = parse_int(cmd.args[0])
        if level is None:
            self.status("Usage: :vol <0-100>")
            return
        self.session.set_volume(level / 100)

    def _save(self, cmd: ParsedCommand) -> None:
        if not cmd.args:
            self.status("Usage: :save <playlist name>")
            return
        self.playlists.save(cmd.rest)

    def _load(self, cmd: ParsedCommand) -> None:
        if cmd.args:
            self.playlists.load(cmd.rest)
        else:
            self.playlists.open_manager()

    def _delete_playlist(self, cmd: ParsedCommand) -> None:
        if not cmd.args:
            self.status("Usage: :delplaylist <playlist name>")
            return
        self.playlists.delete(cmd.rest)

    def _rename(self, cmd: ParsedCommand) -> None:
        usage = "Usage: :rename <old name> > <new name>"
        if len(cmd.args) < 2:
            self.status(usage)
            return
        if ">" in cmd.rest:
            old_name, new_name = (part.strip() for part in cmd.rest.split(">", 1))
        else:
            old_name, new_name = cmd.args[0], " ".join(cmd.args[1:])
        if not old_name or not new_name:
            self.status(usage)
            return
        self.playlists.rename(old_name, new_name)

    def _sleep(self, cmd: ParsedCommand) -> None:
        if not cmd.args:
            self.session.describe_sleep_timer()
            return
        arg = cmd.args[0]
        if arg[0] in "+-":
            delta = parse_int(arg)
            if delta is None:
                self.status("Usage: :sleep +<minutes> or :sleep -<minutes>")
            else:
                self.session.adjust_sleep_timer(delta)
            return
        minutes = parse_int(arg)
        if minutes is None or minutes < 0:
            self.status("Usage: :sleep <minutes> (0 to cancel)")
            return
        self.session.set_sleep_timer(minutes)

    def _mark_key(self, cmd: ParsedCommand) -> Optional[str]:
        if cmd.args and MARK_KEY.match(cmd.args[0]):
            return cmd.args[0].lower()
        return None

    def _mark(self, cmd: ParsedCommand) -> None:
        key = self._mark_key(cmd)
        if key is None:
            self.status("Usage: :mark <a-z>")
        else:
            self.session.set_bookmark(key)

    def _delmark(self, cmd: ParsedCommand) -> None:
        key = self._mark_key(cmd)
        if key is None:
            self.status("Usage: :delmark <a-z>")
        else:
            self.session.delete_bookmark(key)

    def _jump(self, cmd: ParsedCommand) -> None:
        usage = "Usage: :jump <0-100> or :jump m:ss"
        if not cmd.args:
            self.status(usage)
            return
        arg = cmd.args[0]
        if ":" in arg:
            seconds = parse_time(arg)
            if seconds is None:
                self.status("Invalid time format. Use m:ss or h:mm:ss")
            else:
                self.session.seek_to(seconds)
            return
        percent = parse_int(arg.rstrip("%"))
        if percent is None or not 0 <= percent <= 100:
            self.status(usage)
            return
        self.session.jump_to_percent(percent)

    def _removelib(self, cmd: ParsedCommand) -> None:
        number = parse_int(cmd.args[0]) if cmd.args else None
        if number is None:
            self.status("Usage: :removelib <number> (use :libs to see folders)")
            return
        self.library.remove_library_folder(number)

    def _device(self, cmd: ParsedCommand) -> None:
        if not cmd.args:
            self.session.show_audio_devices()
            return
        number = parse_int(cmd.args[0])
        if number is not None:
            self.session.set_audio_device_by_number(number)
        else:
            self.session.set_audio_device(cmd.rest)

    def _sort(self, cmd: ParsedCommand) -> None:
        if not cmd.args:
            self.status("Usage: :sort name | duration | path (append ! to reverse)")
            return
        self.library.sort(cmd.args[0].lower())

    def _set(self, cmd: ParsedCommand) -> None:
        settings = self.state.settings
        if not cmd.args:
            self.status(f"Settings: {settings.summary()}")
            return
        message, changed = settings.apply(cmd.rest)
        self.status(message)
        if not changed:
            return
        try:
            self.store.save_settings(settings.to_dict())
        except PersistenceError as e:
            logger.error(f"Failed to save settings: {e}")
        self.presenter.refresh()
