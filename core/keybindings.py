from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from models.actions import Action

logger = logging.getLogger(__name__)

DEFAULT_KEYBINDINGS: Dict[str, Action] = {
    # Navigation
    "j": Action.MOVE_DOWN,
    "k": Action.MOVE_UP,
    "g": Action.PENDING_G,
    "G": Action.GO_TO_END,
    "Ctrl+d": Action.PAGE_DOWN,
    "Ctrl+u": Action.PAGE_UP,
    # Playback
    "Enter": Action.PLAY_SELECTED,
    "Space": Action.TOGGLE_PAUSE,
    "s": Action.STOP,
    "J": Action.NEXT_TRACK,
    "K": Action.PREV_TRACK,
    # Volume
    "+": Action.VOLUME_UP,
    "=": Action.VOLUME_UP,
    "-": Action.VOLUME_DOWN,
    "M": Action.TOGGLE_MUTE,
    # Speed
    "]": Action.SPEED_UP,
    "[": Action.SPEED_DOWN,
    "\\": Action.SPEED_RESET,
    # Seek
    "l": Action.SEEK_FORWARD,
    "h": Action.SEEK_BACKWARD,
    "L": Action.SEEK_FORWARD_LARGE,
    "H": Action.SEEK_BACKWARD_LARGE,
    # Modes
    ":": Action.COMMAND_MODE,
    "/": Action.FILTER_MODE,
    "Escape": Action.NORMAL_MODE,
    "v": Action.VISUAL_MODE,
    # View
    "Tab": Action.TOGGLE_VIEW,
    # Repeat/Shuffle
    "r": Action.CYCLE_REPEAT,
    "S": Action.TOGGLE_SHUFFLE,
    # Queue
    "a": Action.ADD_TO_QUEUE,
    "q": Action.TOGGLE_QUEUE_VIEW,
    # Folder
    "o": Action.OPEN_FOLDER,
    "R": Action.RELOAD_CONTENT,
    # Playlist
    "P": Action.OPEN_PLAYLIST_MANAGER,
    "A": Action.ADD_TO_PLAYLIST,
    "?": Action.TOGGLE_HELP,
    # Two-key sequences
    "d": Action.PENDING_D,
    "m": Action.PENDING_M,
    "'": Action.PENDING_QUOTE,
    # A-B loop
    "b": Action.SET_LOOP_A,
    "B": Action.SET_LOOP_B,
    "C": Action.CLEAR_LOOP,
}


TEXTUAL_KEY_NAMES = {
    "enter": "Enter",
    "escape": "Escape",
    "tab": "Tab",
    "backspace": "Backspace",
    "space": "Space",
    "delete": "Delete",
    "up": "ArrowUp",
    "down": "ArrowDown",
    "left": "ArrowLeft",
    "right": "ArrowRight",
    "home": "Home",
    "end": "End",
    "pageup": "PageUp",
    "pagedown": "PageDown",
}


@dataclass(frozen=True)
class KeyEvent:
    """A raw key press.

    `key` is the printable character ("j", "J", ":") or a named key
    ("Enter", "Escape", "Tab", "Backspace", "Space", "ArrowDown").
    """
    key: str
    ctrl: bool = False
    alt: bool = False
    meta: bool = False
    shift: bool = False

    @classmethod
    def from_textual(cls, key: str, character: Optional[str] = None) -> "KeyEvent":
        """Translate a Textual key name ("ctrl+d", "shift+tab", "colon") and its character."""
        *modifiers, base = key.split("+")
        ctrl = "ctrl" in modifiers
        alt = "alt" in modifiers
        meta = "meta" in modifiers or "super" in modifiers
        shift = "shift" in modifiers
        if base in TEXTUAL_KEY_NAMES:
            return cls(TEXTUAL_KEY_NAMES[base], ctrl, alt, meta, shift)
        if character and len(character) == 1 and character.isprintable() and not (ctrl or alt or meta):
            return cls(character)
        return cls(base, ctrl, alt, meta, shift)

    @property
    def base(self) -> str:
        return "Space" if self.key == " " else self.key

    @property
    def is_printable(self) -> bool:
        return len(self.key) == 1 and self.key.isprintable() and not (self.ctrl or self.alt or self.meta)

    @property
    def text(self) -> str:
        """The character this key types in a text line, or ''."""
        if self.base == "Space" and not (self.ctrl or self.alt or self.meta):
            return " "
        return self.key if self.is_printable else ""


def chord_for(event: KeyEvent) -> str:
    """Build a chord string such as "Ctrl+d" or "Shift+Tab".

    Shift is only spelled out for named keys or alongside another
    modifier, so Shift+j arrives as the literal "J".
    """
    parts = []
    if event.ctrl:
        parts.append("Ctrl")
    if event.alt:
        parts.append("Alt")
    if event.meta:
        parts.append("Meta")
    base = event.base
    if event.shift and (parts or len(base) > 1):
        parts.append("Shift")
    parts.append(base)
    return "+".join(parts)


class KeybindingResolver:
    """Maps chords to actions, with user overrides layered over defaults."""

    def __init__(self, user_bindings: Optional[Mapping[str, Action]] = None,
                 defaults: Optional[Mapping[str, Action]] = None):
        self.user_bindings: Dict[str, Action] = dict(user_bindings or {})
        self.defaults: Dict[str, Action] = dict(DEFAULT_KEYBINDINGS if defaults is None else defaults)

    @classmethod
    def from_config(cls, raw: Mapping[str, str]) -> "KeybindingResolver":
        """Build a resolver from keybindings.json content (chord -> action name)."""
        user: Dict[str, Action] = {}
        for chord, name in raw.items():
            action = Action.from_name(str(name))
            if action is None:
                logger.warning(f"Ignoring binding {chord!r}: unknown action {name!r}")
                continue
            user[chord] = action
        return cls(user)

    def resolve(self, chord: str) -> Optional[Action]:
        action = self.user_bindings.get(chord)
        if action is None:
            action = self.defaults.get(chord)
        return action

    def resolve_event(self, event: KeyEvent) -> Optional[Action]:
        """Resolve the full chord, then fall back to the bare key."""
        action = self.resolve(chord_for(event))
        if action is None:
            action = self.resolve(event.base)
        return action

    def action_for(self, action: Action) -> Optional[str]:
        """Key to show for an action in help: user bindings win."""
        for chord, bound in self.user_bindings.items():
            if bound is action:
                return chord
        for chord, bound in self.defaults.items():
            if bound is action and chord not in self.user_bindings:
                return chord
        return None
