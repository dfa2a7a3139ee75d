from .keybindings import KeyEvent, KeybindingResolver, DEFAULT_KEYBINDINGS
from .controller import PlayerController

__all__ = [
    "KeyEvent",
    "KeybindingResolver",
    "DEFAULT_KEYBINDINGS",
    "PlayerController",
]
