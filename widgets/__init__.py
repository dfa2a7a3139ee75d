from .header import Header
from .help_screen import HelpScreen
from .overlay_panel import OverlayPanel
from .prompt_screen import PromptScreen, ConfirmScreen
from .status_line import StatusLine

__all__ = [
    "Header",
    "HelpScreen",
    "OverlayPanel",
    "PromptScreen",
    "ConfirmScreen",
    "StatusLine",
]
