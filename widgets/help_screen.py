from __future__ import annotations

from textual.screen import ModalScreen
from textual.widgets import Static, Button
from textual.containers import Container, VerticalScroll
from textual.app import ComposeResult
from textual.css.query import NoMatches

from core.keybindings import KeybindingResolver
from models.actions import Action

HELP_SECTIONS = [
    ("NAVIGATION", [Action.MOVE_DOWN, Action.MOVE_UP, Action.PENDING_G, Action.GO_TO_END,
                    Action.PAGE_DOWN, Action.PAGE_UP]),
    ("PLAYBACK", [Action.PLAY_SELECTED, Action.TOGGLE_PAUSE, Action.STOP, Action.NEXT_TRACK, Action.PREV_TRACK]),
    ("VOLUME AND SPEED", [Action.VOLUME_UP, Action.VOLUME_DOWN, Action.TOGGLE_MUTE,
                          Action.SPEED_UP, Action.SPEED_DOWN, Action.SPEED_RESET]),
    ("SEEK AND LOOP", [Action.SEEK_FORWARD, Action.SEEK_BACKWARD, Action.SEEK_FORWARD_LARGE,
                       Action.SEEK_BACKWARD_LARGE, Action.SET_LOOP_A, Action.SET_LOOP_B, Action.CLEAR_LOOP]),
    ("MODES AND VIEWS", [Action.COMMAND_MODE, Action.FILTER_MODE, Action.NORMAL_MODE, Action.VISUAL_MODE,
                         Action.TOGGLE_VIEW, Action.TOGGLE_HELP]),
    ("QUEUE AND PLAYLISTS", [Action.CYCLE_REPEAT, Action.TOGGLE_SHUFFLE, Action.ADD_TO_QUEUE,
                             Action.TOGGLE_QUEUE_VIEW, Action.OPEN_FOLDER, Action.RELOAD_CONTENT,
                             Action.OPEN_PLAYLIST_MANAGER, Action.ADD_TO_PLAYLIST]),
]

SEQUENCE_HELP = """[bold]SEQUENCES[/bold]
  gg          Go to top (or line N with a count)
  dd          Delete track (or visual selection)
  m{a-z}      Set bookmark
  '{a-z}      Jump to bookmark
  n / N       Next / previous filter match
  Backspace   Parent folder, or back to previous root
  {count}     Prefix j, k, h, l, G, gg with a number"""

COMMAND_HELP = r"""[bold]COMMANDS[/bold]
  :open :reload :back :q              Folders and quitting
  :play \[n] :stop :next :prev         Transport
  :vol \[0-100] :jump 50 | 1:30        Volume and seeking
  :save :load :playlists :rename      Saved playlists (rename old > new)
  :delplaylist :setdefault :cleardefault
  :addlib :libs :removelib :scanlib   Library folders
  :artists :reveal :sort name|duration|path\[!]
  :mark :marks :delmark :sleep \[+|-]N
  :devices :device n|name             Audio output
  :set \[opt|noopt|opt!|opt?|opt=val]  Settings
  :N,Md :Nd :+N :-N                   Range delete, relative jump"""


def help_text(resolver: KeybindingResolver) -> str:
    """Help body listing every action with the key currently bound to it."""
    lines = ["[bold #ff8c00]VIMPLAY - VIM-style Terminal Music Player[/bold #ff8c00]", ""]
    for title, actions in HELP_SECTIONS:
        lines.append(f"[bold]{title}[/bold]")
        for action in actions:
            key = resolver.action_for(action) or "-"
            lines.append(f"  {_escape(key):<11} {action.label}")
        lines.append("")
    lines.append(SEQUENCE_HELP)
    lines.append("")
    lines.append(COMMAND_HELP)
    return "\n".join(lines)


def _escape(key: str) -> str:
    return key.replace("[", "\\[")


class HelpScreen(ModalScreen[None]):
    """Modal screen displaying the effective keybindings and commands."""

    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }

    #help-container {
        width: 90;
        height: 90%;
        background: #1a1a1a;
        border: thick #cc5500;
        padding: 1 2;
    }

    #help-scroll {
        width: 100%;
        height: 1fr;
        margin-bottom: 1;
    }

    #help-content {
        width: 100%;
        height: auto;
    }

    #help-close-button {
        width: 100%;
        height: auto;
        background: #2d2d2d;
        color: #ff8c00;
        border: solid #ff8c00;
        text-style: bold;
    }

    #help-close-button:hover {
        background: #3d3d3d;
        color: #ffb347;
    }

    #help-close-button:focus {
        border: solid #ffb347;
    }
    """

    def __init__(self, resolver: KeybindingResolver) -> None:
        """Initialize help screen.

        Args:
            resolver: Keybindings whose effective keys are listed.
        """
        super().__init__()
        self.resolver = resolver

    def compose(self) -> ComposeResult:
        with Container(id="help-container"):
            with VerticalScroll(id="help-scroll"):
                yield Static(help_text(self.resolver), id="help-content")

            yield Button("Close (Esc)", id="help-close-button", variant="primary")

    def on_mount(self) -> None:
        self.call_after_refresh(self._focus_button)

    def _focus_button(self) -> None:
        try:
            self.query_one("#help-close-button", Button).focus()
        except NoMatches:
            pass

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "help-close-button":
            self.dismiss()

    async def on_key(self, event) -> None:
        """Close on Esc, q or ?; scroll with j/k."""
        if event.key in ("escape", "q") or event.character == "?":
            self.dismiss()
            event.prevent_default()
            event.stop()
        elif event.key == "j":
            self.query_one("#help-scroll", VerticalScroll).scroll_down()
            event.prevent_default()
            event.stop()
        elif event.key == "k":
            self.query_one("#help-scroll", VerticalScroll).scroll_up()
            event.prevent_default()
            event.stop()
