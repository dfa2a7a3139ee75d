from __future__ import annotations

import logging

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label

logger = logging.getLogger(__name__)


class PromptScreen(ModalScreen[str | None]):
    """Modal screen asking for one line of text, such as a folder path."""

    BINDINGS = [
        Binding("escape", "dismiss(None)", "Cancel"),
    ]

    DEFAULT_CSS = """
    PromptScreen {
        align: center middle;
    }

    #prompt-container {
        width: 70;
        height: auto;
        background: #1a1a1a;
        border: thick #cc5500;
        padding: 1 2;
    }

    #prompt-title {
        color: #ff8c00;
        text-style: bold;
        margin-bottom: 1;
    }

    #prompt-input {
        border: solid #ff8c00;
    }
    """

    def __init__(self, title: str, initial: str = "") -> None:
        """Initialize the prompt.

        Args:
            title: Question shown above the input.
            initial: Pre-filled value.
        """
        super().__init__()
        self.title_text = title
        self.initial = initial

    def compose(self) -> ComposeResult:
        with Container(id="prompt-container"):
            yield Label(self.title_text, id="prompt-title")
            yield Input(value=self.initial, id="prompt-input")
            yield Label("Enter to confirm, Esc to cancel", id="prompt-help")

    def on_mount(self) -> None:
        self.call_after_refresh(self._focus_input)

    def _focus_input(self) -> None:
        self.query_one("#prompt-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        value = event.value.strip()
        logger.debug(f"Prompt {self.title_text!r} answered")
        self.dismiss(value or None)


class ConfirmScreen(ModalScreen[bool]):
    """Yes/no question; y or Enter confirms, n or Esc declines."""

    BINDINGS = [
        Binding("y", "answer(True)", "Yes"),
        Binding("n", "answer(False)", "No"),
        Binding("escape", "answer(False)", "No"),
    ]

    DEFAULT_CSS = """
    ConfirmScreen {
        align: center middle;
    }

    #confirm-container {
        width: 60;
        height: auto;
        background: #1a1a1a;
        border: thick #cc5500;
        padding: 1 2;
    }

    #confirm-question {
        color: #ff8c00;
        text-style: bold;
        margin-bottom: 1;
    }

    #confirm-buttons {
        height: auto;
    }

    #confirm-buttons Button {
        margin-right: 2;
    }
    """

    def __init__(self, question: str) -> None:
        super().__init__()
        self.question = question

    def compose(self) -> ComposeResult:
        with Container(id="confirm-container"):
            yield Label(self.question, id="confirm-question")
            with Horizontal(id="confirm-buttons"):
                yield Button("Yes (y)", id="confirm-yes", variant="success")
                yield Button("No (n)", id="confirm-no", variant="default")

    def on_mount(self) -> None:
        self.call_after_refresh(lambda: self.query_one("#confirm-yes", Button).focus())

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm-yes")

    def action_answer(self, answer: bool) -> None:
        self.dismiss(answer)
