from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

from models.app_state import AppState

logger = logging.getLogger(__name__)


class Presenter(Protocol):
    """What the core needs from the UI."""

    def show_status(self, message: str) -> None:
        ...

    def refresh(self) -> None:
        ...

    def scroll_to_selection(self) -> None:
        ...

    def prompt(self, title: str, on_submit: Callable[[str], Any], initial: str = "") -> None:
        ...

    def confirm(self, question: str, on_answer: Callable[[bool], Any]) -> None:
        ...

    def toggle_help(self) -> None:
        ...

    def quit(self) -> None:
        ...


class Component:
    """Shared plumbing for core components: state, presenter and status messages."""

    def __init__(self, state: AppState, presenter: Presenter):
        self.state = state
        self.presenter = presenter

    def status(self, message: str) -> None:
        self.state.status = message
        self.presenter.show_status(message)


def plural(count: int, word: str) -> str:
    """'1 track', '3 tracks'."""
    return f"{count} {word}{'' if count == 1 else 's'}"
