from __future__ import annotations

import logging
import random
import time
from typing import Callable, Optional

from core.commands import CommandLineInterpreter
from core.dispatcher import KeyDispatcher
from core.filtering import FilterEngine
from core.keybindings import KeyEvent, KeybindingResolver
from core.library import LibraryOperations
from core.navigation import Navigator
from core.playlists import PlaylistOperations
from core.queue import QueueManager
from core.session import PlaybackSession
from core.timers import Scheduler
from models.app_state import AppState
from models.modes import ViewMode
from models.settings import Settings
from services.errors import PersistenceError

logger = logging.getLogger(__name__)


class PlayerController:
    """Owns the application state and wires every core component around it.

    The UI only ever calls `handle_key` and the startup hooks; everything
    else reaches it back through the presenter.
    """

    def __init__(self, presenter, engine, library, store, scheduler: Scheduler,
                 resolver: Optional[KeybindingResolver] = None, state: Optional[AppState] = None,
                 clock: Callable[[], float] = time.time, rng: Optional[random.Random] = None):
        self.state = state or AppState()
        self.presenter = presenter
        self.engine = engine
        self.store = store
        self.resolver = resolver or KeybindingResolver()

        self.navigator = Navigator(self.state, presenter)
        self.filters = FilterEngine(self.state, presenter, self.navigator)
        self.queue = QueueManager(self.state, presenter)
        self.session = PlaybackSession(self.state, presenter, engine, self.queue, scheduler,
                                       play_selected=self.play_selected, clock=clock, rng=rng)
        self.library = LibraryOperations(self.state, presenter, library, store, self.session,
                                         self.queue, self.filters, self.navigator)
        self.playlists = PlaylistOperations(self.state, presenter, store, self.library, self.navigator)
        self.commands = CommandLineInterpreter(self.state, presenter, self.session, self.library,
                                               self.playlists, self.navigator, store)
        self.dispatcher = KeyDispatcher(self.state, presenter, self.resolver, self.navigator, self.filters,
                                        self.session, self.queue, self.library, self.playlists, self.commands)

    @classmethod
    def from_store(cls, presenter, engine, library, store, scheduler: Scheduler) -> "PlayerController":
        """Build a controller with settings and keybindings read from the store."""
        state = AppState()
        try:
            state.settings = Settings.from_dict(store.get_settings())
            resolver = KeybindingResolver.from_config(store.get_keybindings())
        except PersistenceError as e:
            logger.warning(f"Using default settings and keybindings: {e}")
            resolver = KeybindingResolver()
        return cls(presenter, engine, library, store, scheduler, resolver=resolver, state=state)

    def start(self) -> None:
        """Start the progress poll and pick up the engine's initial status."""
        self.session.progress_task.start()
        self.session.refresh_status()

    def shutdown(self) -> None:
        self.session.shutdown()

    def default_folder(self) -> Optional[str]:
        try:
            return self.store.get_default_folder()
        except PersistenceError as e:
            logger.error(f"Failed to read default folder: {e}")
            return None

    def handle_key(self, event: KeyEvent) -> None:
        self.dispatcher.handle(event)

    def play_selected(self) -> None:
        """Play whatever the cursor is on in the active view."""
        view = self.state.view_mode
        if view is ViewMode.FOLDER:
            self.library.activate_folder_item()
        elif view is ViewMode.ARTIST:
            self.library.activate_artist_item()
        elif self.state.playlist:
            self.session.play_track(self.state.selected_index)
