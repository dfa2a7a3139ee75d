"""Exceptions raised by the playback, library and persistence services."""


class PlayerError(Exception):
    """Base exception for vimplay."""
    pass


class EngineError(PlayerError):
    """The playback engine rejected a request (e.g. nothing loaded)."""
    pass


class LibraryError(PlayerError):
    """Filesystem scan or metadata read failed."""
    pass


class PersistenceError(PlayerError):
    """Reading or writing stored config or playlists failed."""
    pass
