from .errors import PlayerError, EngineError, LibraryError, PersistenceError
from .persistence import PersistenceStore

__all__ = [
    'PlayerError',
    'EngineError',
    'LibraryError',
    'PersistenceError',
    'PersistenceStore',
]
