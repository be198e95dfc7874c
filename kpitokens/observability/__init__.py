from .hooks import ConsoleEventObserver, EventObserver, FileEventObserver
from .factory import build_observers

__all__ = [
    "EventObserver",
    "ConsoleEventObserver",
    "FileEventObserver",
    "build_observers",
]
