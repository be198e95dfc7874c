from abc import ABC, abstractmethod
from kpitokens.core.contracts import Event
import json
from pathlib import Path


class EventObserver(ABC):
    @abstractmethod
    def record(self, event: Event):
        pass


class ConsoleEventObserver(EventObserver):
    def record(self, event: Event):
        print(f"[KPI TOKENS EVENT] {event.name} @ {event.emitter}")
        print(event.to_dict()["args"])


class FileEventObserver(EventObserver):
    def __init__(self, path: str = "events.jsonl"):
        self.path = Path(path)

    def record(self, event: Event):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(event.to_dict()) + "\n")
