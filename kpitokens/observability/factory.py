from kpitokens.observability.hooks import (
    ConsoleEventObserver,
    FileEventObserver,
    EventObserver
)

def build_observers(config: dict) -> list[EventObserver]:
    observers = []

    for obs in config.get("observers", []):
        if obs["type"] == "console":
            observers.append(ConsoleEventObserver())

        elif obs["type"] == "file":
            observers.append(
                FileEventObserver(path=obs.get("path", "events.jsonl"))
            )

        else:
            raise ValueError(f"Unknown observer type: {obs['type']!r}")

    return observers
