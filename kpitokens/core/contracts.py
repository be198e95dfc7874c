from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# -------------------------------------------------
# CREATION INPUTS
# -------------------------------------------------
@dataclass(frozen=True)
class Collateral:
    token: str
    amount: int


@dataclass(frozen=True)
class TokenData:
    name: str
    symbol: str
    total_supply: int


@dataclass(frozen=True)
class ScalarBounds:
    """
    Range the oracle answer is mapped over.
    (0, 1) is the boolean KPI case.
    """
    lower_bound: int = 0
    higher_bound: int = 1

    @property
    def is_boolean(self) -> bool:
        return self.lower_bound == 0 and self.higher_bound == 1

    @property
    def range(self) -> int:
        return self.higher_bound - self.lower_bound


# -------------------------------------------------
# EVENTS / RECEIPTS
# -------------------------------------------------
@dataclass(frozen=True)
class Event:
    name: str
    emitter: str
    args: Dict[str, Any]
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "emitter": self.emitter,
            "args": {
                key: value.hex() if isinstance(value, bytes) else value
                for key, value in self.args.items()
            },
            "timestamp": self.timestamp,
        }


@dataclass
class Receipt:
    """Events emitted by one committed top-level transaction."""
    events: List[Event] = field(default_factory=list)

    def find(self, name: str) -> Optional[Event]:
        for event in self.events:
            if event.name == name:
                return event
        return None

    def filter(self, name: str) -> List[Event]:
        return [event for event in self.events if event.name == name]
