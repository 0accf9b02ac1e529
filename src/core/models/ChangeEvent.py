from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class EventType(str, Enum):
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"


@dataclass(frozen=True)
class ChangeEvent:
    type: EventType
    new: Any
    old: Optional[Any] = None
