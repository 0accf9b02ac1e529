from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .CloudResourceRef import CloudResourceRef


class Outcome(str, Enum):
    SKIPPED = "skipped"
    TAGGED = "tagged"
    PARTIAL_FAILURE = "partial_failure"
    FAILED = "failed"


@dataclass(frozen=True)
class ReconcileResult:
    """
    Resultado de uma unidade de trabalho do reconciler, independente do kind.
    """

    kind: str
    name: str
    outcome: Outcome
    reason: str = ""
    ref: Optional[CloudResourceRef] = None
    error: Optional[str] = None
