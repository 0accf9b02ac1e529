"""
Modelo explícito de estado de tagging, compartilhado por todos os reconcilers.

    UNTAGGED --TAGGED--> TAGGED
    UNTAGGED --PARTIAL_FAILURE--> PARTIAL_FAILURE --TAGGED--> TAGGED
    UNTAGGED --FAILED (erro da AWS)--> RETRY_PENDING --TAGGED--> TAGGED

TAGGED é terminal: só a anotação define esse estado. PARTIAL_FAILURE e
RETRY_PENDING tornam qualquer evento elegível (inclusive o resync).
"""
import threading
from enum import Enum
from typing import Dict, List, Mapping, Optional

from .models import Outcome

ANNOTATION_KEY = "aws-node-retag.io/tagged"
ANNOTATION_VALUE = "true"


class TagState(str, Enum):
    UNTAGGED = "untagged"
    TAGGED = "tagged"
    PARTIAL_FAILURE = "partial_failure"
    RETRY_PENDING = "retry_pending"


RETRY_STATES = (TagState.PARTIAL_FAILURE, TagState.RETRY_PENDING)


def is_annotated(annotations: Mapping[str, str]) -> bool:
    return annotations.get(ANNOTATION_KEY) == ANNOTATION_VALUE


def observe_state(annotations: Mapping[str, str], recorded: Optional[TagState] = None) -> TagState:
    if is_annotated(annotations):
        return TagState.TAGGED
    if recorded in RETRY_STATES:
        return recorded
    return TagState.UNTAGGED


def transition(state: TagState, outcome: Outcome, retryable: bool = False) -> TagState:
    if state is TagState.TAGGED:
        return state
    if outcome is Outcome.TAGGED:
        return TagState.TAGGED
    if outcome is Outcome.PARTIAL_FAILURE:
        return TagState.PARTIAL_FAILURE
    if outcome is Outcome.FAILED and retryable:
        # PARTIAL_FAILURE já tem as tags aplicadas; só falta a anotação
        if state is TagState.PARTIAL_FAILURE:
            return state
        return TagState.RETRY_PENDING
    return state


def needs_tagging(state: TagState) -> bool:
    return state is not TagState.TAGGED


def retries_on_any_event(state: TagState) -> bool:
    return state in RETRY_STATES


class PartialFailureLedger:
    """
    Recursos que ficaram devendo: taggeados na AWS mas sem anotação
    (PARTIAL_FAILURE), ou cuja chamada à AWS falhou (RETRY_PENDING).

    Vive só em memória: após um restart, o recurso volta a UNTAGGED e a
    observação inicial re-aplica as tags (idempotente).
    """

    def __init__(self) -> None:
        self._states: Dict[str, TagState] = {}
        self._lock = threading.Lock()

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._states

    def get(self, name: str) -> Optional[TagState]:
        with self._lock:
            return self._states.get(name)

    def pending(self) -> List[str]:
        with self._lock:
            return sorted(self._states)

    def record(self, name: str, state: TagState) -> None:
        with self._lock:
            if state in RETRY_STATES:
                self._states[name] = state
            else:
                self._states.pop(name, None)

    def forget(self, name: str) -> None:
        with self._lock:
            self._states.pop(name, None)
