from core.models import Outcome
from core.state import (
    ANNOTATION_KEY,
    PartialFailureLedger,
    TagState,
    needs_tagging,
    observe_state,
    retries_on_any_event,
    transition,
)


def test_observe_state_only_exact_sentinel_means_tagged():
    assert observe_state({ANNOTATION_KEY: "true"}) is TagState.TAGGED
    assert observe_state({ANNOTATION_KEY: "True"}) is TagState.UNTAGGED
    assert observe_state({ANNOTATION_KEY: "false"}) is TagState.UNTAGGED
    assert observe_state({}) is TagState.UNTAGGED


def test_observe_state_uses_recorded_retry_state():
    assert observe_state({}, TagState.PARTIAL_FAILURE) is TagState.PARTIAL_FAILURE
    assert observe_state({}, TagState.RETRY_PENDING) is TagState.RETRY_PENDING
    # a anotação sempre vence
    assert observe_state({ANNOTATION_KEY: "true"}, TagState.PARTIAL_FAILURE) is TagState.TAGGED


def test_transitions():
    assert transition(TagState.UNTAGGED, Outcome.TAGGED) is TagState.TAGGED
    assert transition(TagState.UNTAGGED, Outcome.PARTIAL_FAILURE) is TagState.PARTIAL_FAILURE
    assert transition(TagState.UNTAGGED, Outcome.FAILED) is TagState.UNTAGGED
    assert transition(TagState.UNTAGGED, Outcome.SKIPPED) is TagState.UNTAGGED
    assert transition(TagState.PARTIAL_FAILURE, Outcome.TAGGED) is TagState.TAGGED
    assert transition(TagState.PARTIAL_FAILURE, Outcome.FAILED) is TagState.PARTIAL_FAILURE
    assert transition(TagState.TAGGED, Outcome.FAILED) is TagState.TAGGED


def test_cloud_failures_become_retry_pending():
    assert transition(TagState.UNTAGGED, Outcome.FAILED, retryable=True) is TagState.RETRY_PENDING
    assert transition(TagState.RETRY_PENDING, Outcome.FAILED, retryable=True) is TagState.RETRY_PENDING
    assert transition(TagState.RETRY_PENDING, Outcome.TAGGED) is TagState.TAGGED
    assert transition(TagState.PARTIAL_FAILURE, Outcome.FAILED, retryable=True) is TagState.PARTIAL_FAILURE


def test_needs_tagging():
    assert needs_tagging(TagState.UNTAGGED)
    assert needs_tagging(TagState.PARTIAL_FAILURE)
    assert needs_tagging(TagState.RETRY_PENDING)
    assert not needs_tagging(TagState.TAGGED)


def test_retries_on_any_event():
    assert retries_on_any_event(TagState.PARTIAL_FAILURE)
    assert retries_on_any_event(TagState.RETRY_PENDING)
    assert not retries_on_any_event(TagState.UNTAGGED)
    assert not retries_on_any_event(TagState.TAGGED)


def test_ledger_records_and_clears():
    ledger = PartialFailureLedger()
    ledger.record("n1", TagState.PARTIAL_FAILURE)
    assert "n1" in ledger
    assert ledger.get("n1") is TagState.PARTIAL_FAILURE

    ledger.record("n1", TagState.TAGGED)
    assert "n1" not in ledger
    assert ledger.get("n1") is None

    ledger.record("n2", TagState.RETRY_PENDING)
    ledger.record("n3", TagState.PARTIAL_FAILURE)
    assert ledger.pending() == ["n2", "n3"]

    ledger.forget("n2")
    assert "n2" not in ledger
