from unittest.mock import MagicMock

import pytest

from aws_coordination_tool.coordination.core.cache import CacheFacade
from aws_coordination_tool.coordination.core.idempotency_operations import IdempotencyStore
from aws_coordination_tool.coordination.exceptions import (
    AWSThrottlingError,
    BackendUnavailableError,
)


@pytest.fixture
def store(cache):
    return IdempotencyStore(cache)


def test_fetch_unknown_token(store):
    assert store.fetch("tok-1") is None


def test_replay_returns_identical_result(store):
    result = {"booking_id": "b-1", "amount": 12.5, "items": [1, 2]}

    assert store.store("tok-1", result) is True

    assert store.fetch("tok-1") == result
    assert store.fetch("tok-1") == store.fetch("tok-1")


def test_first_completed_write_is_authoritative(store):
    store.store("tok-1", {"n": 1})

    assert store.store("tok-1", {"n": 2}) is False
    assert store.fetch("tok-1") == {"n": 1}


def test_record_expires_after_ttl(cache, clock):
    store = IdempotencyStore(cache, ttl=3600)
    store.store("tok-1", {"n": 1})

    clock.advance(3600)

    assert store.fetch("tok-1") is None


def test_run_executes_operation_once(store):
    calls = []

    def operation():
        calls.append(1)
        return {"charged": len(calls)}

    first = store.run("tok-1", operation)
    second = store.run("tok-1", operation)

    assert first == second == {"charged": 1}
    assert len(calls) == 1


def test_failed_operation_is_not_recorded(store):
    def failing():
        raise RuntimeError("payment declined")

    with pytest.raises(RuntimeError):
        store.run("tok-1", failing)

    assert store.fetch("tok-1") is None
    assert store.run("tok-1", lambda: {"ok": True}) == {"ok": True}


def test_run_returns_winner_when_another_caller_stored_first(store):
    def operation():
        # A concurrent request with the same token finishes first.
        store.store("tok-1", {"winner": "other"})
        return {"winner": "me"}

    assert store.run("tok-1", operation) == {"winner": "other"}


def test_unavailable_cache_degrades_quietly():
    client = MagicMock()
    client.get_item.side_effect = BackendUnavailableError("down")
    client.put_item.side_effect = BackendUnavailableError("down")
    store = IdempotencyStore(CacheFacade(client, clock=lambda: 1_000))

    assert store.fetch("tok-1") is None
    assert store.store("tok-1", {"n": 1}) is False


def test_none_result_is_replayed_not_rerun(store):
    calls = []

    def operation():
        calls.append(1)

    assert store.run("tok-none", operation) is None
    assert store.run("tok-none", operation) is None
    assert len(calls) == 1
    assert store.lookup("tok-none") == (True, None)
    assert store.lookup("tok-unknown") == (False, None)


def test_throttling_is_not_treated_as_unavailability():
    client = MagicMock()
    client.get_item.side_effect = AWSThrottlingError("throttled")
    store = IdempotencyStore(CacheFacade(client, clock=lambda: 1_000))

    with pytest.raises(AWSThrottlingError):
        store.fetch("tok-1")
