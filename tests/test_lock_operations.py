import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from aws_coordination_tool.coordination.core.cache import CacheFacade
from aws_coordination_tool.coordination.core.client import DynamoDBClient
from aws_coordination_tool.coordination.core.lock_operations import LockManager, generate_token
from aws_coordination_tool.coordination.exceptions import (
    AWSPermissionError,
    AWSThrottlingError,
    BackendUnavailableError,
    CacheUnavailableError,
    LockUnavailableError,
    TableNotFoundError,
)

REGION = "us-east-1"


@pytest.fixture
def locks(cache):
    return LockManager(cache)


def test_tokens_are_unique():
    assert len({generate_token() for _ in range(100)}) == 100


def test_booking_scenario(locks):
    lock_a = locks.acquire("booking:123", ttl=30)
    assert lock_a is not None

    assert locks.acquire("booking:123", ttl=30) is None

    assert locks.release("booking:123", lock_a.token) is True
    assert locks.acquire("booking:123", ttl=30) is not None


def test_only_one_of_many_attempts_wins(locks):
    results = [locks.acquire("slot:9", ttl=30) for _ in range(10)]

    assert sum(lock is not None for lock in results) == 1


def test_different_keys_do_not_contend(locks):
    assert locks.acquire("slot:1", ttl=30) is not None
    assert locks.acquire("slot:2", ttl=30) is not None


def test_release_with_wrong_token_keeps_lock(locks):
    lock = locks.acquire("booking:1", ttl=30)

    assert locks.release("booking:1", "not-the-token") is False
    assert locks.check("booking:1")["token"] == lock.token
    assert locks.acquire("booking:1", ttl=30) is None


def test_expired_lock_can_be_taken_and_stale_release_is_noop(locks, clock):
    slow = locks.acquire("booking:1", ttl=30)
    clock.advance(30)

    fast = locks.acquire("booking:1", ttl=30)
    assert fast is not None

    assert locks.release(slow) is False
    assert locks.check("booking:1")["token"] == fast.token


def test_extend_keeps_lock_past_original_ttl(locks, clock):
    lock = locks.acquire("job:1", ttl=30)
    clock.advance(25)

    assert locks.extend(lock, ttl=30) is True
    assert lock.expires_at == clock.now + 30
    clock.advance(25)
    assert locks.acquire("job:1", ttl=30) is None


def test_extend_after_loss_fails(locks, clock):
    lock = locks.acquire("job:1", ttl=30)
    clock.advance(31)

    assert locks.extend(lock, ttl=30) is False


def test_check_reports_free_lock(locks):
    assert locks.check("nothing") is None


def test_hold_releases_on_exit_and_on_error(locks):
    with locks.hold("booking:7", ttl=30):
        assert locks.check("booking:7") is not None
    assert locks.check("booking:7") is None

    with pytest.raises(RuntimeError):
        with locks.hold("booking:7", ttl=30):
            raise RuntimeError("boom")
    assert locks.check("booking:7") is None


def test_hold_raises_when_busy(locks):
    locks.acquire("booking:7", ttl=30)

    with pytest.raises(LockUnavailableError):
        with locks.hold("booking:7", ttl=30):
            pass


def test_rejects_non_positive_ttl(locks):
    with pytest.raises(ValueError):
        locks.acquire("booking:1", ttl=0)


def _unreachable_cache():
    client = MagicMock()
    client.put_item.side_effect = BackendUnavailableError("down")
    client.delete_item.side_effect = BackendUnavailableError("down")
    return CacheFacade(client, clock=lambda: 1_000)


def test_fails_open_when_cache_unreachable():
    locks = LockManager(_unreachable_cache())

    lock = locks.acquire("booking:1", ttl=30)

    assert lock is not None
    assert lock.degraded is True
    assert locks.release(lock) is True


def test_fail_closed_propagates_unavailability():
    locks = LockManager(_unreachable_cache(), fail_open=False)

    with pytest.raises(CacheUnavailableError):
        locks.acquire("booking:1", ttl=30)


def test_release_reports_failure_when_cache_unreachable():
    locks = LockManager(_unreachable_cache())

    assert locks.release("booking:1", "token") is False


@pytest.mark.parametrize(
    "error",
    [AWSThrottlingError("throttled"), TableNotFoundError("no table"), AWSPermissionError("denied")],
)
def test_non_outage_errors_never_grant_a_degraded_lock(error):
    client = MagicMock()
    client.put_item.side_effect = error
    locks = LockManager(CacheFacade(client, clock=lambda: 1_000))

    with pytest.raises(type(error)):
        locks.acquire("booking:1", ttl=30)


def test_concurrent_acquirers_get_exactly_one_lock(client, clock):
    managers = [
        LockManager(CacheFacade(DynamoDBClient(client.table_name, region=REGION), clock=clock))
        for _ in range(12)
    ]
    barrier = threading.Barrier(len(managers), timeout=10)

    def attempt(manager):
        barrier.wait()
        return manager.acquire("booking:concurrent", ttl=30)

    with ThreadPoolExecutor(max_workers=len(managers)) as pool:
        results = list(pool.map(attempt, managers))

    winners = [lock for lock in results if lock is not None]
    assert len(winners) == 1
    assert winners[0].degraded is False
    assert managers[0].check("booking:concurrent")["token"] == winners[0].token
