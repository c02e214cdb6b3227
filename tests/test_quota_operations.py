import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from aws_coordination_tool.coordination.core.client import DynamoDBClient
from aws_coordination_tool.coordination.core.quota_operations import QuotaGuard
from aws_coordination_tool.coordination.exceptions import (
    AWSThrottlingError,
    BackendUnavailableError,
    QuotaExceededError,
)

REGION = "us-east-1"


@pytest.fixture
def quotas(client):
    return QuotaGuard(client)


def test_export_scenario(quotas):
    decisions = [quotas.check_and_increment("user-42", "export", limit=3) for _ in range(4)]

    assert [d.allowed for d in decisions] == [True, True, True, False]
    assert [d.current_usage for d in decisions[:3]] == [1, 2, 3]
    assert decisions[3].current_usage is None
    assert decisions[3].reason == "Usage limit exceeded"


def test_exactly_limit_calls_accepted(quotas):
    decisions = [quotas.check_and_increment("user-1", "ai", limit=4) for _ in range(10)]

    assert sum(d.allowed for d in decisions) == 4
    assert quotas.get_usage("user-1", "ai").count == 4


def test_rejection_does_not_mutate_counter(quotas):
    for _ in range(3):
        quotas.check_and_increment("user-1", "ai", limit=2)

    counter = quotas.get_usage("user-1", "ai")

    assert counter.count == 2
    assert counter.metadata["last_limit"] == 2


def test_counters_are_independent_per_subject_and_feature(quotas):
    quotas.check_and_increment("user-1", "export", limit=1)

    assert quotas.check_and_increment("user-1", "import", limit=1).allowed is True
    assert quotas.check_and_increment("user-2", "export", limit=1).allowed is True
    assert quotas.check_and_increment("user-1", "export", limit=1).allowed is False


def test_non_positive_limit_never_allows(quotas):
    assert quotas.check_and_increment("user-1", "export", limit=0).allowed is False
    assert quotas.get_usage("user-1", "export") is None


def test_raising_the_limit_allows_more(quotas):
    quotas.check_and_increment("user-1", "export", limit=1)

    assert quotas.check_and_increment("user-1", "export", limit=1).allowed is False
    assert quotas.check_and_increment("user-1", "export", limit=2).current_usage == 2


def test_require_raises_when_exhausted(quotas):
    quotas.require("user-1", "export", limit=1)

    with pytest.raises(QuotaExceededError) as excinfo:
        quotas.require("user-1", "export", limit=1)
    assert excinfo.value.limit == 1
    assert excinfo.value.feature_id == "export"


def test_usage_history_and_reset(quotas):
    quotas.check_and_increment("user-1", "export", limit=5)
    quotas.check_and_increment("user-1", "export", limit=5)
    quotas.check_and_increment("user-1", "import", limit=5)
    quotas.check_and_increment("user-2", "export", limit=5)

    history = {c.feature_id: c.count for c in quotas.usage_history("user-1")}
    assert history == {"export": 2, "import": 1}

    assert quotas.reset_usage("user-1", "export") == 1
    assert quotas.get_usage("user-1", "export").count == 0
    assert quotas.reset_usage("user-1") == 2
    assert quotas.get_usage("user-2", "export").count == 1


def test_reset_unknown_counter_is_noop(quotas):
    assert quotas.reset_usage("user-9", "export") == 0
    assert quotas.get_usage("user-9", "export") is None


def test_single_conditional_update_per_check():
    client = MagicMock()
    client.update_item.return_value = {"Attributes": {"count": 1}}

    QuotaGuard(client).check_and_increment("user-1", "export", limit=3)

    client.update_item.assert_called_once()
    kwargs = client.update_item.call_args.kwargs
    assert kwargs["condition_expression"] == "attribute_not_exists(PK) OR #count < :limit"
    assert kwargs["expression_attribute_values"][":limit"] == 3


def test_backend_errors_propagate_by_default():
    client = MagicMock()
    client.update_item.side_effect = BackendUnavailableError("down")

    with pytest.raises(BackendUnavailableError):
        QuotaGuard(client).check_and_increment("user-1", "export", limit=3)


def test_fail_open_allows_when_backend_down():
    client = MagicMock()
    client.update_item.side_effect = BackendUnavailableError("down")

    decision = QuotaGuard(client, fail_open=True).check_and_increment("user-1", "export", limit=3)

    assert decision.allowed is True
    assert decision.current_usage is None


def test_concurrent_checks_accept_exactly_the_limit(client):
    guards = [QuotaGuard(DynamoDBClient(client.table_name, region=REGION)) for _ in range(12)]
    barrier = threading.Barrier(len(guards), timeout=10)

    def attempt(guard):
        barrier.wait()
        return guard.check_and_increment("user-7", "export", limit=3)

    with ThreadPoolExecutor(max_workers=len(guards)) as pool:
        decisions = list(pool.map(attempt, guards))

    assert sum(d.allowed for d in decisions) == 3
    assert sorted(d.current_usage for d in decisions if d.allowed) == [1, 2, 3]
    assert guards[0].get_usage("user-7", "export").count == 3


def test_throttling_is_not_failed_open():
    client = MagicMock()
    client.update_item.side_effect = AWSThrottlingError("throttled")

    with pytest.raises(AWSThrottlingError):
        QuotaGuard(client, fail_open=True).check_and_increment("user-1", "export", limit=3)
