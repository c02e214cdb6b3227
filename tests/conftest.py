"""Shared fixtures: an in-process DynamoDB table (moto) and a controllable clock."""

import pytest
from moto import mock_aws

from aws_coordination_tool.coordination.core.cache import CacheFacade
from aws_coordination_tool.coordination.core.client import DynamoDBClient
from aws_coordination_tool.coordination.core.table_operations import create_table

TABLE = "coordination-test"
REGION = "us-east-1"


class FakeClock:
    """Epoch-seconds clock that only moves when told to."""

    def __init__(self, now: int = 1_700_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def aws_environment(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)
    monkeypatch.setenv("AWS_REGION", REGION)
    monkeypatch.setenv("COORD_TABLE", TABLE)
    unset = ("AWS_PROFILE", "COORD_ENDPOINT_URL", "COORD_LOCK_FAIL_OPEN", "COORD_QUOTA_FAIL_OPEN")
    for name in unset:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def dynamodb():
    with mock_aws():
        create_table(TABLE, region=REGION)
        yield


@pytest.fixture
def client(dynamodb):
    return DynamoDBClient(TABLE, region=REGION)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(client, clock):
    return CacheFacade(client, clock=clock)
