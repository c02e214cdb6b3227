import json

import pytest
from click.testing import CliRunner

from aws_coordination_tool.cli import main
from aws_coordination_tool.coordination.core.cache import CacheFacade
from aws_coordination_tool.coordination.core.idempotency_operations import IdempotencyStore


@pytest.fixture
def run(dynamodb):
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(main, ["coord", *args])

    return invoke


def test_lock_commands(run):
    acquired = run("lock-acquire", "booking:123", "--ttl", "30")
    assert acquired.exit_code == 0
    token = json.loads(acquired.output)["token"]

    assert run("lock-acquire", "booking:123").exit_code == 4
    assert run("lock-check", "booking:123").exit_code == 0
    assert run("lock-extend", "booking:123", "--token", token, "--ttl", "60").exit_code == 0
    assert run("lock-release", "booking:123", "--token", "stale").exit_code == 2
    assert run("lock-release", "booking:123", "--token", token).exit_code == 0
    assert run("lock-check", "booking:123").exit_code == 1


def test_lock_acquire_text_prints_token(run):
    result = run("lock-acquire", "deploy", "--text")

    assert result.exit_code == 0
    assert run("lock-release", "deploy", "--token", result.output.strip()).exit_code == 0


def test_quota_commands(run):
    first = run("quota-check", "user-42", "export", "--limit", "2")
    assert json.loads(first.output) == {
        "allowed": True,
        "limit": 2,
        "current_usage": 1,
        "reason": None,
    }
    assert run("quota-check", "user-42", "export", "--limit", "2").exit_code == 0
    assert run("quota-check", "user-42", "export", "--limit", "2").exit_code == 5

    usage = run("quota-usage", "user-42")
    assert json.loads(usage.output)["usage"][0]["count"] == 2

    reset = run("quota-reset", "user-42")
    assert json.loads(reset.output) == {"subject_id": "user-42", "reset": 1}
    assert run("quota-check", "user-42", "export", "--limit", "2").exit_code == 0


def test_quota_usage_unknown_subject(run):
    assert run("quota-usage", "nobody").exit_code == 1


def test_cache_commands(run):
    assert run("cache-set", "score:42", "7", "--ttl", "60").exit_code == 0

    result = run("cache-get", "score:42")
    assert json.loads(result.output)["value"] == "7"

    assert run("cache-delete", "score:42").exit_code == 0
    assert run("cache-get", "score:42").exit_code == 1


def test_idempotency_get_missing(run):
    assert run("idempotency-get", "tok-1").exit_code == 1


def test_create_existing_table_fails(run):
    assert run("create-table").exit_code == 1


def test_drop_table_requires_approval(run):
    assert run("drop-table").exit_code == 2
    assert run("drop-table", "--approve").exit_code == 0


def test_idempotency_get_returns_stored_none(run, client):
    IdempotencyStore(CacheFacade(client)).store("tok-none", None)

    result = run("idempotency-get", "tok-none")

    assert result.exit_code == 0
    assert json.loads(result.output) == {"token": "tok-none", "result": None}


def test_empty_names_are_usage_errors(run):
    assert run("lock-acquire", "").exit_code == 2
    assert run("cache-get", "").exit_code == 2
    assert run("idempotency-get", "").exit_code == 2


def test_malformed_environment_is_usage_error(run, monkeypatch):
    monkeypatch.setenv("COORD_LOCK_TTL", "soon")

    result = run("lock-acquire", "booking:1")

    assert result.exit_code == 2
    assert not isinstance(result.exception, ValueError)
