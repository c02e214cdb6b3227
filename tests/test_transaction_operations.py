import pytest

from aws_coordination_tool.coordination.core.document_operations import DocumentStore
from aws_coordination_tool.coordination.core.transaction_operations import (
    TransactionExecutor,
    create_with_scope,
)
from aws_coordination_tool.coordination.exceptions import (
    CoordinationError,
    TransactionCanceledError,
)


@pytest.fixture
def executor(client):
    return TransactionExecutor(client)


@pytest.fixture
def documents(client):
    return DocumentStore(client)


def test_commit_makes_all_writes_visible(executor, documents):
    def book(scope):
        create_with_scope(scope, "bookings", "b-1", {"slot": "s-1", "user": "u-1"})
        scope.create("payments", "p-1", {"booking": "b-1", "amount": 40})
        return "b-1"

    assert executor.run(book) == "b-1"

    assert documents.get("bookings", "b-1")["slot"] == "s-1"
    assert documents.get("payments", "p-1")["amount"] == 40


def test_error_discards_every_write_and_is_reraised(executor, documents):
    class Declined(Exception):
        pass

    error = Declined("card declined")

    def book(scope):
        scope.create("bookings", "b-1", {"slot": "s-1"})
        scope.create("payments", "p-1", {"amount": 40})
        raise error

    with pytest.raises(Declined) as excinfo:
        executor.run(book)

    assert excinfo.value is error
    assert documents.get("bookings", "b-1") is None
    assert documents.get("payments", "p-1") is None


def test_writes_invisible_until_commit(executor, documents):
    with executor.scope() as scope:
        scope.create("bookings", "b-1", {"slot": "s-1"})
        assert documents.get("bookings", "b-1") is None
        assert len(scope) == 1

    assert documents.get("bookings", "b-1") is not None


def test_conflicting_create_cancels_whole_transaction(executor, documents):
    documents.create("bookings", "b-1", {"slot": "s-1"})

    def book(scope):
        scope.create("payments", "p-1", {"amount": 40})
        scope.create("bookings", "b-1", {"slot": "s-2"})

    with pytest.raises(TransactionCanceledError):
        executor.run(book)

    assert documents.get("payments", "p-1") is None
    assert documents.get("bookings", "b-1")["slot"] == "s-1"


def test_update_increment_and_delete_in_one_scope(executor, documents):
    documents.create("slots", "s-1", {"free": 2, "status": "open"})
    documents.create("holds", "h-1", {"slot": "s-1"})

    with executor.scope() as scope:
        scope.increment("slots", "s-1", "free", by=-1)
        scope.delete("holds", "h-1")
        scope.create("bookings", "b-1", {"slot": "s-1"})

    assert documents.get("slots", "s-1")["free"] == 1
    assert documents.get("holds", "h-1") is None
    assert documents.get("bookings", "b-1") is not None


def test_update_of_missing_document_cancels(executor, documents):
    def work(scope):
        scope.create("bookings", "b-1", {"slot": "s-1"})
        scope.update("slots", "missing", {"status": "taken"})

    with pytest.raises(TransactionCanceledError):
        executor.run(work)

    assert documents.get("bookings", "b-1") is None


def test_scope_is_closed_after_exit(executor):
    with executor.scope() as scope:
        pass

    assert scope.closed
    with pytest.raises(CoordinationError):
        scope.create("bookings", "b-1", {"n": 1})


def test_scope_is_closed_after_error(executor):
    with pytest.raises(ValueError):
        with executor.scope() as scope:
            raise ValueError("bad input")

    assert scope.closed
    assert len(scope) == 0


def test_same_item_twice_rejected(executor):
    with pytest.raises(CoordinationError):
        with executor.scope() as scope:
            scope.create("bookings", "b-1", {"n": 1})
            scope.delete("bookings", "b-1")


def test_operation_limit(executor):
    with pytest.raises(CoordinationError):
        with executor.scope() as scope:
            for i in range(101):
                scope.create("bookings", f"b-{i}", {"n": 1})


def test_empty_scope_commits(executor):
    assert executor.run(lambda scope: 42) == 42
