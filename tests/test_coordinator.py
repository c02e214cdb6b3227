from aws_coordination_tool.coordination import CoordinationConfig, Coordinator

TABLE = "coordination-test"
REGION = "us-east-1"


def test_components_share_one_client(dynamodb):
    config = CoordinationConfig(table_name=TABLE, region=REGION, quota_fail_open=True)

    coordinator = Coordinator.from_config(config)

    assert coordinator.cache.client is coordinator.client
    assert coordinator.quotas.client is coordinator.client
    assert coordinator.locks.fail_open is True
    assert coordinator.quotas.fail_open is True


def test_lock_then_quota_then_transaction(dynamodb):
    coordinator = Coordinator.from_config(CoordinationConfig(table_name=TABLE, region=REGION))

    def book():
        with coordinator.locks.hold("booking:slot-1", ttl=30):
            decision = coordinator.quotas.check_and_increment("user-1", "booking", limit=2)
            if not decision.allowed:
                return {"status": "quota"}
            coordinator.transactions.run(
                lambda scope: scope.create("bookings", "slot-1", {"user": "user-1"})
            )
            return {"status": "booked", "usage": decision.current_usage}

    first = coordinator.idempotency.run("req-1", book)
    replay = coordinator.idempotency.run("req-1", book)

    assert first == replay == {"status": "booked", "usage": 1}
    assert coordinator.quotas.get_usage("user-1", "booking").count == 1
    assert coordinator.documents.get("bookings", "slot-1")["user"] == "user-1"
