"""
Usage quota operations.

check_and_increment is a single conditional UpdateItem: the counter is
incremented only while it is below the limit, and DynamoDB applies
single-item updates atomically, so no lock is needed and no more than
``limit`` calls are ever accepted.

The limit travels with every call and is not enforced from storage. Callers
passing different limits for the same subject and feature get whatever each
call's own limit allows; ``last_limit`` is kept only for inspection.
"""

from typing import Any

from boto3.dynamodb.conditions import Key

from ..constants import ATTR_COUNT, ATTR_PK, ATTR_SK, ATTR_TYPE, PREFIX_FEATURE
from ..exceptions import BackendUnavailableError, ConditionFailedError, QuotaExceededError
from ..keys import usage_key, usage_partition
from ..logging_config import get_logger
from ..models import ItemType, QuotaDecision, UsageCounter
from ..utils import epoch_now, format_key, from_dynamo
from .client import DynamoDBClient

logger = get_logger(__name__)

REASON_LIMIT_REACHED = "Usage limit exceeded"
REASON_UNAVAILABLE = "Quota backend unavailable, allowed by fail-open policy"


class QuotaGuard:
    """Atomic check-ceiling-then-increment against persisted usage counters."""

    def __init__(self, client: DynamoDBClient, fail_open: bool = False):
        """
        Args:
            client: DynamoDB client
            fail_open: Allow calls when the backend is unreachable instead of
                propagating the error
        """
        self.client = client
        self.fail_open = fail_open

    def check_and_increment(self, subject_id: str, feature_id: str, limit: int) -> QuotaDecision:
        """
        Increment the usage counter if it is below ``limit``.

        The counter is created on first use.

        Args:
            subject_id: Who is consuming the quota
            feature_id: Which feature is being consumed
            limit: Ceiling for this call

        Returns:
            QuotaDecision; ``allowed`` is False when the ceiling is reached

        Raises:
            BackendUnavailableError: Backend unreachable and fail_open disabled
            CoordinationError: Throttling or table errors, regardless of fail_open
        """
        if limit <= 0:
            return QuotaDecision(allowed=False, limit=limit, reason=REASON_LIMIT_REACHED)

        pk, sk = usage_key(subject_id, feature_id)
        now = epoch_now()

        try:
            response = self.client.update_item(
                key={ATTR_PK: pk, ATTR_SK: sk},
                update_expression=(
                    "ADD #count :one "
                    "SET #type = :type, subject_id = :subject, feature_id = :feature, "
                    "last_used_at = :now, updated_at = :now, last_limit = :limit, "
                    "created_at = if_not_exists(created_at, :now)"
                ),
                expression_attribute_names={"#count": ATTR_COUNT, "#type": ATTR_TYPE},
                expression_attribute_values={
                    ":one": 1,
                    ":limit": limit,
                    ":now": now,
                    ":type": ItemType.USAGE.value,
                    ":subject": subject_id,
                    ":feature": feature_id,
                },
                condition_expression="attribute_not_exists(PK) OR #count < :limit",
                return_values="ALL_NEW",
            )
        except ConditionFailedError:
            logger.info(f"Quota reached for {subject_id}/{feature_id} (limit {limit})")
            return QuotaDecision(allowed=False, limit=limit, reason=REASON_LIMIT_REACHED)
        except BackendUnavailableError as e:
            if not self.fail_open:
                raise
            logger.warning(f"Quota check for {subject_id}/{feature_id} failed open: {e}")
            return QuotaDecision(allowed=True, limit=limit, reason=REASON_UNAVAILABLE)

        count = int(response["Attributes"][ATTR_COUNT])
        return QuotaDecision(allowed=True, limit=limit, current_usage=count)

    def require(self, subject_id: str, feature_id: str, limit: int) -> QuotaDecision:
        """
        Like check_and_increment, but raise when the ceiling is reached.

        Raises:
            QuotaExceededError: If the call was not allowed
        """
        decision = self.check_and_increment(subject_id, feature_id, limit)
        if not decision.allowed:
            raise QuotaExceededError(
                f"Usage limit of {limit} reached for feature '{feature_id}'",
                subject_id,
                feature_id,
                limit,
            )
        return decision

    def get_usage(self, subject_id: str, feature_id: str) -> UsageCounter | None:
        """Read the counter for one subject and feature, None if never used."""
        pk, sk = usage_key(subject_id, feature_id)
        item = self.client.get_item({ATTR_PK: pk, ATTR_SK: sk})
        return None if item is None else _to_counter(item)

    def usage_history(self, subject_id: str, limit: int | None = None) -> list[UsageCounter]:
        """
        All counters of a subject, most recently used first.

        Args:
            subject_id: Subject to list
            limit: Maximum number of counters to return
        """
        pk = usage_partition(subject_id)
        prefix = format_key(PREFIX_FEATURE, "")
        items = self.client.query(Key(ATTR_PK).eq(pk) & Key(ATTR_SK).begins_with(prefix))
        counters = sorted(
            (_to_counter(item) for item in items),
            key=lambda c: c.last_used_at or 0,
            reverse=True,
        )
        return counters[:limit] if limit else counters

    def reset_usage(self, subject_id: str, feature_id: str | None = None) -> int:
        """
        Reset counters to zero.

        Args:
            subject_id: Subject whose counters are reset
            feature_id: Only this feature (default: every feature of the subject)

        Returns:
            Number of counters reset
        """
        if feature_id is None:
            features = [c.feature_id for c in self.usage_history(subject_id)]
        else:
            features = [feature_id]

        reset = 0
        for feature in features:
            pk, sk = usage_key(subject_id, feature)
            try:
                self.client.update_item(
                    key={ATTR_PK: pk, ATTR_SK: sk},
                    update_expression="SET #count = :zero, updated_at = :now",
                    expression_attribute_names={"#count": ATTR_COUNT},
                    expression_attribute_values={":zero": 0, ":now": epoch_now()},
                    condition_expression="attribute_exists(PK)",
                )
                reset += 1
            except ConditionFailedError:
                continue
        logger.info(f"Reset {reset} usage counter(s) for {subject_id}")
        return reset


def _to_counter(item: dict[str, Any]) -> UsageCounter:
    item = from_dynamo(item)
    return UsageCounter(
        subject_id=item["subject_id"],
        feature_id=item["feature_id"],
        count=item.get(ATTR_COUNT, 0),
        last_used_at=item.get("last_used_at"),
        created_at=item.get("created_at", 0),
        updated_at=item.get("updated_at", 0),
        metadata={"last_limit": item.get("last_limit")},
    )
