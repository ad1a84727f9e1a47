# src/ddbload/writer.py
"""BatchWriteItem execution and draining of UnprocessedItems.

A single write() is one network round trip. drain() keeps resubmitting only
the items DynamoDB handed back as unprocessed, with capped exponential
backoff, until nothing is left or the retry budget runs out:

    DRAINING(remainder) -> DRAINED
                        -> FAILED(RetryExhaustedError | StoreError)
"""
import logging, random, time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from botocore.exceptions import BotoCoreError, ClientError

from .errors import RetryExhaustedError, StoreError, error_code

logger = logging.getLogger(__name__)

RequestItems = Dict[str, List[Dict[str, Any]]]


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 10
    initial_delay_s: float = 0.05
    backoff_multiplier: float = 2.0
    max_delay_s: float = 5.0
    jitter: bool = True

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("RetryPolicy.max_retries must be >= 0")
        if self.initial_delay_s < 0 or self.max_delay_s < 0:
            raise ValueError("RetryPolicy delays must be >= 0")
        if self.backoff_multiplier <= 0:
            raise ValueError("RetryPolicy.backoff_multiplier must be > 0")

    def delay_for(self, retry_index: int) -> float:
        # retry_index starts at 1 for the first resubmission
        base = min(self.max_delay_s, self.initial_delay_s * self.backoff_multiplier ** max(0, retry_index - 1))
        if base <= 0:
            return 0.0
        if not self.jitter:
            return base
        return random.random() * base


def count_items(request_items: RequestItems) -> int:
    return sum(len(requests) for requests in request_items.values())


class BulkWriter:
    def __init__(self, client: Any, policy: RetryPolicy = RetryPolicy(), sleep: Callable[[float], None] = time.sleep):
        self.client = client
        self.policy = policy
        self._sleep = sleep

    def write(self, request_items: RequestItems) -> RequestItems:
        """Issue one BatchWriteItem call and return what DynamoDB did not persist."""
        try:
            resp = self.client.batch_write_item(RequestItems=request_items)
        except (ClientError, BotoCoreError) as e:
            raise StoreError(f"BatchWriteItem failed: {e}", code=error_code(e)) from e
        unprocessed = resp.get("UnprocessedItems") or {}
        # drop tables whose remainder list came back empty
        return {table: requests for table, requests in unprocessed.items() if requests}

    def drain(self, table_name: str, batch: List[Dict[str, Any]]) -> int:
        """Write `batch` and resubmit its remainder until it is empty.

        Returns the number of resubmissions. Raises RetryExhaustedError when
        the remainder is still non-empty after `policy.max_retries` of them.
        """
        remainder = self.write({table_name: list(batch)})
        retries = 0
        while remainder:
            pending = count_items(remainder)
            if retries >= self.policy.max_retries:
                raise RetryExhaustedError(
                    f"{pending} of {len(batch)} items still unprocessed after {retries} retries",
                    unprocessed=pending,
                )
            retries += 1
            delay = self.policy.delay_for(retries)
            logger.warning("Retrying %d unprocessed items (attempt %d, sleeping %.3fs)", pending, retries, delay)
            if delay > 0:
                self._sleep(delay)
            remainder = self.write(remainder)
        return retries
