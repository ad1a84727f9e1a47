"""Test helpers: in-memory S3 and DynamoDB doubles plus gzip export builders.

Nothing here talks to AWS.
"""

from __future__ import annotations

import copy
import gzip
import io
import json
from collections import defaultdict
from typing import Any

from botocore.exceptions import ClientError

TABLE = "exports"

# =============================================================================
# Test Doubles
# =============================================================================


class TrackingBody(io.BytesIO):
    """S3 StreamingBody stand-in that remembers it was closed."""

    def close(self) -> None:
        self.was_closed = True
        super().close()


class FakeS3:
    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self.bodies: list[TrackingBody] = []

    def put(self, bucket: str, key: str, data: bytes) -> None:
        self.objects[(bucket, key)] = data

    def get_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        if (Bucket, Key) not in self.objects:
            raise ClientError(
                {"Error": {"Code": "NoSuchKey", "Message": "The specified key does not exist."}},
                "GetObject",
            )
        data = self.objects[(Bucket, Key)]
        body = TrackingBody(data)
        body.was_closed = False
        self.bodies.append(body)
        return {"Body": body, "ContentLength": len(data)}


class FakeDynamoDB:
    """BatchWriteItem double with a scriptable rejection plan.

    ``rejections[i]`` is how many items call ``i`` hands back as unprocessed;
    calls past the end of the plan accept everything. ``errors`` maps a call
    index to an exception raised instead of answering.
    """

    def __init__(self, rejections: list[int] | None = None, errors: dict[int, Exception] | None = None) -> None:
        self.rejections = list(rejections or [])
        self.errors = dict(errors or {})
        self.calls: list[dict[str, list[dict[str, Any]]]] = []
        self.accepted: dict[str, list[dict[str, Any]]] = defaultdict(list)

    def batch_write_item(self, RequestItems: dict[str, list[dict[str, Any]]]) -> dict[str, Any]:
        index = len(self.calls)
        self.calls.append(copy.deepcopy(RequestItems))
        if index in self.errors:
            raise self.errors[index]
        reject = self.rejections[index] if index < len(self.rejections) else 0
        unprocessed: dict[str, list[dict[str, Any]]] = {}
        for table, requests in RequestItems.items():
            k = min(reject, len(requests))
            reject -= k
            kept, rejected = requests[: len(requests) - k], requests[len(requests) - k :]
            self.accepted[table].extend(copy.deepcopy(kept))
            if rejected:
                # order of the remainder is not the submission order
                unprocessed[table] = list(reversed(rejected))
        return {"UnprocessedItems": unprocessed}

    def batch_sizes(self) -> list[int]:
        return [sum(len(r) for r in call.values()) for call in self.calls]

    def accepted_ids(self, table: str = TABLE) -> list[str]:
        return [r["PutRequest"]["Item"]["pk"]["S"] for r in self.accepted[table]]


# =============================================================================
# Builders
# =============================================================================


def make_record(i: int) -> dict[str, Any]:
    return {"pk": f"item-{i:05d}", "n": i, "tags": ["a", "b"], "meta": {"ok": True, "note": None}}


def export_lines(records: list[dict[str, Any]], payload_key: str = "Item") -> list[str]:
    return [json.dumps({payload_key: r}) for r in records]


def gzip_lines(lines: list[str], trailing_newline: bool = True) -> bytes:
    text = "\n".join(lines) + ("\n" if trailing_newline and lines else "")
    return gzip.compress(text.encode("utf-8"))

