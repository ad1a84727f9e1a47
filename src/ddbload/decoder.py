# src/ddbload/decoder.py
import json, zlib
from collections.abc import Mapping
from decimal import Decimal, DecimalException
from typing import Any, BinaryIO, Dict, Iterator, Optional, Tuple, Union

from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import BotoCoreError

from .errors import DecodeError, SourceError

_serializer = TypeSerializer()

# single-key type descriptors DynamoDB JSON may carry
_ATTRIBUTE_TYPES = frozenset({"S", "N", "B", "BOOL", "NULL", "M", "L", "SS", "NS", "BS"})


def decode_line(line: Union[str, bytes], payload_key: str = "Item", line_number: Optional[int] = None) -> Dict[str, Any]:
    try:
        wrapper = json.loads(line, parse_float=Decimal)
    except ValueError as e:
        raise DecodeError(f"invalid JSON: {e}", line_number) from e
    if not isinstance(wrapper, dict):
        raise DecodeError(f"expected a JSON object, got {type(wrapper).__name__}", line_number)
    if payload_key not in wrapper:
        raise DecodeError(f"missing payload key {payload_key!r}", line_number)
    record = wrapper[payload_key]
    if not isinstance(record, dict):
        raise DecodeError(f"payload {payload_key!r} is not an object", line_number)
    return record


def _normalize(value: Any) -> Any:
    # TypeSerializer refuses floats; route them through their repr
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, Mapping):
        return {k: _normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    return value


def to_attribute_value(value: Any) -> Dict[str, Any]:
    """Convert one JSON value to DynamoDB's typed attribute encoding.

    null -> NULL, bool -> BOOL, number -> N, string -> S,
    object -> M, array -> L (recursively). Anything else is rejected.
    """
    try:
        return _serializer.serialize(_normalize(value))
    except (TypeError, DecimalException) as e:
        raise DecodeError(f"unsupported value {value!r}: {e}") from e


def to_item(record: Mapping[str, Any], line_number: Optional[int] = None) -> Dict[str, Any]:
    try:
        return {name: to_attribute_value(value) for name, value in record.items()}
    except DecodeError as e:
        if line_number is None:
            raise
        raise DecodeError(str(e), line_number) from e


def check_typed_item(record: Mapping[str, Any], line_number: Optional[int] = None) -> Dict[str, Any]:
    """Validate a record that is already in DynamoDB JSON and return it unchanged."""
    for name, descriptor in record.items():
        if not (isinstance(descriptor, dict) and len(descriptor) == 1 and next(iter(descriptor)) in _ATTRIBUTE_TYPES):
            raise DecodeError(f"attribute {name!r} is not a DynamoDB type descriptor", line_number)
    return dict(record)


def to_put_request(item: Dict[str, Any]) -> Dict[str, Any]:
    return {"PutRequest": {"Item": item}}


class LineReader:
    """Iterates the non-blank lines of a binary stream as (line_number, raw bytes).

    Owns the stream: closing the reader closes it.
    """

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.bytes_read = 0

    def __iter__(self) -> Iterator[Tuple[int, bytes]]:
        line_number = 0
        try:
            for raw in self.stream:
                line_number += 1
                self.bytes_read += len(raw)
                if raw.strip():
                    yield line_number, raw
        except (OSError, EOFError, zlib.error, BotoCoreError) as e:
            raise SourceError(f"failed reading source after line {line_number}: {e}") from e

    def close(self) -> None:
        self.stream.close()

    def __enter__(self) -> "LineReader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
