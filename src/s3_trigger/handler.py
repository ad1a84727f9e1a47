# src/s3_trigger/handler.py
import logging, urllib.parse
from typing import Callable, Optional, Tuple

from botocore.exceptions import BotoCoreError

from ddbload.config import LoaderConfig
from ddbload.errors import EventError, LoaderError
from ddbload.process import Pipeline
from ddbload.report import RunReport

logger = logging.getLogger()

_pipeline: Optional[Pipeline] = None


def get_pipeline() -> Pipeline:
    # built once per container so warm invocations reuse the boto3 clients
    global _pipeline
    if _pipeline is None:
        config = LoaderConfig.from_env()
        logger.setLevel(config.log_level)
        _pipeline = Pipeline(config)
    return _pipeline


def source_from_event(event) -> Tuple[str, str]:
    try:
        rec = event["Records"][0]
        bucket = rec["s3"]["bucket"]["name"]
        raw_key = rec["s3"]["object"]["key"]
    except (KeyError, IndexError, TypeError) as e:
        raise EventError(f"Unsupported event shape, missing {e}") from e
    if not isinstance(bucket, str) or not isinstance(raw_key, str):
        raise EventError("Event bucket name and object key must be strings")
    key = urllib.parse.unquote_plus(raw_key)
    if not bucket or not key:
        raise EventError("Event does not name a bucket and key")
    return bucket, key


def _deadline(context, margin_ms: int) -> Optional[Callable[[], bool]]:
    remaining = getattr(context, "get_remaining_time_in_millis", None)
    if remaining is None:
        return None
    return lambda: remaining() < margin_ms


def handler(event, context):
    try:
        bucket, key = source_from_event(event)
        pipeline = get_pipeline()
    except (LoaderError, BotoCoreError) as e:
        logger.error("Rejected invocation: %s", e)
        report = RunReport()
        report.fail(str(e))
        return report.to_dict()

    logger.info("S3 event received: %s/%s", bucket, key)
    report = pipeline.load_object(bucket, key, should_stop=_deadline(context, pipeline.config.stop_margin_ms))
    return report.to_dict()
