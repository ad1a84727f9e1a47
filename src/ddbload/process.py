# src/ddbload/process.py
import gzip, logging, time
from contextlib import closing
from typing import Any, Callable, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .batcher import Batcher
from .clients import get_dynamodb_client, get_s3_client
from .config import LoaderConfig
from .decoder import LineReader, check_typed_item, decode_line, to_item, to_put_request
from .errors import DecodeError, StoreError, error_code
from .report import READING, RunReport
from .writer import BulkWriter

logger = logging.getLogger(__name__)


class Pipeline:
    """Loads one gzip NDJSON object from S3 into a DynamoDB table.

    Lines are decoded and batched as they stream out of the object; each full
    batch is written and drained before the next line is read.
    """

    def __init__(
        self,
        config: LoaderConfig,
        s3_client: Any = None,
        dynamodb_client: Any = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        if s3_client is None:
            s3_client = get_s3_client(config.region)
        if dynamodb_client is None:
            dynamodb_client = get_dynamodb_client(config.region)
        self.s3 = s3_client
        self.writer = BulkWriter(
            dynamodb_client,
            config.retry_policy(),
            sleep=sleep,
        )

    def load_object(self, bucket: str, key: str, should_stop: Optional[Callable[[], bool]] = None) -> RunReport:
        """Run the load and always return a report; nothing is raised to the caller."""
        start = time.monotonic()
        report = RunReport()
        logger.info("Load started for s3://%s/%s into %s", bucket, key, self.config.table_name)
        try:
            self._load(bucket, key, report, should_stop)
        except Exception as e:
            report.fail(str(e))
            logger.exception(
                "Load failed for s3://%s/%s after %d records in %d batches",
                bucket, key, report.records_written, report.batches_written,
            )
        report.execution_time_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Load %s in %dms: %d records written, %d skipped, %d batches, %d retries",
            report.status, report.execution_time_ms, report.records_written,
            report.records_skipped, report.batches_written, report.retries,
        )
        return report

    def _load(self, bucket: str, key: str, report: RunReport, should_stop: Optional[Callable[[], bool]]) -> None:
        try:
            obj = self.s3.get_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StoreError(f"Unable to fetch s3://{bucket}/{key}: {e}", code=error_code(e)) from e
        report.file_size_bytes = int(obj.get("ContentLength") or 0)
        logger.info("Reading %d compressed bytes from s3://%s/%s", report.file_size_bytes, bucket, key)

        table_name = self.config.table_name

        def write_batch(batch: List[Dict[str, Any]]) -> None:
            retries = self.writer.drain(table_name, batch)
            report.record_batch(len(batch), retries)

        batcher = Batcher(write_batch, self.config.batch_size)
        with closing(obj["Body"]) as body, LineReader(gzip.GzipFile(fileobj=body, mode="rb")) as lines:
            report.status = READING
            # set after a batch drains; checked only once another line turns up
            at_boundary = False
            try:
                for line_number, line in lines:
                    if at_boundary and should_stop():
                        logger.warning(
                            "Stop requested at batch boundary before line %d; %d batches written",
                            line_number, report.batches_written,
                        )
                        report.cancel()
                        return
                    at_boundary = False
                    try:
                        put_request = self._decode(line_number, line)
                    except DecodeError as e:
                        if not self.config.skip_malformed:
                            raise
                        report.records_skipped += 1
                        logger.warning("Skipping malformed record: %s", e)
                        continue
                    report.records_processed += 1
                    at_boundary = batcher.add(put_request) and should_stop is not None
                batcher.flush()
            finally:
                report.bytes_read = lines.bytes_read
        report.succeed()

    def _decode(self, line_number: int, line: bytes) -> Dict[str, Any]:
        record = decode_line(line, self.config.payload_key, line_number)
        if self.config.item_format == "dynamodb":
            return to_put_request(check_typed_item(record, line_number))
        return to_put_request(to_item(record, line_number))
