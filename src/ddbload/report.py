# src/ddbload/report.py
from dataclasses import dataclass
from typing import Optional

READING = "reading"
SUCCEEDED = "succeeded"
FAILED = "failed"
CANCELLED = "cancelled"


@dataclass
class RunReport:
    success: bool = False
    status: str = "started"
    file_size_bytes: int = 0
    bytes_read: int = 0
    records_processed: int = 0
    records_written: int = 0
    records_skipped: int = 0
    batches_written: int = 0
    retries: int = 0
    execution_time_ms: int = 0
    error: Optional[str] = None

    def record_batch(self, size: int, retries: int) -> None:
        self.batches_written += 1
        self.records_written += size
        self.retries += retries

    def succeed(self) -> None:
        self.success, self.status = True, SUCCEEDED

    def fail(self, error: str) -> None:
        self.success, self.status, self.error = False, FAILED, error

    def cancel(self) -> None:
        self.success, self.status = False, CANCELLED

    def to_dict(self) -> dict:
        # error text goes to the logs, not the response
        return {
            "success": self.success,
            "status": self.status,
            "fileSizeBytes": self.file_size_bytes,
            "executionTimeMs": self.execution_time_ms,
            "bytesRead": self.bytes_read,
            "recordsProcessed": self.records_processed,
            "recordsWritten": self.records_written,
            "recordsSkipped": self.records_skipped,
            "batchesWritten": self.batches_written,
            "retries": self.retries,
        }
