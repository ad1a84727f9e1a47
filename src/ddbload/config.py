# src/ddbload/config.py
import logging, os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigurationError
from .writer import RetryPolicy

# BatchWriteItem accepts at most 25 put/delete requests per call
MAX_BATCH_SIZE = 25

ITEM_FORMATS = ("document", "dynamodb")


def _get_bool(env: Mapping[str, str], name: str, default: str = "false") -> bool:
    return env.get(name, default).strip().lower() in {"1", "true", "yes", "y"}


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class LoaderConfig:
    table_name: str
    region: str = "us-east-1"
    batch_size: int = MAX_BATCH_SIZE
    payload_key: str = "Item"
    item_format: str = "document"
    max_retries: int = 10
    retry_base_delay_ms: int = 50
    retry_max_delay_ms: int = 5000
    skip_malformed: bool = False
    stop_margin_ms: int = 10_000
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not self.table_name:
            raise ConfigurationError("TABLE_NAME is required")
        if not 1 <= self.batch_size <= MAX_BATCH_SIZE:
            raise ConfigurationError(
                f"BATCH_SIZE must be between 1 and {MAX_BATCH_SIZE}, got {self.batch_size}"
            )
        if self.item_format not in ITEM_FORMATS:
            raise ConfigurationError(
                f"ITEM_FORMAT must be one of {', '.join(ITEM_FORMATS)}, got {self.item_format!r}"
            )
        if not self.payload_key:
            raise ConfigurationError("PAYLOAD_KEY must not be empty")
        if self.max_retries < 0:
            raise ConfigurationError("MAX_RETRIES must be >= 0")
        if self.retry_base_delay_ms < 0 or self.retry_max_delay_ms < 0:
            raise ConfigurationError("retry delays must be >= 0")
        if self.stop_margin_ms < 0:
            raise ConfigurationError("STOP_MARGIN_MS must be >= 0")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigurationError(f"LOG_LEVEL {self.log_level!r} is not a logging level")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LoaderConfig":
        env = os.environ if environ is None else environ
        return cls(
            table_name=env.get("TABLE_NAME", "").strip(),
            region=env.get("REGION") or env.get("AWS_REGION") or "us-east-1",
            batch_size=_get_int(env, "BATCH_SIZE", MAX_BATCH_SIZE),
            payload_key=env.get("PAYLOAD_KEY", "Item"),
            item_format=env.get("ITEM_FORMAT", "document").strip().lower(),
            max_retries=_get_int(env, "MAX_RETRIES", 10),
            retry_base_delay_ms=_get_int(env, "RETRY_BASE_DELAY_MS", 50),
            retry_max_delay_ms=_get_int(env, "RETRY_MAX_DELAY_MS", 5000),
            skip_malformed=_get_bool(env, "SKIP_MALFORMED"),
            stop_margin_ms=_get_int(env, "STOP_MARGIN_MS", 10_000),
            log_level=env.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            initial_delay_s=self.retry_base_delay_ms / 1000,
            max_delay_s=self.retry_max_delay_ms / 1000,
        )
