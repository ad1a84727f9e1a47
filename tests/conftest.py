"""Pytest configuration and fixtures.

Provides environment isolation and the shared S3/DynamoDB double fixtures.
The doubles themselves live in tests/helpers.py.
"""

from __future__ import annotations

import pytest

from ddbload.config import LoaderConfig
from tests.helpers import TABLE, FakeDynamoDB, FakeS3

LOADER_ENV = (
    "TABLE_NAME",
    "REGION",
    "BATCH_SIZE",
    "PAYLOAD_KEY",
    "ITEM_FORMAT",
    "MAX_RETRIES",
    "RETRY_BASE_DELAY_MS",
    "RETRY_MAX_DELAY_MS",
    "SKIP_MALFORMED",
    "STOP_MARGIN_MS",
    "LOG_LEVEL",
)

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolate_loader_env(monkeypatch):
    """Keep the loader's environment variables out of every test."""
    for name in LOADER_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def s3():
    return FakeS3()


@pytest.fixture
def dynamodb():
    return FakeDynamoDB()


@pytest.fixture
def config():
    return LoaderConfig(table_name=TABLE, max_retries=5)


@pytest.fixture
def slept():
    """Collects backoff delays; pass ``slept.append`` as the sleep function."""
    return []
