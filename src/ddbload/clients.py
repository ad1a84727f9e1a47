# src/ddbload/clients.py
import functools
import boto3
from botocore.config import Config

_CLIENT_CONFIG = Config(max_pool_connections=20, retries={"mode": "standard"})


# one client per region for the life of the container; warm invocations reuse it
@functools.lru_cache(maxsize=None)
def get_s3_client(region: str):
    return boto3.client("s3", region_name=region, config=_CLIENT_CONFIG)


@functools.lru_cache(maxsize=None)
def get_dynamodb_client(region: str):
    return boto3.client("dynamodb", region_name=region, config=_CLIENT_CONFIG)
