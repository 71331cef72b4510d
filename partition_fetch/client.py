"""
S3 client construction for partition_fetch.

Credentials are whatever boto3's default chain finds after the .env file has
been loaded into the environment.
"""

import logging
from typing import Optional

import boto3
from botocore.config import Config

from partition_fetch.config import load_env_file

# Headroom over the worker count for paginator and upload calls
EXTRA_POOL_CONNECTIONS = 4


def create_s3_client(region: str, max_workers: int = 20, env_path: Optional[str] = None):
    """
    Create an S3 client sized for `max_workers` concurrent downloads.

    Args:
        region: AWS region of the bucket
        max_workers: Transfer pool size; the HTTP pool gets a little more
        env_path: Optional .env override (defaults to AWS_ENV_FILE or ~/.env)

    Returns:
        boto3 S3 client
    """
    resolved = load_env_file(env_path)
    logging.debug("Loaded environment from %s", resolved)
    client_config = Config(
        region_name=region,
        max_pool_connections=max_workers + EXTRA_POOL_CONNECTIONS,
    )
    return boto3.client("s3", config=client_config)
