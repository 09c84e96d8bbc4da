"""
Garage PathStore - PathEntry records as objects in a Garage S3 bucket.

One object per path. The object key is the configured prefix followed by
the path, so with prefix "filesystem/" the root is "filesystem/" and /a/b
is "filesystem/a/b". The directory flag travels as S3 user metadata.

Store failures (connection refused, unreachable endpoint, unexpected S3
errors) surface as StoreUnavailable. Retries are left to the boto3 client's
own retry configuration.
"""

import logging
from io import BytesIO
from typing import BinaryIO, Optional
from urllib.parse import urlsplit

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .config import StoreConfig
from .errors import NotFound, StoreUnavailable
from .models import IS_DIRECTORY, PathEntry
from .path_store import PathStore

log = logging.getLogger(__name__)

LISTING_CONTENT_TYPE = "text/plain; charset=utf-8"
FILE_CONTENT_TYPE = "application/octet-stream"


def _get_garage_credentials(config: StoreConfig) -> tuple[str, str]:
    """
    Get Garage credentials from the resolved configuration.

    Raises:
        ValueError: If either key is missing
    """
    if config.access_key and config.secret_key:
        return config.access_key, config.secret_key

    raise ValueError(
        "Garage credentials not found. "
        "Set GARAGE_ACCESS_KEY_ID and GARAGE_SECRET_ACCESS_KEY in the environment or .env, "
        "or access_key/secret_key in config.json"
    )


def _is_not_found(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in ("NoSuchKey", "404", "NotFound")


class GaragePathStore(PathStore):
    """
    PathStore backed by a Garage (S3-compatible) bucket.

    The boto3 client is shared by every handle resolved against this
    endpoint; boto3 clients are safe to use from multiple threads.
    """

    def __init__(self, client, bucket_name: str, key_prefix: str = "", endpoint: str = ""):
        super().__init__()
        self.client = client
        self.bucket_name = bucket_name
        self.key_prefix = key_prefix.rstrip("/")
        self.endpoint = endpoint
        self.netloc = urlsplit(endpoint).netloc if endpoint else ""

    def _object_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def _unavailable(self, action: str, key: str, error: Exception) -> StoreUnavailable:
        log.error(f"Failed to {action} {key}: {error}")
        return StoreUnavailable(
            f"Store at {self.endpoint or self.bucket_name} is unavailable; couldn't {action} '{key}': {error}",
            key,
        )

    def find(self, key: str) -> Optional[PathEntry]:
        object_key = self._object_key(key)
        try:
            response = self.client.head_object(Bucket=self.bucket_name, Key=object_key)
        except ClientError as e:
            if _is_not_found(e):
                return None
            raise self._unavailable("look up", key, e) from e
        except BotoCoreError as e:
            raise self._unavailable("look up", key, e) from e

        metadata = {k.lower(): v for k, v in response.get("Metadata", {}).items()}
        return PathEntry(
            key=key,
            length=response.get("ContentLength", 0),
            metadata=metadata,
        )

    def open_read(self, entry: PathEntry) -> BinaryIO:
        object_key = self._object_key(entry.key)
        try:
            response = self.client.get_object(Bucket=self.bucket_name, Key=object_key)
        except ClientError as e:
            if _is_not_found(e):
                raise NotFound(f"Path '{entry.key}' does not exist.", entry.key) from e
            raise self._unavailable("read", entry.key, e) from e
        except BotoCoreError as e:
            raise self._unavailable("read", entry.key, e) from e

        log.debug(f"Opened object for reading: {object_key}")
        return response["Body"]

    def write_entry(self, key: str, data: bytes, metadata: dict[str, str]) -> None:
        object_key = self._object_key(key)
        is_directory = metadata.get(IS_DIRECTORY) == "true"
        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=object_key,
                Body=BytesIO(data),
                ContentType=LISTING_CONTENT_TYPE if is_directory else FILE_CONTENT_TYPE,
                Metadata=metadata,
            )
        except (ClientError, BotoCoreError) as e:
            raise self._unavailable("store", key, e) from e
        log.debug(f"Stored object: {object_key} ({len(data)} bytes)")

    def remove(self, key: str) -> None:
        object_key = self._object_key(key)
        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=object_key)
        except ClientError as e:
            if _is_not_found(e):
                return
            raise self._unavailable("delete", key, e) from e
        except BotoCoreError as e:
            raise self._unavailable("delete", key, e) from e
        log.debug(f"Deleted object: {object_key}")

    def ensure_bucket(self) -> None:
        """
        Ensure the configured bucket exists, create if it doesn't.

        Raises:
            StoreUnavailable: If the endpoint can't be reached or creation fails
        """
        try:
            self.client.head_bucket(Bucket=self.bucket_name)
            log.debug(f"Bucket already exists: {self.bucket_name}")
            return
        except ClientError as e:
            if not _is_not_found(e):
                raise self._unavailable("check bucket", self.bucket_name, e) from e
        except BotoCoreError as e:
            raise self._unavailable("check bucket", self.bucket_name, e) from e

        try:
            self.client.create_bucket(Bucket=self.bucket_name)
        except (ClientError, BotoCoreError) as e:
            raise self._unavailable("create bucket", self.bucket_name, e) from e
        log.info(f"Created bucket: {self.bucket_name}")

    def health_check(self) -> bool:
        """True if the endpoint answers and the bucket exists."""
        try:
            self.client.head_bucket(Bucket=self.bucket_name)
            return True
        except (ClientError, BotoCoreError) as e:
            log.error(f"Garage health check failed: {e}")
            return False

    def close(self) -> None:
        self.client.close()
        log.debug(f"Closed Garage client for {self.endpoint}")


def create_garage_store(config: StoreConfig, host: str, port: int) -> GaragePathStore:
    """
    Build a GaragePathStore for one endpoint.

    Raises:
        ValueError: If credentials are missing
        StoreUnavailable: If config.ensure_bucket is set and the bucket check fails
    """
    access_key, secret_key = _get_garage_credentials(config)
    scheme = "https" if config.use_ssl else "http"
    endpoint = f"{scheme}://{host}:{port}"

    retry_config = BotoConfig(
        retries={
            'max_attempts': config.max_attempts,
            'mode': 'adaptive'
        },
        connect_timeout=config.connect_timeout,
        read_timeout=config.read_timeout
    )

    client = boto3.client(
        's3',
        endpoint_url=endpoint,
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
        region_name=config.region,
        config=retry_config
    )
    store = GaragePathStore(client, config.bucket, key_prefix=config.key_prefix, endpoint=endpoint)

    if config.ensure_bucket:
        try:
            store.ensure_bucket()
        except StoreUnavailable:
            store.close()
            raise

    log.info(f"Garage client initialized: {endpoint}, bucket: {config.bucket}")
    return store
