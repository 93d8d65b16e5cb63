"""
Object storage client for the device image catalog.

Supports any S3-compatible store (AWS S3, Cloudflare R2, MinIO) with a
mock mode for local development.

The catalog only needs two things from storage:
- list object keys under a prefix
- sign a time-limited, read-only URL for one key

Mock mode keeps keys in memory, enabling API testing without
provisioning actual object storage.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AsyncIterator, Iterable, Optional, Protocol
from urllib.parse import quote, urlencode

logger = logging.getLogger(__name__)

# Signature timestamps use the compact ISO 8601 form of SAS/SigV4 tokens.
_TOKEN_TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class StorageError(Exception):
    """Raised when storage operations fail."""
    pass


@dataclass(frozen=True)
class StorageConfig:
    """
    Configuration for S3-compatible storage.

    Frozen because the client built from it is shared across all
    requests for the lifetime of the process.
    """
    access_key_id: str
    secret_access_key: str
    container_name: str
    endpoint_url: Optional[str] = None
    region: str = "auto"  # R2 uses 'auto' for region

    def __repr__(self) -> str:
        # keep the secret out of logs and tracebacks
        return (
            f"StorageConfig(access_key_id={self.access_key_id!r}, "
            f"container_name={self.container_name!r}, "
            f"endpoint_url={self.endpoint_url!r}, region={self.region!r})"
        )


class ObjectStore(Protocol):
    """
    Protocol for object storage operations.

    Using a protocol means tests can provide fakes and we can
    swap storage backends without changing dependent code.
    """

    container_name: str

    def list_keys(self, prefix: str = "") -> AsyncIterator[str]:
        """Lazily yield object keys starting with prefix. Empty prefix lists everything."""
        ...

    async def generate_signed_url(
        self,
        key: str,
        valid_from: datetime,
        valid_until: datetime,
    ) -> str:
        """Generate a read-only URL for key, valid between the two instants."""
        ...


class S3ObjectStore:
    """
    S3-compatible object storage client.

    Uses boto3 so the same code serves S3, R2 or MinIO. Listing is
    paginated and each page is fetched in a worker thread, so a slow
    store suspends only the request that is waiting on it.

    Presigning is a local computation with the account's secret key; the
    key itself never leaves this object.
    """

    def __init__(self, config: StorageConfig) -> None:
        """
        Initialize S3 client with boto3.

        We import boto3 here (not at module level) because:
        - Mock mode doesn't need it
        - Explicit about when the dependency is required
        """
        try:
            import boto3
            from botocore.config import Config
        except ImportError:
            raise ImportError(
                "boto3 is required for object storage. Install with: pip install boto3"
            )

        self._config = config
        self.container_name = config.container_name

        # v4 signatures are required by R2 and give us X-Amz-Date/X-Amz-Expires
        boto_config = Config(
            signature_version='s3v4',
            s3={'addressing_style': 'path'},
        )

        self._s3_client = boto3.client(
            's3',
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=boto_config,
        )

        logger.info(
            "Initialized S3 object store client",
            extra={
                "container": config.container_name,
                "endpoint": config.endpoint_url,
            }
        )

    async def list_keys(self, prefix: str = "") -> AsyncIterator[str]:
        """
        Yield every key under prefix in the store's native listing order.

        Pages are requested one at a time as the caller iterates, so a
        consumer that stops early never pays for the remaining pages.
        """
        token = None

        while True:
            kwargs = {'Bucket': self._config.container_name, 'Prefix': prefix}
            if token:
                kwargs['ContinuationToken'] = token

            try:
                page = await asyncio.to_thread(self._s3_client.list_objects_v2, **kwargs)
            except Exception as e:
                logger.error(
                    "Failed to list objects",
                    extra={
                        "container": self._config.container_name,
                        "prefix": prefix,
                        "error": str(e),
                    }
                )
                raise StorageError(f"Listing failed: {e}") from e

            for obj in page.get('Contents') or []:
                yield obj['Key']

            token = page.get('NextContinuationToken') if page.get('IsTruncated') else None
            if not token:
                return

    async def generate_signed_url(
        self,
        key: str,
        valid_from: datetime,
        valid_until: datetime,
    ) -> str:
        """
        Generate a presigned GET URL for one object.

        How the window shows up in the URL:
        - issuance: X-Amz-Date, stamped by botocore from its own UTC clock
          at signing time. valid_from is not written into the URL; only
          the window length (valid_until - valid_from) is, as X-Amz-Expires.
          Callers pass valid_from = now, so the two differ by the time
          spent reaching this call.
        - expiry: X-Amz-Date + X-Amz-Expires.

        How read-only shows up: SigV4 has no permission field. The HTTP
        method is the first line of the signed canonical request and
        SignedHeaders is just `host`, so X-Amz-Signature verifies only for
        a GET of exactly this bucket/key. Any other method or object is
        refused by the store.
        """
        expires_in = int((valid_until - valid_from).total_seconds())
        if expires_in <= 0:
            raise StorageError("Signed URL window must end after it starts")

        try:
            return self._s3_client.generate_presigned_url(
                'get_object',
                Params={
                    'Bucket': self._config.container_name,
                    'Key': key,
                },
                ExpiresIn=expires_in,
            )
        except Exception as e:
            logger.error(
                "Failed to generate presigned URL",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Presigned URL generation failed: {e}") from e


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockObjectStore:
    """
    In-memory object store for local development.

    Keys are kept in insertion order, which stands in for the store's
    native listing order. "Signed" URLs are mock URIs carrying the same
    permission and validity fields a SAS token would.

    Not suitable for production, but perfect for development and testing.
    """

    def __init__(
        self,
        keys: Iterable[str] = (),
        container_name: str = "mock-container",
    ) -> None:
        self.container_name = container_name
        self._keys: list[str] = list(keys)
        logger.info(
            "Initialized mock object store (in-memory)",
            extra={"key_count": len(self._keys)}
        )

    def add_key(self, key: str) -> None:
        """Register an object key. Used to seed the store."""
        self._keys.append(key)

    async def list_keys(self, prefix: str = "") -> AsyncIterator[str]:
        """Yield stored keys starting with prefix."""
        for key in list(self._keys):
            if key.startswith(prefix):
                yield key

    async def generate_signed_url(
        self,
        key: str,
        valid_from: datetime,
        valid_until: datetime,
    ) -> str:
        """Return a mock URL with sp/st/se query fields."""
        if key not in self._keys:
            raise StorageError(f"Object not found: {key}")
        if valid_until <= valid_from:
            raise StorageError("Signed URL window must end after it starts")

        query = urlencode({
            "sp": "r",
            "st": _format_token_time(valid_from),
            "se": _format_token_time(valid_until),
        })
        return f"mock://storage/{self.container_name}/{quote(key)}?{query}"


def _format_token_time(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime(_TOKEN_TIME_FORMAT)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_object_store(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
    seed_keys: Iterable[str] = (),
) -> ObjectStore:
    """
    Create object store client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return in-memory store
        seed_keys: Keys to preload into the mock store

    Returns:
        ObjectStore implementation (S3 or Mock)
    """
    if mock_mode:
        container = config.container_name if config and config.container_name else "mock-container"
        return MockObjectStore(keys=seed_keys, container_name=container)

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return S3ObjectStore(config)
