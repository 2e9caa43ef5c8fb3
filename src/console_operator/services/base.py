"""Backend protocols used by the resource state machines."""

from __future__ import annotations

from typing import Any, Protocol, Sequence

from psycopg import sql

from .garage.models import Bucket, BucketPermissions, Key


class SqlBackend(Protocol):
    """Protocol defining the SQL execution capability of a PostgreSQL backend."""

    name: str
    host: str
    port: int

    @property
    def healthy(self) -> bool:
        """Whether the backend connection is still usable."""
        ...

    def execute(self, statement: sql.Composable, params: Sequence[Any] | None = None) -> int:
        """Execute a statement and return the affected row count."""
        ...

    def close(self) -> None:
        """Close the backend connection."""
        ...


class StorageBackend(Protocol):
    """Protocol defining object storage administration operations."""

    def create_bucket(self, global_alias: str) -> Bucket:
        """Create a bucket reachable under a global alias."""
        ...

    def delete_bucket(self, bucket_id: str) -> None:
        """Delete a bucket by id."""
        ...

    def create_key(self, name: str) -> Key:
        """Create an access key that may not create buckets and never expires."""
        ...

    def delete_key(self, key_id: str) -> None:
        """Delete an access key by id."""
        ...

    def set_bucket_permissions(self, bucket_id: str, key_id: str, permissions: BucketPermissions) -> None:
        """Make the key's effective permissions on the bucket match ``permissions``."""
        ...

    def close(self) -> None:
        """Release HTTP resources."""
        ...
