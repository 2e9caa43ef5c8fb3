"""Shared runtime context handed to every controller."""

from __future__ import annotations

import logging
import os
import signal
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from kubernetes import client, config

from .constants import RECONCILE_INTERVAL_SECONDS, RETRY_INTERVAL_SECONDS
from .services.base import SqlBackend, StorageBackend
from .services.garage import GarageClient
from .services.postgresql import connect as connect_postgresql
from .settings import Settings
from .state import DiagnosticsState
from .utils.errors import ConsoleError, UnknownBackendError
from .utils.kube import ResourceApi, ResourceKind

logger = logging.getLogger(__name__)

STORAGE_BACKEND = "s3"


class BackendRegistry:
    """Read-only registry of connected backends keyed by logical name.

    Built once at startup and shared by every reconciliation without locking.
    """

    def __init__(
        self,
        sql_backends: Mapping[str, SqlBackend] | None = None,
        storage_backend: StorageBackend | None = None,
    ) -> None:
        self._sql = MappingProxyType(dict(sql_backends or {}))
        self._storage = storage_backend

    @property
    def sql_backends(self) -> Mapping[str, SqlBackend]:
        return self._sql

    def has_sql_backend(self, key: str) -> bool:
        return key in self._sql

    def sql_backend(self, key: str) -> SqlBackend:
        """Return the SQL backend registered under ``key``.

        Raises:
            UnknownBackendError: If no backend is registered under ``key``
        """
        try:
            return self._sql[key]
        except KeyError:
            raise UnknownBackendError(key) from None

    @property
    def storage(self) -> StorageBackend:
        """Return the object storage backend.

        Raises:
            UnknownBackendError: If object storage is not configured
        """
        if self._storage is None:
            raise UnknownBackendError(STORAGE_BACKEND)
        return self._storage

    def health(self) -> dict[str, bool]:
        """Health of every SQL backend connection."""
        return {key: backend.healthy for key, backend in self._sql.items()}

    def close(self) -> None:
        for key, backend in self._sql.items():
            try:
                backend.close()
            except Exception as e:
                logger.warning(f"Failed to close postgresql backend {key}: {e}")
        if self._storage is not None:
            self._storage.close()


def terminate_process(backend: str, error: BaseException) -> None:
    """Ask the operator to shut down after a backend connection was lost.

    SIGTERM triggers kopf's graceful shutdown; restarting the process is left
    to the platform.
    """
    logger.critical(f"Backend {backend} is unreachable, shutting down the operator")
    os.kill(os.getpid(), signal.SIGTERM)


def connect_backends(settings: Settings) -> BackendRegistry:
    """Connect to every configured backend.

    Raises:
        ConsoleError: If any PostgreSQL backend cannot be reached
    """
    on_connection_lost = terminate_process if settings.exit_on_connection_loss else None

    sql_backends: dict[str, SqlBackend] = {}
    try:
        for key, pg in settings.postgresql.items():
            sql_backends[key] = connect_postgresql(
                name=key,
                host=pg.host,
                port=pg.port,
                user=pg.user,
                password=pg.password.get_secret_value(),
                database=pg.database,
                sslmode=pg.sslmode,
                ssl_accept_invalid_cert=pg.ssl_accept_invalid_cert,
                on_connection_lost=on_connection_lost,
            )
    except ConsoleError:
        for backend in sql_backends.values():
            backend.close()
        raise

    storage_backend: StorageBackend | None = None
    if settings.s3 is not None:
        storage_backend = GarageClient(
            settings.s3.url,
            settings.s3.token.get_secret_value(),
            timeout=settings.s3.timeout,
        )
    else:
        logger.warning("No object storage configured, Bucket and Token resources will fail to reconcile")

    return BackendRegistry(sql_backends, storage_backend)


@dataclass
class Context:
    """Everything a reconciliation needs, injected at construction time."""

    backends: BackendRegistry
    custom_api: Any
    core_api: Any
    diagnostics: DiagnosticsState = field(default_factory=DiagnosticsState)
    reconcile_interval: float = RECONCILE_INTERVAL_SECONDS
    retry_interval: float = RETRY_INTERVAL_SECONDS

    def api(self, kind: ResourceKind) -> ResourceApi:
        return ResourceApi(self.custom_api, kind)

    @classmethod
    def from_cluster(cls, backends: BackendRegistry) -> Context:
        """Build a context with Kubernetes clients for the current cluster."""
        try:
            config.load_incluster_config()
        except config.ConfigException:
            config.load_kube_config()

        return cls(
            backends=backends,
            custom_api=client.CustomObjectsApi(),
            core_api=client.CoreV1Api(),
        )
