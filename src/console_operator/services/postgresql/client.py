"""PostgreSQL backend client."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Sequence

import psycopg
from psycopg import sql

from ... import metrics
from ...constants import (
    POSTGRESQL_APPLICATION_NAME,
    POSTGRESQL_DEFAULT_PORT,
    POSTGRESQL_HEALTH_CHECK_INTERVAL_SECONDS,
)
from ...utils.errors import SqlConnectionLostError, SqlError, sanitize_exception

logger = logging.getLogger(__name__)

ConnectionLostCallback = Callable[[str, BaseException], None]

_VERIFYING_SSL_MODES = {"verify-ca", "verify-full"}


class PostgresqlClient:
    """One long-lived autocommit connection to a PostgreSQL server.

    DDL such as CREATE DATABASE cannot run inside a transaction block, so the
    connection is opened in autocommit mode. psycopg serialises concurrent
    use of a connection, which lets reconciliation threads share it.

    The connection is never re-established in-process. Once it is broken the
    client reports itself unhealthy and ``on_connection_lost`` is invoked
    exactly once. psycopg only notices a dropped socket when it is used, so a
    monitor thread checks the connection while it is otherwise idle.
    """

    def __init__(
        self,
        name: str,
        host: str,
        user: str,
        password: str,
        database: str = "postgres",
        port: int = POSTGRESQL_DEFAULT_PORT,
        sslmode: str = "require",
        ssl_accept_invalid_cert: bool = False,
        on_connection_lost: ConnectionLostCallback | None = None,
    ) -> None:
        self.name = name
        self.host = host
        self.port = port
        self.user = user
        self.database = database
        self.sslmode = sslmode
        self.ssl_accept_invalid_cert = ssl_accept_invalid_cert
        self._password = password
        self._on_connection_lost = on_connection_lost
        self._connection: psycopg.Connection[Any] | None = None
        self._lost = False
        self._lost_lock = threading.Lock()
        self._stopped = threading.Event()
        self._monitor: threading.Thread | None = None

    def _effective_sslmode(self) -> str:
        # libpq cannot skip certificate validation in the verifying modes.
        if self.ssl_accept_invalid_cert and self.sslmode in _VERIFYING_SSL_MODES:
            return "require"
        return self.sslmode

    def connect(self) -> None:
        """Open the connection.

        Raises:
            SqlError: If the server cannot be reached or rejects the login
        """
        sslmode = self._effective_sslmode()
        logger.info(
            f"Connecting to Postgresql name={self.name} host={self.host} port={self.port} user={self.user} "
            f"database={self.database} sslmode={sslmode} ssl_accept_invalid_cert={self.ssl_accept_invalid_cert}"
        )
        try:
            self._connection = psycopg.connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self._password,
                dbname=self.database,
                sslmode=sslmode,
                application_name=POSTGRESQL_APPLICATION_NAME,
                autocommit=True,
            )
        except psycopg.Error as e:
            metrics.backend_up.labels(backend=self.name).set(0)
            raise SqlError(f"failed to connect to postgresql server {self.name}: {sanitize_exception(e)}") from e

        metrics.backend_up.labels(backend=self.name).set(1)
        logger.info(f"Connected to Postgresql name={self.name} host={self.host}")

    @property
    def healthy(self) -> bool:
        return self._connection is not None and not self._lost and not self._connection.broken

    def execute(self, statement: sql.Composable, params: Sequence[Any] | None = None) -> int:
        """Execute a statement and return the affected row count.

        Raises:
            SqlConnectionLostError: If the connection is gone
            SqlError: If the statement fails
        """
        if self._connection is None or self._lost:
            raise SqlConnectionLostError(f"postgresql server {self.name} is not connected")

        start_time = time.time()
        try:
            with self._connection.cursor() as cursor:
                cursor.execute(statement, params)
                rowcount = cursor.rowcount
        except psycopg.Error as e:
            metrics.api_call_total.labels(api_type="sql", operation="execute", result="error").inc()
            if self._connection.broken or self._connection.closed:
                self._mark_lost(e)
                raise SqlConnectionLostError(
                    f"connection to postgresql server {self.name} lost: {sanitize_exception(e)}"
                ) from e
            raise SqlError(f"statement failed on {self.name}: {sanitize_exception(e)}") from e
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="sql", operation="execute").observe(duration)

        metrics.api_call_total.labels(api_type="sql", operation="execute", result="success").inc()
        return rowcount

    def check(self) -> bool:
        """Check the connection with a trivial query.

        Returns:
            False once the connection is lost, True otherwise
        """
        if self._connection is None or self._lost:
            return False
        try:
            self._connection.execute("SELECT 1")
        except psycopg.Error as e:
            if self._connection.broken or self._connection.closed:
                self._mark_lost(e)
                return False
            logger.warning(f"Health check of Postgresql name={self.name} failed: {sanitize_exception(e)}")
        return True

    def start_monitor(self, interval: float = POSTGRESQL_HEALTH_CHECK_INTERVAL_SECONDS) -> None:
        """Check the connection every ``interval`` seconds on a daemon thread until it is lost or closed."""
        self._monitor = threading.Thread(
            target=self._watch,
            args=(interval,),
            name=f"postgresql-monitor-{self.name}",
            daemon=True,
        )
        self._monitor.start()

    def _watch(self, interval: float) -> None:
        while not self._stopped.wait(interval):
            if not self.check():
                return

    def _mark_lost(self, error: BaseException) -> None:
        with self._lost_lock:
            if self._lost or self._stopped.is_set():
                return
            self._lost = True
        metrics.backend_up.labels(backend=self.name).set(0)
        logger.critical(f"Connection to Postgresql name={self.name} host={self.host} lost: {sanitize_exception(error)}")
        if self._on_connection_lost is not None:
            self._on_connection_lost(self.name, error)

    def close(self) -> None:
        self._stopped.set()
        if self._connection is not None and not self._connection.closed:
            self._connection.close()


def connect(
    name: str,
    host: str,
    user: str,
    password: str,
    database: str = "postgres",
    port: int = POSTGRESQL_DEFAULT_PORT,
    sslmode: str = "require",
    ssl_accept_invalid_cert: bool = False,
    on_connection_lost: ConnectionLostCallback | None = None,
    health_check_interval: float = POSTGRESQL_HEALTH_CHECK_INTERVAL_SECONDS,
) -> PostgresqlClient:
    """Create a client, open its connection and start watching it."""
    client = PostgresqlClient(
        name=name,
        host=host,
        user=user,
        password=password,
        database=database,
        port=port,
        sslmode=sslmode,
        ssl_accept_invalid_cert=ssl_accept_invalid_cert,
        on_connection_lost=on_connection_lost,
    )
    client.connect()
    client.start_monitor(health_check_interval)
    return client
