from .client import PostgresqlClient, connect

__all__ = ["PostgresqlClient", "connect"]
