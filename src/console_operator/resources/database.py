"""PostgreSQL databases."""

from __future__ import annotations

from typing import Any

from psycopg import sql

from ..utils.errors import IllegalIdentifierError, InvalidSpecError
from ..utils.kube import DATABASE, Resource
from .base import ResourceMachine, reject_illegal_name, required_spec, scoped_name, validate_identifier
from .dependencies import check_same_backend, resolve_owner
from .user import user_name

UNLIMITED_CONNECTIONS = -1


def database_name(resource: Resource) -> str:
    """Resolved database identifier; ``spec.name`` falls back to the resource name."""
    if resource.status.get("name"):
        return resource.status["name"]
    return scoped_name(resource.namespace, resource.spec.get("name") or resource.name)


class DatabaseMachine(ResourceMachine):
    """Creates a database owned by a User on the same server and drops it on cleanup."""

    kind = DATABASE

    def display_name(self, resource: Resource) -> str:
        return f"database {database_name(resource)}"

    def _identity(self, resource: Resource) -> tuple[str, str]:
        reject_illegal_name(resource)
        name = validate_identifier(database_name(resource))
        return required_spec(resource, "server"), name

    def create(self, resource: Resource) -> dict[str, Any]:
        server, name = self._identity(resource)
        backend = self.context.backends.sql_backend(server)

        owner = resolve_owner(self.context, resource)
        check_same_backend(owner, resource)
        owner_name = validate_identifier(user_name(owner))

        connection_limit = int(resource.spec.get("connectionLimit", UNLIMITED_CONNECTIONS))
        backend.execute(
            sql.SQL("CREATE DATABASE {} WITH OWNER {} CONNECTION LIMIT {}").format(
                sql.Identifier(name),
                sql.Identifier(owner_name),
                sql.Literal(connection_limit),
            )
        )
        return {"name": name}

    def needs_delete(self, resource: Resource) -> bool:
        # The database may exist without status.created when the status apply failed.
        if resource.created:
            return True
        try:
            self._identity(resource)
        except (IllegalIdentifierError, InvalidSpecError):
            return False
        return True

    def delete(self, resource: Resource) -> None:
        server, name = self._identity(resource)
        backend = self.context.backends.sql_backend(server)
        backend.execute(sql.SQL("DROP DATABASE IF EXISTS {}").format(sql.Identifier(name)))
