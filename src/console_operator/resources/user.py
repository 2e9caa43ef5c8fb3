"""PostgreSQL login roles and their credential secrets."""

from __future__ import annotations

from typing import Any

from psycopg import sql

from ..utils.errors import IllegalIdentifierError, InvalidSpecError
from ..utils.kube import USER, Resource
from ..utils.secrets import create_immutable_secret, delete_secret, generate_password
from .base import ResourceMachine, reject_illegal_name, required_spec, scoped_name, validate_identifier

UNLIMITED_CONNECTIONS = -1


def user_name(resource: Resource) -> str:
    """Resolved role name of a User."""
    if resource.status.get("name"):
        return resource.status["name"]
    return scoped_name(resource.namespace, resource.name)


class UserMachine(ResourceMachine):
    """Creates a login role with a generated password stored in an immutable secret."""

    kind = USER

    def display_name(self, resource: Resource) -> str:
        return f"user {user_name(resource)}"

    def _identity(self, resource: Resource) -> tuple[str, str, str]:
        reject_illegal_name(resource)
        name = validate_identifier(user_name(resource))
        secret_name = required_spec(resource, "passwordSecretName")
        return required_spec(resource, "server"), name, secret_name

    def create(self, resource: Resource) -> dict[str, Any]:
        server, name, secret_name = self._identity(resource)
        backend = self.context.backends.sql_backend(server)

        password = generate_password()
        connection_limit = int(resource.spec.get("connectionLimit", UNLIMITED_CONNECTIONS))
        backend.execute(
            sql.SQL("CREATE USER {} WITH PASSWORD {} CONNECTION LIMIT {}").format(
                sql.Identifier(name),
                sql.Literal(password),
                sql.Literal(connection_limit),
            )
        )

        create_immutable_secret(
            self.context.core_api,
            resource.namespace,
            secret_name,
            {
                "password": password,
                "username": name,
                "host": backend.host,
                "port": str(backend.port),
            },
            resource.owner_reference(),
        )
        return {"name": name}

    def needs_delete(self, resource: Resource) -> bool:
        # The role may exist without status.created when the secret or status write failed.
        if resource.created:
            return True
        try:
            self._identity(resource)
        except (IllegalIdentifierError, InvalidSpecError):
            return False
        return True

    def delete(self, resource: Resource) -> None:
        backend = self.context.backends.sql_backend(required_spec(resource, "server"))
        name = validate_identifier(user_name(resource))
        backend.execute(sql.SQL("DROP USER IF EXISTS {}").format(sql.Identifier(name)))

        # Only a created User is known to own the secret; garbage collection covers the rest.
        secret_name = resource.spec.get("passwordSecretName")
        if resource.created and secret_name:
            delete_secret(self.context.core_api, resource.namespace, secret_name)
