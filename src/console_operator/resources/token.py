"""Object storage access keys scoped to one bucket."""

from __future__ import annotations

from typing import Any

from ..services.garage import BucketPermissions, Key
from ..utils.errors import ConsoleError, sanitize_exception
from ..utils.kube import TOKEN, Resource
from ..utils.secrets import create_immutable_secret, delete_secret
from .base import ResourceMachine, reject_illegal_name, required_spec, scoped_name
from .dependencies import resolve_bucket


class TokenMachine(ResourceMachine):
    """Creates an access key, stores its credentials and grants it rights on one bucket.

    The bucket is resolved first so that a missing bucket leaves no orphaned
    key behind. When storing the credentials or granting the rights fails,
    the key (and the secret written for it) are removed again before the
    error propagates, so a retry starts from scratch.
    """

    kind = TOKEN

    def display_name(self, resource: Resource) -> str:
        return f"token {scoped_name(resource.namespace, resource.name)}"

    def create(self, resource: Resource) -> dict[str, Any]:
        reject_illegal_name(resource)
        secret_name = required_spec(resource, "secretName")
        storage = self.context.backends.storage
        bucket = resolve_bucket(self.context, resource)

        key = storage.create_key(scoped_name(resource.namespace, resource.name))
        secret_written = False
        try:
            create_immutable_secret(
                self.context.core_api,
                resource.namespace,
                secret_name,
                {
                    "access-key-id": key.id,
                    "secret-access-key": key.secret,
                },
                resource.owner_reference(),
            )
            secret_written = True
            storage.set_bucket_permissions(bucket.status["id"], key.id, BucketPermissions.from_spec(resource.spec))
        except ConsoleError:
            self._rollback(resource, key, secret_name if secret_written else None)
            raise
        return {"id": key.id}

    def _rollback(self, resource: Resource, key: Key, secret_name: str | None) -> None:
        if secret_name:
            try:
                delete_secret(self.context.core_api, resource.namespace, secret_name)
            except ConsoleError as e:
                self.logger.warning(f"Failed to remove secret {secret_name} of {resource!r}: {sanitize_exception(e)}")
        try:
            self.context.backends.storage.delete_key(key.id)
        except ConsoleError as e:
            self.logger.warning(f"Failed to remove key {key.id} of {resource!r}: {sanitize_exception(e)}")

    def needs_delete(self, resource: Resource) -> bool:
        # Keys are deleted by id, which only status records.
        return bool(resource.status.get("id"))

    def delete(self, resource: Resource) -> None:
        self.context.backends.storage.delete_key(resource.status["id"])

        secret_name = resource.spec.get("secretName")
        if secret_name:
            delete_secret(self.context.core_api, resource.namespace, secret_name)
