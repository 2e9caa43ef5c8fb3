"""Object storage buckets."""

from __future__ import annotations

from typing import Any

from ..utils.kube import BUCKET, Resource
from .base import ResourceMachine, reject_illegal_name, required_spec


class BucketMachine(ResourceMachine):
    """Creates a bucket under a global alias and records the storage-assigned id."""

    kind = BUCKET

    def display_name(self, resource: Resource) -> str:
        return f"bucket {resource.spec.get('name') or resource.name}"

    def create(self, resource: Resource) -> dict[str, Any]:
        reject_illegal_name(resource)
        alias = required_spec(resource, "name")

        bucket = self.context.backends.storage.create_bucket(alias)
        return {"id": bucket.id}

    def needs_delete(self, resource: Resource) -> bool:
        # Buckets are deleted by id, which only status records.
        return bool(resource.status.get("id"))

    def delete(self, resource: Resource) -> None:
        self.context.backends.storage.delete_bucket(resource.status["id"])
