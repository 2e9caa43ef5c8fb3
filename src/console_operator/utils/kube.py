"""Kubernetes custom resource access: typed view of a body and finalizer/status patching."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from kubernetes import client

from .. import metrics
from ..constants import (
    API_VERSION,
    FIELD_MANAGER,
    FINALIZER,
    KIND_BUCKET,
    KIND_DATABASE,
    KIND_TOKEN,
    KIND_USER,
    PLURAL_BUCKETS,
    PLURAL_DATABASES,
    PLURAL_TOKENS,
    PLURAL_USERS,
    POSTGRESQL_GROUP,
    S3_GROUP,
)
from ..state import ResourceRef, ResourceState
from .errors import FinalizerProtocolError, KubeError, NotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MERGE_PATCH = "application/merge-patch+json"
APPLY_PATCH = "application/apply-patch+yaml"


@dataclass(frozen=True)
class ResourceKind:
    """Group, version, kind and plural of a custom resource."""

    group: str
    version: str
    kind: str
    plural: str

    @property
    def group_version(self) -> str:
        return f"{self.group}/{self.version}"


class Resource:
    """Read-only view over a custom resource body."""

    def __init__(self, kind: ResourceKind, body: dict[str, Any]) -> None:
        self.kind = kind
        self.body = body

    @property
    def metadata(self) -> dict[str, Any]:
        return self.body.get("metadata") or {}

    @property
    def namespace(self) -> str:
        return self.metadata.get("namespace", "")

    @property
    def name(self) -> str:
        return self.metadata.get("name", "")

    @property
    def uid(self) -> str:
        return self.metadata.get("uid", "")

    @property
    def resource_version(self) -> str | None:
        return self.metadata.get("resourceVersion")

    @property
    def ref(self) -> ResourceRef:
        return ResourceRef(self.namespace, self.name)

    @property
    def spec(self) -> dict[str, Any]:
        return self.body.get("spec") or {}

    @property
    def status(self) -> dict[str, Any]:
        return self.body.get("status") or {}

    @property
    def created(self) -> bool:
        return bool(self.status.get("created", False))

    @property
    def finalizers(self) -> list[str]:
        return list(self.metadata.get("finalizers") or [])

    @property
    def has_finalizer(self) -> bool:
        return FINALIZER in self.finalizers

    @property
    def deleting(self) -> bool:
        return self.metadata.get("deletionTimestamp") is not None

    @property
    def state(self) -> ResourceState:
        return ResourceState.of(self.deleting, self.has_finalizer, self.created)

    def owner_reference(self) -> dict[str, Any]:
        """Owner reference making this resource the controller of a dependent object."""
        return {
            "apiVersion": self.kind.group_version,
            "kind": self.kind.kind,
            "name": self.name,
            "uid": self.uid,
            "controller": True,
            "blockOwnerDeletion": True,
        }

    def event_body(self) -> dict[str, Any]:
        """Minimal body identifying this resource as the involved object of an event."""
        return {
            "apiVersion": self.kind.group_version,
            "kind": self.kind.kind,
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "uid": self.uid,
            },
        }

    def __repr__(self) -> str:
        return f"<{self.kind.kind} {self.ref}>"


class ResourceApi:
    """Typed access to one custom resource kind through CustomObjectsApi."""

    def __init__(self, api: client.CustomObjectsApi, kind: ResourceKind) -> None:
        self.api = api
        self.kind = kind

    def _call(self, operation: str, func: Callable[..., T], **kwargs: Any) -> T:
        start_time = time.time()
        try:
            result = func(
                group=self.kind.group,
                version=self.kind.version,
                plural=self.kind.plural,
                **kwargs,
            )
        except client.exceptions.ApiException:
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)
        metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
        return result

    def get(self, ref: ResourceRef) -> Resource:
        """Fetch a resource.

        Raises:
            NotFoundError: If the resource does not exist
            KubeError: On any other API failure
        """
        try:
            body = self._call(
                f"get_{self.kind.plural}",
                self.api.get_namespaced_custom_object,
                namespace=ref.namespace,
                name=ref.name,
            )
        except client.exceptions.ApiException as e:
            if e.status == 404:
                raise NotFoundError(f"{self.kind.kind} {ref} not found") from e
            raise KubeError(f"Failed to get {self.kind.kind} {ref}: {e.reason}", status=e.status) from e
        return Resource(self.kind, body)

    def _patch_finalizers(self, operation: str, resource: Resource, finalizers: list[str]) -> Resource:
        patch = {
            "metadata": {
                "finalizers": finalizers,
                "resourceVersion": resource.resource_version,
            }
        }
        try:
            body = self._call(
                operation,
                self.api.patch_namespaced_custom_object,
                namespace=resource.namespace,
                name=resource.name,
                body=patch,
                _content_type=MERGE_PATCH,
            )
        except client.exceptions.ApiException as e:
            if e.status == 409:
                raise FinalizerProtocolError(
                    f"{resource!r} changed while updating finalizers, will retry"
                ) from e
            raise FinalizerProtocolError(
                f"Failed to update finalizers of {resource!r}: {e.reason}"
            ) from e
        return Resource(self.kind, body)

    def add_finalizer(self, resource: Resource) -> Resource:
        """Add the operator's finalizer marker if it is missing.

        The patch carries the observed resourceVersion, so it is rejected if
        the object changed in the meantime.

        Raises:
            FinalizerProtocolError: If the patch is rejected
        """
        if resource.has_finalizer:
            return resource
        logger.debug(f"Adding finalizer {FINALIZER} to {resource!r}")
        return self._patch_finalizers("add_finalizer", resource, resource.finalizers + [FINALIZER])

    def remove_finalizer(self, resource: Resource) -> Resource:
        """Remove the operator's finalizer marker, keeping any other finalizers.

        Raises:
            FinalizerProtocolError: If the patch is rejected
        """
        if not resource.has_finalizer:
            return resource
        logger.debug(f"Removing finalizer {FINALIZER} from {resource!r}")
        remaining = [f for f in resource.finalizers if f != FINALIZER]
        return self._patch_finalizers("remove_finalizer", resource, remaining)

    def apply_status(self, resource: Resource, status: dict[str, Any]) -> None:
        """Server-side apply the status subresource only.

        Raises:
            KubeError: If the patch is rejected
        """
        patch = {
            "apiVersion": self.kind.group_version,
            "kind": self.kind.kind,
            "metadata": {"name": resource.name, "namespace": resource.namespace},
            "status": status,
        }
        try:
            self._call(
                "apply_status",
                self.api.patch_namespaced_custom_object_status,
                namespace=resource.namespace,
                name=resource.name,
                body=patch,
                field_manager=FIELD_MANAGER,
                force=True,
                _content_type=APPLY_PATCH,
            )
        except client.exceptions.ApiException as e:
            raise KubeError(f"Failed to patch status of {resource!r}: {e.reason}", status=e.status) from e


DATABASE = ResourceKind(POSTGRESQL_GROUP, API_VERSION, KIND_DATABASE, PLURAL_DATABASES)
USER = ResourceKind(POSTGRESQL_GROUP, API_VERSION, KIND_USER, PLURAL_USERS)
BUCKET = ResourceKind(S3_GROUP, API_VERSION, KIND_BUCKET, PLURAL_BUCKETS)
TOKEN = ResourceKind(S3_GROUP, API_VERSION, KIND_TOKEN, PLURAL_TOKENS)
