"""Lookups and invariant checks between dependent resources."""

from __future__ import annotations

from ..context import Context
from ..state import ResourceRef
from ..utils.errors import BackendMismatchError, NotFoundError
from ..utils.kube import BUCKET, USER, Resource


def _reference_name(resource: Resource, field: str) -> str:
    name = (resource.spec.get(field) or {}).get("name")
    if not name:
        raise NotFoundError(f"{resource!r} has no {field}.name")
    return name


def resolve_owner(context: Context, database: Resource) -> Resource:
    """Fetch the User that owns a Database, from the Database's namespace.

    The role must already exist, so the User has to be created.

    Raises:
        NotFoundError: If the reference is empty, the User does not exist or is not created yet
    """
    name = _reference_name(database, "ownerRef")
    owner = context.api(USER).get(ResourceRef(database.namespace, name))
    if not owner.created:
        raise NotFoundError(f"{owner!r} is not created yet")
    return owner


def check_same_backend(owner: Resource, dependent: Resource) -> str:
    """Return the shared backend key of two resources.

    Raises:
        BackendMismatchError: If the resources name different backends
    """
    expected = dependent.spec.get("server", "")
    actual = owner.spec.get("server", "")
    if expected != actual:
        raise BackendMismatchError(expected, actual)
    return expected


def resolve_bucket(context: Context, token: Resource) -> Resource:
    """Fetch the Bucket a Token refers to; it must already be created.

    Raises:
        NotFoundError: If the Bucket does not exist or has no storage id yet
    """
    name = _reference_name(token, "bucketRef")
    bucket = context.api(BUCKET).get(ResourceRef(token.namespace, name))
    if not bucket.created or not bucket.status.get("id"):
        raise NotFoundError(f"{bucket!r} is not created yet")
    return bucket
