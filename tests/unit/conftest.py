"""Shared fixtures for unit tests."""

from __future__ import annotations

import copy
from typing import Any
from unittest.mock import Mock, patch

import pytest
from kubernetes import client

from console_operator.context import BackendRegistry, Context
from console_operator.services.garage import Bucket, GarageClient, Key


class FakeSqlBackend:
    """Records every executed statement instead of talking to PostgreSQL."""

    def __init__(self, name: str = "pg1", host: str = "pg1.example.com", port: int = 5432):
        self.name = name
        self.host = host
        self.port = port
        self.healthy = True
        self.statements: list[Any] = []
        self.closed = False

    def execute(self, statement, params=None) -> int:
        self.statements.append(statement)
        return 0

    def close(self) -> None:
        self.closed = True


class FakeCluster:
    """In-memory stand-in for CustomObjectsApi keyed by (plural, namespace, name)."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.status_patches: list[dict[str, Any]] = []
        self.finalizer_patches: list[dict[str, Any]] = []
        self.get_namespaced_custom_object = Mock(side_effect=self._get)
        self.patch_namespaced_custom_object = Mock(side_effect=self._patch)
        self.patch_namespaced_custom_object_status = Mock(side_effect=self._patch_status)

    def add(self, plural: str, body: dict[str, Any]) -> dict[str, Any]:
        meta = body["metadata"]
        self.objects[(plural, meta["namespace"], meta["name"])] = body
        return body

    def _get(self, group, version, plural, namespace, name):
        try:
            return copy.deepcopy(self.objects[(plural, namespace, name)])
        except KeyError:
            raise client.exceptions.ApiException(status=404, reason="Not Found") from None

    def _patch(self, group, version, plural, namespace, name, body, **kwargs):
        stored = self.objects.get((plural, namespace, name))
        if stored is None:
            raise client.exceptions.ApiException(status=404, reason="Not Found")
        expected_version = body["metadata"].get("resourceVersion")
        if expected_version is not None and expected_version != stored["metadata"].get("resourceVersion"):
            raise client.exceptions.ApiException(status=409, reason="Conflict")
        self.finalizer_patches.append(body)
        stored["metadata"]["finalizers"] = list(body["metadata"]["finalizers"])
        stored["metadata"]["resourceVersion"] = str(int(stored["metadata"].get("resourceVersion", "1")) + 1)
        return copy.deepcopy(stored)

    def _patch_status(self, group, version, plural, namespace, name, body, **kwargs):
        self.status_patches.append(body)
        stored = self.objects.get((plural, namespace, name))
        if stored is not None:
            stored.setdefault("status", {}).update(body["status"])
        return body


def make_body(
    api_version: str,
    kind: str,
    name: str,
    spec: dict[str, Any],
    namespace: str = "team-a",
    status: dict[str, Any] | None = None,
    finalizers: list[str] | None = None,
    deleting: bool = False,
) -> dict[str, Any]:
    metadata: dict[str, Any] = {
        "name": name,
        "namespace": namespace,
        "uid": f"uid-{name}",
        "resourceVersion": "1",
    }
    if finalizers is not None:
        metadata["finalizers"] = finalizers
    if deleting:
        metadata["deletionTimestamp"] = "2026-01-01T00:00:00Z"
    body = {"apiVersion": api_version, "kind": kind, "metadata": metadata, "spec": spec}
    if status is not None:
        body["status"] = status
    return body


@pytest.fixture(autouse=True)
def mock_kopf_event():
    """Capture Kubernetes events instead of posting them."""
    with patch("console_operator.utils.events.kopf.event") as mock_event:
        yield mock_event


@pytest.fixture
def sql_backend() -> FakeSqlBackend:
    return FakeSqlBackend()


@pytest.fixture
def storage() -> Mock:
    storage = Mock(spec=GarageClient)
    storage.create_bucket.return_value = Bucket(id="xyz")
    storage.create_key.return_value = Key(name="team-a_t1", id="GK123", secret="s3cr3t")
    return storage


@pytest.fixture
def cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture
def core_api() -> Mock:
    return Mock()


@pytest.fixture
def context(sql_backend, storage, cluster, core_api) -> Context:
    return Context(
        backends=BackendRegistry({"pg1": sql_backend}, storage),
        custom_api=cluster,
        core_api=core_api,
        reconcile_interval=300.0,
        retry_interval=300.0,
    )
