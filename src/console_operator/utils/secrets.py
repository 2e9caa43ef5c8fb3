"""Credential issuance: generated passwords and immutable Kubernetes secrets."""

from __future__ import annotations

import base64
import logging
import secrets
import string
import time
from typing import Any

from kubernetes import client

from .. import metrics
from ..constants import FIELD_MANAGER, LABEL_MANAGED_BY, LABEL_RESOURCE_KIND, PASSWORD_LENGTH, REPORTER
from .errors import CredentialConflictError, KubeError

logger = logging.getLogger(__name__)

PASSWORD_ALPHABET = string.ascii_letters + string.digits


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    """Generate a random alphanumeric password from a CSPRNG."""
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def create_immutable_secret(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
    data: dict[str, str],
    owner_reference: dict[str, Any],
) -> None:
    """Create an immutable secret owned by a resource.

    The secret is written once and never updated. If a secret with the same
    name already exists the call fails instead of overwriting it.

    Args:
        api: Kubernetes API client
        namespace: Namespace for the secret
        secret_name: Name of the secret
        data: Secret data (will be base64 encoded)
        owner_reference: Owner reference of the resource the secret belongs to

    Raises:
        CredentialConflictError: If the secret already exists
        KubeError: On any other API failure
    """
    secret = client.V1Secret(
        metadata=client.V1ObjectMeta(
            name=secret_name,
            namespace=namespace,
            labels={
                LABEL_MANAGED_BY: REPORTER,
                LABEL_RESOURCE_KIND: owner_reference["kind"],
            },
            owner_references=[owner_reference],
        ),
        type="Opaque",
        immutable=True,
        data={k: base64.b64encode(v.encode("utf-8")).decode("utf-8") for k, v in data.items()},
    )

    start_time = time.time()
    try:
        api.create_namespaced_secret(
            namespace=namespace,
            body=secret,
            field_manager=FIELD_MANAGER,
        )
    except client.exceptions.ApiException as e:
        metrics.api_call_total.labels(api_type="k8s", operation="create_secret", result="error").inc()
        if e.status == 409:
            raise CredentialConflictError(
                f"Secret '{secret_name}' already exists in namespace '{namespace}'"
            ) from e
        raise KubeError(f"Failed to create secret '{secret_name}': {e.reason}", status=e.status) from e
    finally:
        duration = time.time() - start_time
        metrics.api_call_duration_seconds.labels(api_type="k8s", operation="create_secret").observe(duration)

    metrics.api_call_total.labels(api_type="k8s", operation="create_secret", result="success").inc()
    logger.info(f"Created secret {namespace}/{secret_name}")


def delete_secret(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
) -> None:
    """Delete a Kubernetes secret, treating an absent secret as deleted.

    Raises:
        KubeError: If the API call fails for any reason other than 404
    """
    try:
        api.delete_namespaced_secret(name=secret_name, namespace=namespace)
    except client.exceptions.ApiException as e:
        if e.status == 404:
            logger.debug(f"Secret {namespace}/{secret_name} already gone")
            return
        metrics.api_call_total.labels(api_type="k8s", operation="delete_secret", result="error").inc()
        raise KubeError(f"Failed to delete secret '{secret_name}': {e.reason}", status=e.status) from e

    metrics.api_call_total.labels(api_type="k8s", operation="delete_secret", result="success").inc()
    logger.info(f"Deleted secret {namespace}/{secret_name}")
