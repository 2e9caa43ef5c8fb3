"""Garage admin API client."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from ... import metrics
from ...utils.errors import StorageHttpError, sanitize_error_message
from .models import Bucket, BucketPermissions, Key

logger = logging.getLogger(__name__)

# Key creation shares the bucket endpoint; the payload shape selects the operation.
CREATE_BUCKET_PATH = "/v2/CreateBucket"
CREATE_KEY_PATH = "/v2/CreateBucket"
DELETE_BUCKET_PATH = "/v2/DeleteBucket"
DELETE_KEY_PATH = "/v2/DeleteKey"
ALLOW_BUCKET_KEY_PATH = "/v2/AllowBucketKey"
DENY_BUCKET_KEY_PATH = "/v2/DenyBucketKey"


class GarageClient:
    """Client for the Garage admin API.

    Every operation is a single bearer-authenticated POST. Redirects are not
    followed and nothing is retried: any non-2xx answer raises
    :class:`StorageHttpError` and the caller decides when to try again.
    """

    def __init__(
        self,
        url: str,
        token: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the Garage client.

        Args:
            url: Base URL of the admin API
            token: Admin API bearer token
            timeout: Request timeout in seconds
            transport: Optional transport, used by tests
        """
        self.url = url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.url,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            follow_redirects=False,
            timeout=timeout,
            transport=transport,
        )

    def _post(
        self,
        operation: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        start_time = time.time()
        try:
            response = self._client.post(path, json=json, params=params)
        except httpx.HTTPError as e:
            metrics.api_call_total.labels(api_type="storage", operation=operation, result="error").inc()
            raise StorageHttpError(operation, None, sanitize_error_message(str(e))) from e
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="storage", operation=operation).observe(duration)

        if not response.is_success:
            metrics.api_call_total.labels(api_type="storage", operation=operation, result="error").inc()
            raise StorageHttpError(operation, response.status_code, sanitize_error_message(response.text))

        metrics.api_call_total.labels(api_type="storage", operation=operation, result="success").inc()
        return response

    def _json(self, operation: str, response: httpx.Response) -> dict[str, Any]:
        try:
            return response.json()
        except ValueError as e:
            raise StorageHttpError(operation, response.status_code, "response is not valid JSON") from e

    def create_bucket(self, global_alias: str) -> Bucket:
        """Create a bucket reachable under ``global_alias``."""
        response = self._post("create_bucket", CREATE_BUCKET_PATH, json={"globalAlias": global_alias})
        data = self._json("create_bucket", response)
        try:
            bucket = Bucket.from_response(data)
        except KeyError as e:
            raise StorageHttpError("create_bucket", response.status_code, f"missing field {e}") from e
        logger.info(f"Created bucket alias={global_alias} id={bucket.id}")
        return bucket

    def delete_bucket(self, bucket_id: str) -> None:
        """Delete the bucket with ``bucket_id``."""
        self._post("delete_bucket", DELETE_BUCKET_PATH, params={"id": bucket_id})
        logger.info(f"Deleted bucket id={bucket_id}")

    def create_key(self, name: str) -> Key:
        """Create an access key that can never create buckets and never expires."""
        body = {
            "name": name,
            "neverExpires": True,
            "allow": {"createBucket": False},
            "deny": {"createBucket": True},
        }
        response = self._post("create_key", CREATE_KEY_PATH, json=body)
        data = self._json("create_key", response)
        try:
            key = Key.from_response(data)
        except KeyError as e:
            raise StorageHttpError("create_key", response.status_code, f"missing field {e}") from e
        logger.info(f"Created key name={name} id={key.id}")
        return key

    def delete_key(self, key_id: str) -> None:
        """Delete the access key with ``key_id``."""
        self._post("delete_key", DELETE_KEY_PATH, params={"id": key_id})
        logger.info(f"Deleted key id={key_id}")

    def _bucket_key_permissions(
        self,
        operation: str,
        path: str,
        bucket_id: str,
        key_id: str,
        permissions: BucketPermissions,
    ) -> None:
        body = {
            "bucketId": bucket_id,
            "accessKeyId": key_id,
            "permissions": permissions.to_payload(),
        }
        self._post(operation, path, json=body)

    def set_bucket_permissions(self, bucket_id: str, key_id: str, permissions: BucketPermissions) -> None:
        """Grant the requested permissions, then revoke every permission not requested.

        AllowBucketKey only adds the flags set to true and DenyBucketKey only
        removes the flags set to true, so the deny call carries the complement.
        """
        self._bucket_key_permissions("allow_bucket_key", ALLOW_BUCKET_KEY_PATH, bucket_id, key_id, permissions)
        self._bucket_key_permissions(
            "deny_bucket_key", DENY_BUCKET_KEY_PATH, bucket_id, key_id, permissions.complement()
        )

    def close(self) -> None:
        self._client.close()
