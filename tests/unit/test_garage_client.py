"""Tests for the Garage admin API client."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from console_operator.services.garage import BucketPermissions, GarageClient
from console_operator.utils.errors import StorageHttpError

URL = "https://garage.example.com"


@pytest.fixture
def garage():
    client = GarageClient(URL, "admin-token")
    yield client
    client.close()


class TestBuckets:
    """Test cases for bucket operations."""

    @respx.mock
    def test_create_bucket(self, garage):
        route = respx.post(f"{URL}/v2/CreateBucket").mock(return_value=httpx.Response(200, json={"id": "xyz"}))

        bucket = garage.create_bucket("b1")

        assert bucket.id == "xyz"
        request = route.calls.last.request
        assert json.loads(request.content) == {"globalAlias": "b1"}
        assert request.headers["Authorization"] == "Bearer admin-token"

    @respx.mock
    def test_delete_bucket(self, garage):
        route = respx.post(f"{URL}/v2/DeleteBucket", params={"id": "xyz"}).mock(return_value=httpx.Response(200))

        garage.delete_bucket("xyz")

        assert route.called

    @respx.mock
    def test_error_status(self, garage):
        respx.post(f"{URL}/v2/CreateBucket").mock(return_value=httpx.Response(409, text="bucket exists"))

        with pytest.raises(StorageHttpError) as exc_info:
            garage.create_bucket("b1")

        assert exc_info.value.status_code == 409
        assert exc_info.value.operation == "create_bucket"

    @respx.mock
    def test_redirect_is_an_error(self, garage):
        """Test that redirects are not followed."""
        respx.post(f"{URL}/v2/CreateBucket").mock(
            return_value=httpx.Response(302, headers={"Location": "https://elsewhere.example.com/"})
        )

        with pytest.raises(StorageHttpError) as exc_info:
            garage.create_bucket("b1")

        assert exc_info.value.status_code == 302

    @respx.mock
    def test_transport_error(self, garage):
        respx.post(f"{URL}/v2/CreateBucket").mock(side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(StorageHttpError) as exc_info:
            garage.create_bucket("b1")

        assert exc_info.value.status_code is None

    @respx.mock
    def test_malformed_response(self, garage):
        respx.post(f"{URL}/v2/CreateBucket").mock(return_value=httpx.Response(200, json={"unexpected": True}))

        with pytest.raises(StorageHttpError):
            garage.create_bucket("b1")


class TestKeys:
    """Test cases for key operations."""

    @respx.mock
    def test_create_key(self, garage):
        route = respx.post(f"{URL}/v2/CreateBucket").mock(
            return_value=httpx.Response(
                200,
                json={"name": "team-a_t1", "accessKeyId": "GK123", "secretAccessKey": "s3cr3t"},
            )
        )

        key = garage.create_key("team-a_t1")

        assert (key.name, key.id, key.secret) == ("team-a_t1", "GK123", "s3cr3t")
        assert json.loads(route.calls.last.request.content) == {
            "name": "team-a_t1",
            "neverExpires": True,
            "allow": {"createBucket": False},
            "deny": {"createBucket": True},
        }

    @respx.mock
    def test_delete_key(self, garage):
        route = respx.post(f"{URL}/v2/DeleteKey", params={"id": "GK123"}).mock(return_value=httpx.Response(200))

        garage.delete_key("GK123")

        assert route.called


class SimulatedGarage:
    """Keeps the permission flags of bucket/key pairs the way Garage does.

    AllowBucketKey sets every flag that is true in the payload, DenyBucketKey
    clears every flag that is true in the payload, false flags are left alone.
    """

    def __init__(self) -> None:
        self.permissions: dict[tuple[str, str], dict[str, bool]] = {}

    def _update(self, request: httpx.Request, value: bool) -> httpx.Response:
        body = json.loads(request.content)
        current = self.permissions.setdefault(
            (body["bucketId"], body["accessKeyId"]), {"read": False, "write": False, "owner": False}
        )
        for flag, requested in body["permissions"].items():
            if requested:
                current[flag] = value
        return httpx.Response(200, json={"id": body["bucketId"]})

    def allow(self, request: httpx.Request) -> httpx.Response:
        return self._update(request, True)

    def deny(self, request: httpx.Request) -> httpx.Response:
        return self._update(request, False)


class TestBucketPermissions:
    """Test cases for set_bucket_permissions."""

    @respx.mock
    def test_call_sequence(self, garage):
        allow = respx.post(f"{URL}/v2/AllowBucketKey").mock(return_value=httpx.Response(200, json={}))
        deny = respx.post(f"{URL}/v2/DenyBucketKey").mock(return_value=httpx.Response(200, json={}))

        garage.set_bucket_permissions("xyz", "GK123", BucketPermissions(read=True))

        assert json.loads(allow.calls.last.request.content) == {
            "bucketId": "xyz",
            "accessKeyId": "GK123",
            "permissions": {"read": True, "write": False, "owner": False},
        }
        assert json.loads(deny.calls.last.request.content)["permissions"] == {
            "read": False,
            "write": True,
            "owner": True,
        }

    @pytest.mark.parametrize(
        "requested",
        [
            BucketPermissions(read=True),
            BucketPermissions(read=True, write=True),
            BucketPermissions(read=True, write=True, owner=True),
            BucketPermissions(),
        ],
    )
    @respx.mock
    def test_effective_permissions_match_request(self, garage, requested):
        """Test against a simulated Garage that the key ends up with exactly the requested rights."""
        simulated = SimulatedGarage()
        simulated.permissions[("xyz", "GK123")] = {"read": True, "write": True, "owner": True}
        respx.post(f"{URL}/v2/AllowBucketKey").mock(side_effect=simulated.allow)
        respx.post(f"{URL}/v2/DenyBucketKey").mock(side_effect=simulated.deny)

        garage.set_bucket_permissions("xyz", "GK123", requested)

        assert simulated.permissions[("xyz", "GK123")] == requested.to_payload()

    @respx.mock
    def test_deny_failure(self, garage):
        respx.post(f"{URL}/v2/AllowBucketKey").mock(return_value=httpx.Response(200, json={}))
        respx.post(f"{URL}/v2/DenyBucketKey").mock(return_value=httpx.Response(500, text="boom"))

        with pytest.raises(StorageHttpError) as exc_info:
            garage.set_bucket_permissions("xyz", "GK123", BucketPermissions(read=True))

        assert exc_info.value.operation == "deny_bucket_key"


class TestBucketPermissionsModel:
    def test_from_spec(self):
        permissions = BucketPermissions.from_spec({"read": True, "bucketRef": {"name": "b1"}})
        assert permissions == BucketPermissions(read=True, write=False, owner=False)

    def test_complement(self):
        assert BucketPermissions(read=True).complement() == BucketPermissions(read=False, write=True, owner=True)
