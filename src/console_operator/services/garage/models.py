"""Data models for the Garage admin API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Bucket:
    """A bucket as returned by the admin API."""

    id: str

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> Bucket:
        return cls(id=data["id"])


@dataclass(frozen=True)
class Key:
    """An access key as returned by the admin API."""

    name: str
    id: str
    secret: str

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> Key:
        return cls(
            name=data.get("name", ""),
            id=data["accessKeyId"],
            secret=data["secretAccessKey"],
        )


@dataclass(frozen=True)
class BucketPermissions:
    """Permission triple of an access key on a bucket."""

    read: bool = False
    write: bool = False
    owner: bool = False

    @classmethod
    def from_spec(cls, spec: dict[str, Any]) -> BucketPermissions:
        return cls(
            read=bool(spec.get("read", False)),
            write=bool(spec.get("write", False)),
            owner=bool(spec.get("owner", False)),
        )

    def complement(self) -> BucketPermissions:
        """Permissions that were not requested."""
        return BucketPermissions(read=not self.read, write=not self.write, owner=not self.owner)

    def to_payload(self) -> dict[str, bool]:
        return {"read": self.read, "write": self.write, "owner": self.owner}
