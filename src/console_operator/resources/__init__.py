"""Per-kind create/delete state machines."""

from .base import ResourceMachine
from .bucket import BucketMachine
from .database import DatabaseMachine
from .token import TokenMachine
from .user import UserMachine

__all__ = [
    "BucketMachine",
    "DatabaseMachine",
    "ResourceMachine",
    "TokenMachine",
    "UserMachine",
]
