from .client import GarageClient
from .models import Bucket, BucketPermissions, Key

__all__ = ["Bucket", "BucketPermissions", "GarageClient", "Key"]
