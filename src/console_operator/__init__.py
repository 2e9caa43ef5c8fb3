"""Kubernetes operator managing PostgreSQL databases and users and Garage buckets and tokens."""

__version__ = "0.1.0"
