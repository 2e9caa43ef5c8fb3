"""Error taxonomy and sanitization utilities to prevent information leakage."""

from __future__ import annotations

import re
from typing import Any


class ConsoleError(Exception):
    """Base class for every error a reconciliation can surface."""

    metric_label = "console_error"


class NotFoundError(ConsoleError):
    """A referenced object does not exist (yet)."""

    metric_label = "not_found"


class UnknownBackendError(ConsoleError):
    """A resource references a backend key that is not configured."""

    metric_label = "unknown_backend"

    def __init__(self, backend: str):
        super().__init__(f"unknown backend {backend!r}")
        self.backend = backend


class BackendMismatchError(ConsoleError):
    """Two dependent resources point at different backends."""

    metric_label = "backend_mismatch"

    def __init__(self, expected: str, actual: str):
        super().__init__(f"backend mismatch: expected {expected!r}, got {actual!r}")
        self.expected = expected
        self.actual = actual


class IllegalIdentifierError(ConsoleError):
    """A name was rejected before reaching any backend."""

    metric_label = "illegal_identifier"


class InvalidSpecError(ConsoleError):
    """A required spec field is missing or empty."""

    metric_label = "invalid_spec"


class SqlError(ConsoleError):
    """A statement failed on a PostgreSQL backend."""

    metric_label = "sql_error"


class SqlConnectionLostError(SqlError):
    """The connection to a PostgreSQL backend is gone for good."""

    metric_label = "sql_connection_lost"


class StorageHttpError(ConsoleError):
    """A call to the object storage admin API failed."""

    metric_label = "storage_http_error"

    def __init__(self, operation: str, status_code: int | None, message: str):
        if status_code is None:
            super().__init__(f"{operation} failed: {message}")
        else:
            super().__init__(f"{operation} failed with status {status_code}: {message}")
        self.operation = operation
        self.status_code = status_code


class KubeError(ConsoleError):
    """A Kubernetes API call failed."""

    metric_label = "kube_error"

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class FinalizerProtocolError(ConsoleError):
    """Adding or removing the finalizer marker failed."""

    metric_label = "finalizer_error"


class CredentialConflictError(ConsoleError):
    """A credential secret with the same name already exists."""

    metric_label = "credential_conflict"


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"password[:=\s]+'([^']*)'",
    r"password[:=\s]+([^\s,;\)]+)",
    r"secret[_\s-]?access[_\s-]?key[:=\s]+([A-Za-z0-9/+=]+)",
    r"bearer\s+([A-Za-z0-9\-\._~\+/]+=*)",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "secret_access_key",
    "secretaccesskey",
    "password",
    "token",
    "credentials",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message
    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, _redact_match, sanitized, flags=re.IGNORECASE)
    return sanitized


def _redact_match(match: re.Match[str]) -> str:
    value = match.group(1)
    if not value:
        return match.group(0)
    return match.group(0).replace(value, "[REDACTED]")


def sanitize_exception(error: BaseException) -> str:
    """Sanitize exception message."""
    return sanitize_error_message(str(error))


def sanitize_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """Sanitize dictionary by redacting sensitive fields.

    Args:
        data: Dictionary to sanitize
        sensitive_keys: Additional keys to redact (merged with SENSITIVE_FIELDS)

    Returns:
        Sanitized dictionary with sensitive values redacted
    """
    all_sensitive = SENSITIVE_FIELDS | (sensitive_keys or set())
    sanitized: dict[str, Any] = {}

    for key, value in data.items():
        key_lower = key.lower().replace("-", "_")
        if any(sensitive in key_lower for sensitive in all_sensitive):
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, sensitive_keys)
        elif isinstance(value, str):
            sanitized[key] = sanitize_error_message(value)
        else:
            sanitized[key] = value

    return sanitized
