"""Constants for the console operator."""

import os

# API Groups
POSTGRESQL_GROUP = "postgresql.tjo.cloud"
S3_GROUP = "s3.tjo.cloud"
API_VERSION = "v1"

# Resource Kinds
KIND_DATABASE = "Database"
KIND_USER = "User"
KIND_BUCKET = "Bucket"
KIND_TOKEN = "Token"

# Plurals
PLURAL_DATABASES = "databases"
PLURAL_USERS = "users"
PLURAL_BUCKETS = "buckets"
PLURAL_TOKENS = "tokens"

# Finalizers
FINALIZER = "console.tjo.cloud"

# Field Manager
FIELD_MANAGER = "console-operator"
CONTROLLER_NAME = "console-operator"
REPORTER = "console.tjo.cloud"

# Labels
LABEL_MANAGED_BY = "console.tjo.cloud/managed-by"
LABEL_RESOURCE_KIND = "console.tjo.cloud/resource-kind"

# Timing
RECONCILE_INTERVAL_SECONDS = float(os.getenv("RECONCILE_INTERVAL_SECONDS", "300"))
RETRY_INTERVAL_SECONDS = float(os.getenv("RETRY_INTERVAL_SECONDS", "300"))

# PostgreSQL
POSTGRESQL_APPLICATION_NAME = "console-tjo-cloud"
POSTGRESQL_DEFAULT_PORT = 5432
POSTGRESQL_HEALTH_CHECK_INTERVAL_SECONDS = float(os.getenv("POSTGRESQL_HEALTH_CHECK_INTERVAL_SECONDS", "30"))
POSTGRESQL_MAX_IDENTIFIER_LENGTH = 63
PASSWORD_LENGTH = 16

# Names that are always rejected
ILLEGAL_NAME = "illegal"

# Event Reasons
EVENT_REASON_CREATION_REQUESTED = "CreationRequested"
EVENT_REASON_CREATION_COMPLETED = "CreationCompleted"
EVENT_REASON_DELETE_REQUESTED = "DeleteRequested"
EVENT_REASON_DELETE_COMPLETED = "DeleteCompleted"
EVENT_REASON_RECONCILE_COMPLETED = "ReconcileCompleted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
