"""
Constants for MDB_CONNECTOR.

This module contains all shared constants used across the codebase to avoid
magic numbers and improve maintainability.
"""

from typing import Final

# ============================================================================
# CONNECTION CONSTANTS
# ============================================================================

DEFAULT_MONGODB_PORT: Final[int] = 27017
"""Port used for standard connections when none is configured."""

DEFAULT_DATABASE_NAME: Final[str] = "test"
"""Database used when a connection string does not name one."""

MANAGED_CLUSTER_DOMAIN_SUFFIX: Final[str] = ".mongodb.net"
"""Hosts containing this suffix are Atlas clusters and use SRV discovery."""

MANAGED_CLUSTER_OPTIONS: Final[tuple[tuple[str, str], ...]] = (
    ("authSource", "admin"),
    ("retryWrites", "true"),
    ("w", "majority"),
)
"""Fixed URI options appended to every Atlas (SRV) connection."""

TLS_OPTION: Final[tuple[str, str]] = ("tls", "true")
"""URI option appended to standard connections when TLS is requested."""

SCHEME_STANDARD: Final[str] = "mongodb"
SCHEME_MANAGED_SRV: Final[str] = "mongodb+srv"

CLIENT_APP_NAME: Final[str] = "MDB_CONNECTOR"
"""Application name reported to the server."""

CONNECTIVITY_TEST_POOL_SIZE: Final[int] = 1
"""Connection pool size for the connectivity test."""

# ============================================================================
# SETTINGS DEFAULTS
# ============================================================================

DEFAULT_CONNECTION_TIMEOUT_MS: Final[int] = 5000
"""Default server selection and connect timeout in milliseconds."""

MIN_CONNECTION_TIMEOUT_MS: Final[int] = 1
"""Smallest accepted connection timeout in milliseconds."""

DEFAULT_READ_PREFERENCE: Final[str] = "primary"

READ_PREFERENCES: Final[tuple[str, ...]] = (
    "primary",
    "primaryPreferred",
    "secondary",
    "secondaryPreferred",
    "nearest",
)
"""Read preference modes accepted by the driver."""

DEFAULT_CONTINUE_ON_FAIL: Final[bool] = False

# ============================================================================
# CREDENTIAL RECORD
# ============================================================================

CREDENTIAL_TYPE: Final[str] = "mongoDb"
"""Name under which the credential record is requested from the host."""

CONFIGURATION_TYPE_CONNECTION_STRING: Final[str] = "connectionString"
CONFIGURATION_TYPE_INDIVIDUAL: Final[str] = "individual"
DEFAULT_CONFIGURATION_TYPE: Final[str] = CONFIGURATION_TYPE_INDIVIDUAL

# ============================================================================
# OPERATION PARAMETERS
# ============================================================================

PARAM_OPERATION: Final[str] = "operation"
PARAM_COLLECTION: Final[str] = "collection"

DEFAULT_FIND_LIMIT: Final[int] = 50
"""Limit applied to find when returnAll is disabled and no limit is given."""

UNBOUNDED_LIMIT: Final[int] = 0
"""A limit of zero means no limit is applied to the cursor."""

# ============================================================================
# ERROR ANNOTATIONS (continue-on-fail)
# ============================================================================

ERROR_FLAG_KEY: Final[str] = "error"
ERROR_MESSAGE_KEY: Final[str] = "errorMessage"
ERROR_DETAILS_KEY: Final[str] = "errorDetails"
ERROR_CAUSE_KEY: Final[str] = "errorCause"
