"""Observability module for the records core.

Provides structured logging, request correlation and Prometheus counters.
"""

from .logging_config import configure_logging, configure_logging_from_settings
from .metrics import (
    checkout_operations_total,
    versions_created_total,
    state_transitions_total,
    retention_operations_total,
)
from .request_id import (
    request_id_var,
    get_request_id,
    set_request_id,
    generate_request_id,
    request_context,
)

__all__ = [
    # Logging
    "configure_logging",
    "configure_logging_from_settings",
    # Metrics
    "checkout_operations_total",
    "versions_created_total",
    "state_transitions_total",
    "retention_operations_total",
    # Request ID
    "request_id_var",
    "get_request_id",
    "set_request_id",
    "generate_request_id",
    "request_context",
]
