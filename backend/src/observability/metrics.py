"""Prometheus metrics for the records core.

Defines operational counters for checkout, versioning, lifecycle and
retention so dashboards can watch edit throughput and disposal scheduling.
"""

from prometheus_client import Counter

# Checkout metrics
checkout_operations_total = Counter(
    "records_checkout_operations_total",
    "Checkout protocol operations",
    ["operation", "status"]  # operation: checkout|checkin|discard|force_discard, status: success|rejected
)

# Version metrics
versions_created_total = Counter(
    "records_versions_created_total",
    "Document versions appended to a version chain",
    ["version_type"]  # Major|Minor
)

# Lifecycle metrics
state_transitions_total = Counter(
    "records_state_transitions_total",
    "Lifecycle state transitions applied",
    ["from_state", "to_state", "system"]
)

# Retention metrics
retention_operations_total = Counter(
    "records_retention_operations_total",
    "Retention schedule changes",
    ["operation"]  # apply|trigger|suspend|resume
)
