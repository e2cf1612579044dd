"""Business metrics for Prometheus monitoring."""
from prometheus_client import Counter

# Audit metrics
audit_entries_total = Counter(
    "audit_entries_total",
    "Total audit log entries written",
    labelnames=["action"],
)

audit_write_failures_total = Counter(
    "audit_write_failures_total",
    "Audit log writes that failed after the primary action",
    labelnames=["action"],
)

audit_logs_purged_total = Counter(
    "audit_logs_purged_total",
    "Total audit log entries removed by retention purges",
)

# Catalog metrics
product_mutations_total = Counter(
    "product_mutations_total",
    "Product mutations by action",
    labelnames=["action"],  # create, update, delete, restore
)

product_images_uploaded_total = Counter(
    "product_images_uploaded_total",
    "Images uploaded to the blob store",
    labelnames=["content_type"],
)

# Identity metrics
auth_events_total = Counter(
    "auth_events_total",
    "Authentication events",
    labelnames=["event", "status"],  # event: signup, login, logout; status: success, failed
)
