"""
Prometheus metrics for the data layer.
Exported through the default registry; whoever hosts the process decides
how to expose it.
"""

import time
from contextlib import contextmanager

from prometheus_client import Counter, Histogram

from eventhub.core.errors import DataLayerError

# Connection manager
connection_attempts = Counter(
    'eventhub_connection_attempts_total',
    'Connection attempts started by the connection manager',
    ['result']  # success, failure
)

# Document writes
document_writes = Counter(
    'eventhub_document_writes_total',
    'Document write operations',
    ['entity', 'operation', 'result']  # event/booking, create/update, success/rejected/error
)

write_latency = Histogram(
    'eventhub_write_latency_seconds',
    'Latency of a single document write including validation',
    ['entity'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Booking -> Event existence checks
reference_checks = Counter(
    'eventhub_reference_checks_total',
    'Event existence checks performed on booking writes',
    ['result']  # found, missing, error
)


@contextmanager
def track_write(entity: str, operation: str):
    """Count and time one document write. Data-layer errors count as rejections."""
    started = time.perf_counter()
    try:
        yield
    except DataLayerError:
        document_writes.labels(entity=entity, operation=operation, result="rejected").inc()
        raise
    except Exception:
        document_writes.labels(entity=entity, operation=operation, result="error").inc()
        raise
    else:
        document_writes.labels(entity=entity, operation=operation, result="success").inc()
    finally:
        write_latency.labels(entity=entity).observe(time.perf_counter() - started)
