"""
In-process counters for observability. Process-local; for multi-process use external metrics (e.g. Prometheus).
"""
import threading

# Remote writes (insert/update/upsert/delete) that failed after the optimistic local apply.
remote_write_failures_total: int = 0
_remote_write_failures_lock = threading.Lock()


def increment_remote_write_failures_total() -> int:
    """Increment remote_write_failures_total; return new value. Thread-safe."""
    global remote_write_failures_total
    with _remote_write_failures_lock:
        remote_write_failures_total += 1
        return remote_write_failures_total
