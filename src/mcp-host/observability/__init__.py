"""Observability utilities and metrics."""

from .metrics import (
    connection_time,
    connections_closed,
    connections_failed,
    connections_opened,
    invocation_errors,
    invocation_time,
    invocations_total,
)

__all__ = [
    # Connection metrics
    "connections_opened",
    "connections_failed",
    "connections_closed",
    "connection_time",
    # Invocation metrics
    "invocations_total",
    "invocation_errors",
    "invocation_time",
]
