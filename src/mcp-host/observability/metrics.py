"""Business metrics for the MCP host service.

Defines OpenTelemetry metrics for:
- Connections: connect, disconnect and test lifecycle
- Invocations: tool calls, resource reads and prompt retrievals
"""

from opentelemetry import metrics

meter = metrics.get_meter(__name__)

# =============================================================================
# CONNECTION METRICS
# =============================================================================

connections_opened = meter.create_counter(
    name="mcp_host.connections.opened",
    description="Total successful server connections",
    unit="1",
)

connections_failed = meter.create_counter(
    name="mcp_host.connections.failed",
    description="Total failed connection attempts",
    unit="1",
)

connections_closed = meter.create_counter(
    name="mcp_host.connections.closed",
    description="Total server disconnections",
    unit="1",
)

connection_time = meter.create_histogram(
    name="mcp_host.connections.duration",
    description="Time to connect, handshake and probe a server",
    unit="ms",
)

# =============================================================================
# INVOCATION METRICS
# =============================================================================

invocations_total = meter.create_counter(
    name="mcp_host.invocations.count",
    description="Total tool calls, resource reads and prompt retrievals",
    unit="1",
)

invocation_errors = meter.create_counter(
    name="mcp_host.invocations.errors",
    description="Total failed invocations",
    unit="1",
)

invocation_time = meter.create_histogram(
    name="mcp_host.invocations.duration",
    description="Time to complete an invocation",
    unit="ms",
)
