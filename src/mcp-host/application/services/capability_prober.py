"""Capability prober.

Determines what a server actually supports by calling each list method,
independently of what it declared during the handshake. A failing probe
only turns its own capability off.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from domain.models import ServerCapabilities
from infrastructure.mcp import (
    McpClient,
    McpPromptDefinition,
    McpResourceDefinition,
    McpToolDefinition,
    McpTransportError,
)

logger = logging.getLogger(__name__)


@dataclass
class ProbeResult:
    """Capabilities and catalogs discovered on a server."""

    capabilities: ServerCapabilities = field(default_factory=ServerCapabilities)
    tools: list[McpToolDefinition] = field(default_factory=list)
    resources: list[McpResourceDefinition] = field(default_factory=list)
    prompts: list[McpPromptDefinition] = field(default_factory=list)


class McpCapabilityProber:
    """Probe resources, tools and prompts of an initialized client.

    Args:
        probe_timeout: Optional timeout for each list call, in seconds
    """

    def __init__(self, probe_timeout: float | None = None):
        self._probe_timeout = probe_timeout

    async def probe(self, client: McpClient) -> ProbeResult:
        """Run the three probes concurrently and combine their outcome."""
        resources, tools, prompts = await asyncio.gather(
            self._probe("resources", client.list_resources),
            self._probe("tools", client.list_tools),
            self._probe("prompts", client.list_prompts),
        )

        result = ProbeResult(
            capabilities=ServerCapabilities(
                resources=resources is not None,
                tools=tools is not None,
                prompts=prompts is not None,
            ),
            tools=tools or [],
            resources=resources or [],
            prompts=prompts or [],
        )

        declared = client.server_info.capabilities if client.server_info else {}
        for name, supported in result.capabilities.to_dict().items():
            if supported != (name in declared):
                logger.debug(f"Server declared {name}={name in declared} but probing found {supported}")

        return result

    async def _probe(self, name: str, list_method: Callable[..., Awaitable[list[Any]]]) -> list[Any] | None:
        """Call one list method; None means the capability is unsupported."""
        try:
            return await list_method(timeout=self._probe_timeout)
        except McpTransportError as e:
            logger.debug(f"Capability '{name}' unavailable: {e}")
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Capability '{name}' returned a malformed catalog: {e}")
        return None
