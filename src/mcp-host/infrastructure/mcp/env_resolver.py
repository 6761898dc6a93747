"""MCP server secrets resolver.

Merges per-server secrets kept in a YAML file into server descriptors, so
API keys and tokens need not travel with the descriptor itself:
- Plain entries become environment variables for stdio servers
- ``MCP_HEADER_*`` entries become HTTP headers for http servers

Values carried by the descriptor always win over file values.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from domain.models import ServerDescriptor

logger = logging.getLogger(__name__)

HEADER_PREFIX = "MCP_HEADER_"

# ${NAME} references inside secret values
_ENV_REFERENCE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass
class ResolutionResult:
    """Result of secrets resolution for one server.

    Attributes:
        environment: Variables to merge under the descriptor env
        headers: Headers to merge under the descriptor headers
        warnings: Problems found while resolving (e.g. unset references)
    """

    environment: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        """Check that every reference could be resolved."""
        return len(self.warnings) == 0


def header_name(variable: str) -> str:
    """Convert ``MCP_HEADER_X_API_KEY`` into ``X-API-KEY``."""
    return variable[len(HEADER_PREFIX) :].replace("_", "-")


class McpEnvironmentResolver:
    """Resolver for per-server secrets.

    Expected file format:
    ```yaml
    servers:
      github:
        GITHUB_TOKEN: ghp-...
      remote-search:
        MCP_HEADER_AUTHORIZATION: Bearer ${SEARCH_TOKEN}
    ```

    Usage:
        resolver = McpEnvironmentResolver("secrets/mcp-servers.yaml")
        descriptor = resolver.apply(descriptor)
    """

    def __init__(
        self,
        secrets_path: str | Path | None = None,
        allow_os_env: bool = True,
    ):
        """Initialize the resolver.

        Args:
            secrets_path: Path to the secrets YAML file. No file means no secrets.
            allow_os_env: Whether ``${NAME}`` references are expanded from the OS environment.
        """
        self._secrets: dict[str, dict[str, str]] = {}
        self._allow_os_env = allow_os_env
        self._path: Path | None = Path(secrets_path) if secrets_path else None
        self._load_secrets()

    def _load_secrets(self) -> None:
        """Load secrets from the YAML file."""
        if not self._path:
            return
        if not self._path.exists():
            logger.debug(f"MCP secrets file not found: {self._path}")
            return

        try:
            with open(self._path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load MCP secrets file {self._path}: {e}")
            return

        servers = data.get("servers") if isinstance(data, dict) else None
        if not isinstance(servers, dict):
            logger.debug(f"MCP secrets file {self._path} has no 'servers' section")
            return

        for server_id, values in servers.items():
            if not isinstance(values, dict):
                logger.warning(f"Ignoring MCP secrets for '{server_id}': expected a mapping")
                continue
            self._secrets[str(server_id)] = {str(k): str(v) for k, v in values.items() if v is not None}
        logger.info(f"Loaded MCP secrets for {len(self._secrets)} server(s)")

    def _expand(self, name: str, value: str, result: ResolutionResult) -> str:
        if not self._allow_os_env:
            return value

        def replace(match: re.Match[str]) -> str:
            reference = match.group(1)
            if reference in os.environ:
                return os.environ[reference]
            result.warnings.append(f"'{name}' references unset variable '{reference}'")
            return ""

        return _ENV_REFERENCE.sub(replace, value)

    def resolve(self, server_id: str) -> ResolutionResult:
        """Resolve the secrets configured for a server.

        Args:
            server_id: Identifier of the server in the secrets file

        Returns:
            ResolutionResult with environment variables and headers
        """
        result = ResolutionResult()
        for name, value in self._secrets.get(server_id, {}).items():
            resolved = self._expand(name, value, result)
            if name.startswith(HEADER_PREFIX) and len(name) > len(HEADER_PREFIX):
                result.headers[header_name(name)] = resolved
            else:
                result.environment[name] = resolved
            logger.debug(f"Resolved secret {name} for server '{server_id}'")

        for warning in result.warnings:
            logger.warning(f"MCP secrets for '{server_id}': {warning}")
        return result

    def apply(self, descriptor: ServerDescriptor) -> ServerDescriptor:
        """Return the descriptor with its configured secrets merged in.

        Descriptor values take precedence over file values.
        """
        if descriptor.id not in self._secrets:
            return descriptor
        result = self.resolve(descriptor.id)
        return descriptor.with_overrides(env=result.environment, headers=result.headers)
