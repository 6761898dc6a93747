"""API layer package.

This package contains the REST controllers (Neuroglia ControllerBase)
exposing server lifecycle and invocation endpoints.
"""

from .controllers import PromptsController, ResourcesController, ServersController, ToolsController

__all__ = [
    "PromptsController",
    "ResourcesController",
    "ServersController",
    "ToolsController",
]
