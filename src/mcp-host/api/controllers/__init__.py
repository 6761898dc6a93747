"""API controllers package."""

from .prompts_controller import PromptsController
from .resources_controller import ResourcesController
from .servers_controller import ServersController
from .tools_controller import ToolsController

__all__ = [
    "ServersController",
    "ToolsController",
    "ResourcesController",
    "PromptsController",
]
