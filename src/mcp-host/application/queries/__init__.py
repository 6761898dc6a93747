"""Application queries package.

Read-side requests: connection states, resource reads and prompt retrieval.
"""

from .get_connections_query import GetConnectionsQuery, GetConnectionsQueryHandler
from .get_prompt_query import GetPromptQuery, GetPromptQueryHandler
from .read_resource_query import ReadResourceQuery, ReadResourceQueryHandler

__all__ = [
    "GetConnectionsQuery",
    "GetConnectionsQueryHandler",
    "ReadResourceQuery",
    "ReadResourceQueryHandler",
    "GetPromptQuery",
    "GetPromptQueryHandler",
]
