"""Test fixtures package."""

from .factories import DescriptorFactory, ToolResultFactory
from .fake_peer import FakeTransport, FakeTransportFactory, ScriptedMcpServer
from .http_peer import HttpPeer

__all__ = [
    "DescriptorFactory",
    "ToolResultFactory",
    "FakeTransport",
    "FakeTransportFactory",
    "ScriptedMcpServer",
    "HttpPeer",
]
