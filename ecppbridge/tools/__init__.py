"""
ECPP tools - the MCP side of the bridge.

The registry describes the four ECPP tools, the bridge executes them against
the ECPP API, the server exposes them over MCP stdio, and the transport lets
the chat client talk to such a server.

Chat client:   LLM <-- tool specs --> Orchestrator --> MCPTransport --> stdio
MCP server:    stdio --> MCPServer --> ToolBridge --> ECPPClient --> HTTP
"""

from ecppbridge.tools.schema import ContentBlock, ToolDescriptor
from ecppbridge.tools.registry import TOOL_REGISTRY, ToolRegistry
from ecppbridge.tools.bridge import ToolBridge
from ecppbridge.tools.transport import MCPTransport

__all__ = [
    "ContentBlock",
    "ToolDescriptor",
    "ToolRegistry",
    "TOOL_REGISTRY",
    "ToolBridge",
    "MCPTransport",
]
