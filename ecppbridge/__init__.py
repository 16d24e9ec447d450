"""
ECPP Bridge - chat with a local LLM that can operate the ECPP business API.

Two halves talk MCP over stdio:
- The chat client runs the tool-calling conversation loop against an LLM
  and forwards every requested tool call to an MCP server subprocess.
- The MCP server exposes login, sender search, business sender creation and
  transfer batch listing, backed by the ECPP HTTP API.

Architecture:
- The session token lives in the server's ECPPClient, never in a global
- Tool schemas are declared once and shared by the LLM and MCP sides
- Every query runs a bounded loop; nothing is persisted between runs
"""

__version__ = "1.0.0"
__license__ = "Apache-2.0"

from ecppbridge.core.orchestrator import Orchestrator
from ecppbridge.ecpp.client import ECPPClient
from ecppbridge.tools.bridge import ToolBridge

__all__ = [
    "Orchestrator",
    "ECPPClient",
    "ToolBridge",
    "__version__",
]
