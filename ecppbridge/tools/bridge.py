"""Tool invocation bridge - routes validated tool calls to the ECPP client."""

import logging
from typing import Any, Dict, List, Optional

from ecppbridge.ecpp.client import ECPPClient
from ecppbridge.tools.registry import TOOL_REGISTRY, ToolRegistry
from ecppbridge.tools.schema import ContentBlock

logger = logging.getLogger(__name__)


class ToolBridge:
    """
    Translates a tool call into an ECPPClient operation and its result
    into content blocks.

    Client errors are deliberately not caught: the MCP server reports them
    as a failed tool call.
    """

    def __init__(self, client: ECPPClient, registry: Optional[ToolRegistry] = None):
        self.client = client
        self.registry = registry or TOOL_REGISTRY

    def dispatch(self, tool_name: str, arguments: Optional[Dict[str, Any]] = None) -> List[ContentBlock]:
        """
        Validate and execute one tool call.

        Raises:
            InvalidArgumentsError: Unknown tool or bad arguments.
            ECPPBridgeError: Whatever the client operation raises.
        """
        args = self.registry.validate(tool_name, arguments)
        logger.info("Dispatching tool %s", tool_name)
        return self.registry.handler(tool_name)(self.client, args)
