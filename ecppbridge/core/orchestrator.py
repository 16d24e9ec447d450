"""
ECPP Bridge Orchestrator - the tool-calling conversation loop.

Each query runs a bounded loop:
1. Ask the model for a reply, given the whole transcript and the tool list
2. If the reply requests tools, call each one in order and append its result
3. Repeat until the model answers without tool calls

The transcript lives in memory for the lifetime of the orchestrator.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ecppbridge.core.messages import Message, ToolCallRequest
from ecppbridge.errors import MaxToolIterationsExceeded
from ecppbridge.tools.registry import TOOL_REGISTRY
from ecppbridge.validation.config import DEFAULT_SYSTEM_PROMPT

if TYPE_CHECKING:
    from ecppbridge.providers.base import Provider
    from ecppbridge.tools.transport import MCPTransport

logger = logging.getLogger(__name__)

NO_RESPONSE = "No response generated"


def _block_text(item: Any) -> str:
    if isinstance(item, dict) and item.get("type") == "text":
        return str(item.get("text") or "")
    return str(item)


def format_tool_response(content: Any) -> str:
    """Flatten MCP content blocks into one tool-message payload."""
    if isinstance(content, list):
        return ", ".join(_block_text(item) for item in content)
    return str(content)


class Orchestrator:
    """
    Runs user queries through the model, executing requested tools.

    Tool calls go through ``tool_caller`` (anything with
    ``call_tool(name, arguments) -> dict``, normally an MCPTransport).

    A failed pass leaves no trace: the transcript is restored to what it was
    before the query, so no tool call is ever left without its result.

    Example:
        >>> orchestrator = Orchestrator(provider, transport)
        >>> orchestrator.process_query("login as alice/secret")
        'You are logged in as alice.'
    """

    def __init__(
        self,
        provider: "Provider",
        tool_caller: "MCPTransport",
        tools: Optional[List[Dict[str, Any]]] = None,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        max_tool_iterations: int = 10,
    ):
        """
        Initialize the orchestrator.

        Args:
            provider: LLM chat provider.
            tool_caller: Executes tool calls.
            tools: Function-tool specs offered to the model. Defaults to the
                ECPP tool registry.
            system_prompt: First transcript message.
            max_tool_iterations: Model calls allowed per query.
        """
        self.provider = provider
        self.tool_caller = tool_caller
        self.tools = tools if tools is not None else TOOL_REGISTRY.llm_tools()
        self.system_prompt = system_prompt
        self.max_tool_iterations = max_tool_iterations
        self._messages: List[Message] = [Message.system(system_prompt)]

    @property
    def transcript(self) -> List[Message]:
        return list(self._messages)

    def process_query(self, query: str) -> str:
        """
        Answer one user query.

        Raises:
            MaxToolIterationsExceeded: The model never stopped requesting tools.
            ECPPBridgeError: The model or a tool call failed.
        """
        checkpoint = len(self._messages)
        self._messages.append(Message.user(query))
        try:
            return self._run_until_answered()
        except Exception:
            del self._messages[checkpoint:]
            raise

    def _run_until_answered(self) -> str:
        for iteration in range(1, self.max_tool_iterations + 1):
            response = self.provider.chat(list(self._messages), self.tools)
            message = response.message
            self._messages.append(message)

            if not message.has_tool_calls:
                return message.content or NO_RESPONSE

            logger.info(
                "Iteration %d: model requested %s",
                iteration,
                ", ".join(call.name for call in message.tool_calls),
            )
            for call in message.tool_calls:
                self._messages.append(self._run_tool(call))

        raise MaxToolIterationsExceeded(self.max_tool_iterations)

    def _run_tool(self, call: ToolCallRequest) -> Message:
        result = self.tool_caller.call_tool(call.name, call.arguments)
        text = format_tool_response(result.get("content", []))
        if result.get("isError"):
            logger.warning("Tool %s reported an error: %s", call.name, text)
            text = f"Error: {text}"
        return Message.tool(call.name, text, call.call_id)
