"""
MCP stdio server exposing the ECPP tools.

Reads newline-delimited JSON-RPC 2.0 messages from stdin and writes responses
to stdout. All logging goes to stderr. Run it directly or via
``ecppbridge-server``.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import IO, Any, Dict, List, Optional

import click

from ecppbridge import __version__
from ecppbridge.errors import ECPPBridgeError, InvalidArgumentsError
from ecppbridge.tools.bridge import ToolBridge
from ecppbridge.tools.registry import TOOL_REGISTRY, ToolRegistry

logger = logging.getLogger(__name__)

SERVER_NAME = "ecppbridge"
DEFAULT_PROTOCOL_VERSION = "2024-11-05"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

PROMPTS: Dict[str, Dict[str, Any]] = {
    "login_ecpp": {
        "description": "Ask the assistant to log in to ECPP with the given credentials",
        "arguments": [
            {"name": "username", "description": "ECPP username", "required": True},
            {"name": "password", "description": "ECPP password", "required": True},
        ],
        "template": "please login and auth in ecpp with username {username} and password {password}",
    },
}


def _error(message_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": message_id, "error": {"code": code, "message": message}}


def _result(message_id: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": message_id, "result": result}


class MCPServer:
    """
    Answers MCP requests: tool listing and dispatch, prompts, handshake.

    Tool failures are reported two ways:
    - bad arguments or an unknown tool become a JSON-RPC ``-32602`` error
    - errors raised while running the tool become a result with ``isError``
    """

    def __init__(self, bridge: ToolBridge, registry: Optional[ToolRegistry] = None):
        self.bridge = bridge
        self.registry = registry or TOOL_REGISTRY

    # ── Message handling ──────────────────────────────────────────────────

    def handle_message(self, message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Handle one JSON-RPC message; returns None for notifications."""
        method = message.get("method")
        message_id = message.get("id")
        is_notification = "id" not in message

        if not isinstance(method, str):
            return None if is_notification else _error(message_id, INVALID_REQUEST, "Invalid request")

        params = message.get("params") or {}
        try:
            if method == "initialize":
                result = self._initialize(params)
            elif method.startswith("notifications/"):
                return None
            elif method == "ping":
                result = {}
            elif method == "tools/list":
                result = {"tools": self.registry.mcp_tools()}
            elif method == "tools/call":
                result = self._call_tool(params)
            elif method == "prompts/list":
                result = {"prompts": self._list_prompts()}
            elif method == "prompts/get":
                result = self._get_prompt(params)
            else:
                return None if is_notification else _error(
                    message_id, METHOD_NOT_FOUND, f"Method not found: {method}"
                )
        except InvalidArgumentsError as exc:
            logger.warning("%s", exc)
            return _error(message_id, INVALID_PARAMS, str(exc))
        except Exception as exc:
            logger.exception("Error handling %s", method)
            return _error(message_id, INTERNAL_ERROR, f"Internal error: {exc}")

        return None if is_notification else _result(message_id, result)

    def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "protocolVersion": params.get("protocolVersion") or DEFAULT_PROTOCOL_VERSION,
            "capabilities": {
                "tools": {"listChanged": False},
                "prompts": {"listChanged": False},
            },
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
        }

    def _call_tool(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidArgumentsError("(unnamed)", "tool name is required")

        try:
            blocks = self.bridge.dispatch(name, params.get("arguments"))
        except InvalidArgumentsError:
            raise
        except ECPPBridgeError as exc:
            logger.error("Tool %s failed: %s", name, exc)
            return {"content": [{"type": "text", "text": str(exc)}], "isError": True}

        return {"content": [block.model_dump() for block in blocks]}

    def _list_prompts(self) -> List[Dict[str, Any]]:
        return [
            {"name": name, "description": prompt["description"], "arguments": prompt["arguments"]}
            for name, prompt in PROMPTS.items()
        ]

    def _get_prompt(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        prompt = PROMPTS.get(name)
        if prompt is None:
            raise InvalidArgumentsError(str(name), f"Unknown prompt: {name}")

        arguments = params.get("arguments") or {}
        missing = [
            arg["name"] for arg in prompt["arguments"]
            if arg.get("required") and not arguments.get(arg["name"])
        ]
        if missing:
            raise InvalidArgumentsError(name, f"missing prompt arguments: {', '.join(missing)}")

        values = {arg["name"]: arguments.get(arg["name"], "") for arg in prompt["arguments"]}
        text = prompt["template"].format(**values)
        return {
            "description": prompt["description"],
            "messages": [{"role": "user", "content": {"type": "text", "text": text}}],
        }

    # ── Stdio loop ────────────────────────────────────────────────────────

    def serve(self, stdin: Optional[IO[str]] = None, stdout: Optional[IO[str]] = None) -> None:
        """Process messages until stdin closes."""
        stdin = stdin or sys.stdin
        stdout = stdout or sys.stdout

        for line in stdin:
            line = line.strip()
            if not line:
                continue
            try:
                message = json.loads(line)
            except ValueError as exc:
                logger.error("Invalid JSON received: %s", exc)
                self._send(stdout, _error(None, PARSE_ERROR, "Parse error"))
                continue

            if not isinstance(message, dict):
                self._send(stdout, _error(None, INVALID_REQUEST, "Invalid request"))
                continue

            response = self.handle_message(message)
            if response is not None:
                self._send(stdout, response)

    @staticmethod
    def _send(stdout: IO[str], payload: Dict[str, Any]) -> None:
        stdout.write(json.dumps(payload) + "\n")
        stdout.flush()


@click.command()
@click.option("--log-level", default=None, help="Log level for stderr output")
def main(log_level: Optional[str]) -> None:
    """Run the ECPP MCP server on stdin/stdout."""
    from ecppbridge.cli.logging_setup import configure_logging
    from ecppbridge.ecpp.client import ECPPClient
    from ecppbridge.validation.config import Config

    try:
        config = Config.load()
        configure_logging(log_level or config.merged.logging.level)
        client = ECPPClient.from_config(config)
        server = MCPServer(ToolBridge(client))
    except Exception as exc:
        click.echo(f"Fatal error starting MCP server: {exc}", err=True)
        sys.exit(1)

    logger.info("MCP Server running on stdio")
    try:
        server.serve()
    finally:
        client.close()


if __name__ == "__main__":
    main()
