"""MCP server communication via stdio subprocess transport."""

from __future__ import annotations

import json
import logging
import os
import subprocess
import sys
import threading
from typing import Any, Dict, List, Optional

from ecppbridge import __version__
from ecppbridge.errors import TransportError

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"


def interpreter_for(script_path: str) -> str:
    """Pick the interpreter for a server script from its extension; `.py` runs under this interpreter."""
    if script_path.endswith(".py"):
        return sys.executable
    if script_path.endswith(".js"):
        return "node"
    raise TransportError("Server script must be a .js or .py file")


class MCPTransport:
    """
    Communicate with an MCP server over stdin/stdout (JSON-RPC).

    The subprocess is started lazily on first use and stopped explicitly
    via ``stop()`` or when the transport is garbage-collected. A server that
    exits on its own is not restarted: it would come back uninitialized and
    without its session. The server's stderr is inherited so its log output
    reaches the terminal.
    """

    def __init__(
        self,
        command: str,
        args: Optional[List[str]] = None,
        env: Optional[Dict[str, str]] = None,
    ):
        self.command = command
        self.args = args or []
        self.env = env or {}
        self._process: Optional[subprocess.Popen] = None
        self._request_id = 0
        self._lock = threading.Lock()

    @classmethod
    def for_script(cls, script_path: str, env: Optional[Dict[str, str]] = None) -> "MCPTransport":
        """Transport that runs a ``.py`` or ``.js`` server script."""
        return cls(command=interpreter_for(script_path), args=[script_path], env=env)

    # ── Lifecycle ─────────────────────────────────────────────────────────

    def start(self) -> None:
        """Spawn the MCP server subprocess."""
        if self._process and self._process.poll() is None:
            return  # already running

        merged_env = {**os.environ, **self.env}
        try:
            self._process = subprocess.Popen(
                [self.command] + self.args,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                env=merged_env,
            )
        except FileNotFoundError:
            raise TransportError(f"MCP server command not found: {self.command}")
        logger.debug("Started MCP server: %s %s", self.command, " ".join(self.args))

    def stop(self) -> None:
        """Terminate the MCP server subprocess."""
        if self._process and self._process.poll() is None:
            try:
                self._process.terminate()
                self._process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self._process.kill()
        self._process = None

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def _ensure_running(self) -> None:
        if self._process is None:
            self.start()
        elif self._process.poll() is not None:
            raise TransportError(f"MCP server exited with code {self._process.returncode}")

    # ── JSON-RPC ──────────────────────────────────────────────────────────

    def _write(self, message: Dict[str, Any]) -> None:
        line = json.dumps(message) + "\n"
        self._process.stdin.write(line.encode())
        self._process.stdin.flush()

    def notify(self, method: str, params: Optional[Dict[str, Any]] = None) -> None:
        """Send a JSON-RPC notification (no response expected)."""
        self._ensure_running()

        message: Dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params:
            message["params"] = params
        with self._lock:
            try:
                self._write(message)
            except (BrokenPipeError, OSError) as exc:
                raise TransportError(f"MCP transport error: {exc}")

    def send(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send a JSON-RPC request and return the result."""
        self._ensure_running()

        with self._lock:
            self._request_id += 1
            request_id = self._request_id
            request = {
                "jsonrpc": "2.0",
                "id": request_id,
                "method": method,
            }
            if params:
                request["params"] = params

            try:
                self._write(request)
                response = self._read_response(request_id)
            except (BrokenPipeError, OSError) as exc:
                raise TransportError(f"MCP transport error: {exc}")

        if "error" in response:
            err = response["error"]
            raise TransportError(f"MCP error {err.get('code')}: {err.get('message')}")

        return response.get("result", {})

    def _read_response(self, request_id: int) -> Dict[str, Any]:
        """Read lines until the response for ``request_id`` arrives."""
        while True:
            raw = self._process.stdout.readline()
            if not raw:
                raise TransportError("MCP server closed connection (empty response)")
            if not raw.strip():
                continue
            try:
                message = json.loads(raw.decode())
            except ValueError as exc:
                raise TransportError(f"MCP server sent malformed JSON: {exc}")
            if message.get("id") == request_id and ("result" in message or "error" in message):
                return message
            # server-initiated notifications and stray messages
            logger.debug("Ignoring MCP message: %s", message.get("method", message))

    # ── MCP Protocol ──────────────────────────────────────────────────────

    def initialize(self) -> Dict[str, Any]:
        """Perform MCP initialize handshake."""
        result = self.send("initialize", {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {},
            "clientInfo": {"name": "ecppbridge-client", "version": __version__},
        })
        self.notify("notifications/initialized")
        return result

    def list_tools(self) -> List[Dict[str, Any]]:
        """Fetch the tool list from the MCP server."""
        result = self.send("tools/list")
        return result.get("tools", [])

    def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Call a tool on the MCP server."""
        return self.send("tools/call", {"name": name, "arguments": arguments or {}})

    # ── Cleanup ───────────────────────────────────────────────────────────

    def __del__(self):
        self.stop()
