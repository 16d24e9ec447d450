"""
ECPP Bridge errors.

Every failure the bridge raises derives from ECPPBridgeError so the CLI and the
MCP server can catch the whole family in one place.
"""

from typing import Optional


class ECPPBridgeError(Exception):
    """Base class for all bridge errors."""

    pass


class AuthError(ECPPBridgeError):
    """Raised when login cannot obtain a session identifier or user data."""

    pass


class UnauthenticatedError(ECPPBridgeError):
    """Raised when an authenticated operation runs without a session token."""

    def __init__(self, message: str = "No valid session ID. Please login again."):
        super().__init__(message)


class RemoteError(ECPPBridgeError):
    """Raised when the remote API answers with a non-success status."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class InvalidArgumentsError(ECPPBridgeError):
    """Raised when tool arguments fail schema validation."""

    def __init__(self, tool_name: str, detail: str):
        super().__init__(f"Invalid arguments for {tool_name}: {detail}")
        self.tool_name = tool_name
        self.detail = detail


class TransportError(ECPPBridgeError):
    """Raised when the MCP subprocess channel or a network call fails."""

    pass


class ParseError(ECPPBridgeError):
    """Raised when a response expected to be JSON cannot be decoded."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class MaxToolIterationsExceeded(ECPPBridgeError):
    """Raised when the model keeps requesting tools past the iteration cap."""

    def __init__(self, iterations: int):
        super().__init__(
            f"Model still requested tools after {iterations} iterations; giving up"
        )
        self.iterations = iterations
