"""
ECPP Bridge core module.

Provides the transcript types and the tool-calling conversation loop.
"""

from ecppbridge.core.messages import Message, ToolCallRequest
from ecppbridge.core.orchestrator import Orchestrator

__all__ = ["Message", "ToolCallRequest", "Orchestrator"]
