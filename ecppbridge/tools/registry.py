"""Tool registry - the static table of ECPP tools, their argument schemas and handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple, Type

from pydantic import ValidationError

from ecppbridge.errors import InvalidArgumentsError
from ecppbridge.tools.schema import (
    ContentBlock,
    CreateBusinessSenderArgs,
    ListCreatedReviewsArgs,
    LoginArgs,
    SearchSendersArgs,
    ToolArgs,
    ToolArguments,
    ToolDescriptor,
    parameters_schema,
)

if TYPE_CHECKING:
    from ecppbridge.ecpp.client import ECPPClient

LOGIN_TOOL = "loginECPP"
SEARCH_SENDERS_TOOL = "searchSenders"
CREATE_BUSINESS_SENDER_TOOL = "createBusinessSender"
LIST_CREATED_REVIEWS_TOOL = "getCreatedReviewByYou"

ToolHandler = Callable[["ECPPClient", Any], List[ContentBlock]]


def _login(client: "ECPPClient", args: LoginArgs) -> List[ContentBlock]:
    return ContentBlock.from_lines(client.login(args.username, args.password).describe())


def _search_senders(client: "ECPPClient", args: SearchSendersArgs) -> List[ContentBlock]:
    return ContentBlock.from_lines(client.search_senders(args.sender_name))


def _list_created_reviews(client: "ECPPClient", args: ListCreatedReviewsArgs) -> List[ContentBlock]:
    return ContentBlock.from_lines(client.list_created_reviews())


def _create_business_sender(client: "ECPPClient", args: CreateBusinessSenderArgs) -> List[ContentBlock]:
    return [ContentBlock(text=client.create_business_sender(args.to_fields()))]


# (name, description, argument model, handler)
TOOL_DEFINITIONS: List[Tuple[str, str, Type[ToolArgs], ToolHandler]] = [
    (LOGIN_TOOL, "login and auth in ecpp", LoginArgs, _login),
    (SEARCH_SENDERS_TOOL, "search senders", SearchSendersArgs, _search_senders),
    (
        LIST_CREATED_REVIEWS_TOOL,
        "list created transfers created by user",
        ListCreatedReviewsArgs,
        _list_created_reviews,
    ),
    (
        CREATE_BUSINESS_SENDER_TOOL,
        "create business sender data",
        CreateBusinessSenderArgs,
        _create_business_sender,
    ),
]


class ToolRegistry:
    """
    Serves tool descriptors to both the LLM request and the MCP server.

    Descriptors, argument models and handlers are built from one table, so
    every advertised tool can be validated and dispatched.
    """

    def __init__(self, definitions: Optional[List[Tuple[str, str, Type[ToolArgs], ToolHandler]]] = None):
        self._descriptors: Dict[str, ToolDescriptor] = {}
        self._models: Dict[str, Type[ToolArgs]] = {}
        self._handlers: Dict[str, ToolHandler] = {}
        for name, description, model, handler in definitions or TOOL_DEFINITIONS:
            self._descriptors[name] = ToolDescriptor(
                name=name,
                description=description,
                parameters=parameters_schema(model),
            )
            self._models[name] = model
            self._handlers[name] = handler

    # ── Lookup ────────────────────────────────────────────────────────────

    def get(self, name: str) -> Optional[ToolDescriptor]:
        return self._descriptors.get(name)

    def handler(self, name: str) -> ToolHandler:
        """Handler for a tool name already accepted by ``validate``."""
        return self._handlers[name]

    def names(self) -> List[str]:
        return list(self._descriptors)

    def descriptors(self) -> List[ToolDescriptor]:
        return list(self._descriptors.values())

    # ── Advertisement ─────────────────────────────────────────────────────

    def llm_tools(self) -> List[Dict[str, Any]]:
        """Tool list for the ``tools`` field of an LLM chat request."""
        return [descriptor.llm_spec() for descriptor in self._descriptors.values()]

    def mcp_tools(self) -> List[Dict[str, Any]]:
        """Tool list for an MCP ``tools/list`` response."""
        return [descriptor.mcp_spec() for descriptor in self._descriptors.values()]

    # ── Validation ────────────────────────────────────────────────────────

    def validate(self, name: str, arguments: Optional[Dict[str, Any]]) -> ToolArguments:
        """
        Validate raw arguments for a tool and return its typed argument variant.

        Raises:
            InvalidArgumentsError: Unknown tool, or missing/mistyped fields.
        """
        model = self._models.get(name)
        if model is None:
            raise InvalidArgumentsError(name, f"Unknown tool: {name}")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise InvalidArgumentsError(name, "arguments must be a JSON object")
        try:
            return model.model_validate(arguments)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc']) or '(root)'}: {err['msg']}"
                for err in exc.errors()
            )
            raise InvalidArgumentsError(name, problems) from exc


TOOL_REGISTRY = ToolRegistry()
