"""Tests for the tool registry, argument models and tool bridge."""

from unittest.mock import MagicMock

import pytest

from ecppbridge.ecpp.client import ECPPClient
from ecppbridge.ecpp.models import BusinessSenderFields, Profile
from ecppbridge.errors import InvalidArgumentsError, RemoteError
from ecppbridge.tools.bridge import ToolBridge
from ecppbridge.tools.registry import (
    CREATE_BUSINESS_SENDER_TOOL,
    LIST_CREATED_REVIEWS_TOOL,
    LOGIN_TOOL,
    SEARCH_SENDERS_TOOL,
    TOOL_REGISTRY,
)
from ecppbridge.tools.schema import (
    ContentBlock,
    CreateBusinessSenderArgs,
    LoginArgs,
    SearchSendersArgs,
    ToolDescriptor,
)

BUSINESS_ARGS = {
    "companyName": "Acme Ltd",
    "companyTradingName": "Acme",
    "countryCode": "SG",
    "companyRegistrationNumber": "201912345K",
    "companyRegistrationCountry": "SG",
    "addressLine": "1 Raffles Place",
    "addressCity": "Singapore",
    "addressCountry": "SG",
    "mobileNumber": "+6591234567",
}


class TestToolRegistry:
    def test_tool_names(self):
        assert TOOL_REGISTRY.names() == [
            "loginECPP",
            "searchSenders",
            "getCreatedReviewByYou",
            "createBusinessSender",
        ]

    def test_llm_and_mcp_specs_agree(self):
        """Every advertised tool name has exactly one schema, shared by both sides."""
        llm_names = [tool["function"]["name"] for tool in TOOL_REGISTRY.llm_tools()]
        mcp_names = [tool["name"] for tool in TOOL_REGISTRY.mcp_tools()]

        assert llm_names == mcp_names == TOOL_REGISTRY.names()
        for llm_tool, mcp_tool in zip(TOOL_REGISTRY.llm_tools(), TOOL_REGISTRY.mcp_tools()):
            assert llm_tool["type"] == "function"
            assert llm_tool["function"]["parameters"] == mcp_tool["inputSchema"]

    def test_login_schema(self):
        schema = TOOL_REGISTRY.get(LOGIN_TOOL).parameters

        assert schema["type"] == "object"
        assert set(schema["properties"]) == {"username", "password"}
        assert set(schema["required"]) == {"username", "password"}
        assert "title" not in schema

    def test_create_business_sender_schema_uses_camel_case(self):
        schema = TOOL_REGISTRY.get(CREATE_BUSINESS_SENDER_TOOL).parameters

        assert set(schema["properties"]) == set(BUSINESS_ARGS)
        assert set(schema["required"]) == set(BUSINESS_ARGS)
        assert schema["properties"]["companyName"] == {"type": "string", "description": "Company name"}

    def test_search_senders_name_is_optional(self):
        schema = TOOL_REGISTRY.get(SEARCH_SENDERS_TOOL).parameters

        assert "senderName" in schema["properties"]
        assert "required" not in schema

    def test_list_reviews_takes_no_arguments(self):
        schema = TOOL_REGISTRY.get(LIST_CREATED_REVIEWS_TOOL).parameters

        assert schema["properties"] == {}

    def test_validate_returns_typed_arguments(self):
        args = TOOL_REGISTRY.validate(LOGIN_TOOL, {"username": "alice", "password": "secret"})

        assert isinstance(args, LoginArgs)
        assert args.username == "alice"

    def test_validate_missing_field(self):
        with pytest.raises(InvalidArgumentsError, match="password"):
            TOOL_REGISTRY.validate(LOGIN_TOOL, {"username": "alice"})

    def test_validate_wrong_type(self):
        with pytest.raises(InvalidArgumentsError, match="senderName"):
            TOOL_REGISTRY.validate(SEARCH_SENDERS_TOOL, {"senderName": 42})

    def test_validate_unknown_tool(self):
        with pytest.raises(InvalidArgumentsError, match="Unknown tool"):
            TOOL_REGISTRY.validate("getFxRate", {})

    def test_validate_non_object_arguments(self):
        with pytest.raises(InvalidArgumentsError):
            TOOL_REGISTRY.validate(LOGIN_TOOL, ["alice", "secret"])

    def test_validate_missing_arguments_defaults_to_empty(self):
        args = TOOL_REGISTRY.validate(SEARCH_SENDERS_TOOL, None)

        assert isinstance(args, SearchSendersArgs)
        assert args.sender_name == ""


class TestSchemaModels:
    def test_business_args_map_to_fields(self):
        args = CreateBusinessSenderArgs.model_validate(BUSINESS_ARGS)

        fields = args.to_fields()

        assert isinstance(fields, BusinessSenderFields)
        assert fields.company_registration_number == "201912345K"
        assert fields.mobile_number == "+6591234567"

    def test_descriptor_from_mcp(self):
        descriptor = ToolDescriptor.from_mcp({"name": "echo"})

        assert descriptor.description == ""
        assert descriptor.parameters == {"type": "object", "properties": {}}
        assert descriptor.llm_spec()["function"]["name"] == "echo"

    def test_content_blocks_from_lines(self):
        blocks = ContentBlock.from_lines(["a", "b"])

        assert [block.model_dump() for block in blocks] == [
            {"type": "text", "text": "a"},
            {"type": "text", "text": "b"},
        ]


class TestToolBridge:
    @pytest.fixture
    def client(self):
        return MagicMock(spec=ECPPClient)

    def test_login_returns_profile_lines(self, client):
        client.login.return_value = Profile(
            username="alice", display_name="Alice", partner_name="EMQ", roles=["maker"]
        )

        blocks = ToolBridge(client).dispatch(LOGIN_TOOL, {"username": "alice", "password": "secret"})

        client.login.assert_called_once_with("alice", "secret")
        assert [block.text for block in blocks] == [
            "username is alice",
            "display name is Alice",
            "partner is EMQ",
            "role is maker",
        ]

    def test_search_preserves_order(self, client):
        client.search_senders.return_value = ["Business: B", "Individual: Tan Mei", "Business: A"]

        blocks = ToolBridge(client).dispatch(SEARCH_SENDERS_TOOL, {"senderName": "a"})

        client.search_senders.assert_called_once_with("a")
        assert [block.text for block in blocks] == ["Business: B", "Individual: Tan Mei", "Business: A"]

    def test_create_business_sender(self, client):
        client.create_business_sender.return_value = "Acme Ltd created successfully"

        blocks = ToolBridge(client).dispatch(CREATE_BUSINESS_SENDER_TOOL, BUSINESS_ARGS)

        fields = client.create_business_sender.call_args.args[0]
        assert fields.company_name == "Acme Ltd"
        assert fields.country_code == "SG"
        assert blocks == [ContentBlock(text="Acme Ltd created successfully")]

    def test_list_created_reviews(self, client):
        client.list_created_reviews.return_value = ["B-1, 10, transfer: PHP, checker: bob"]

        blocks = ToolBridge(client).dispatch(LIST_CREATED_REVIEWS_TOOL, {})

        assert [block.text for block in blocks] == ["B-1, 10, transfer: PHP, checker: bob"]

    def test_every_registered_tool_dispatches(self, client):
        client.login.return_value = Profile(username="alice")
        client.search_senders.return_value = ["Business: Acme Ltd"]
        client.list_created_reviews.return_value = ["B-1, 10, transfer: PHP, checker: bob"]
        client.create_business_sender.return_value = "Acme Ltd created successfully"
        sample_arguments = {
            LOGIN_TOOL: {"username": "alice", "password": "secret"},
            SEARCH_SENDERS_TOOL: {"senderName": "acme"},
            LIST_CREATED_REVIEWS_TOOL: {},
            CREATE_BUSINESS_SENDER_TOOL: BUSINESS_ARGS,
        }
        bridge = ToolBridge(client)

        for name in TOOL_REGISTRY.names():
            blocks = bridge.dispatch(name, sample_arguments[name])

            assert blocks, name
            assert all(isinstance(block, ContentBlock) for block in blocks)

        assert set(sample_arguments) == set(TOOL_REGISTRY.names())
        for method in (client.login, client.search_senders, client.list_created_reviews,
                       client.create_business_sender):
            method.assert_called_once()

    def test_invalid_arguments_never_reach_client(self, client):
        with pytest.raises(InvalidArgumentsError):
            ToolBridge(client).dispatch(CREATE_BUSINESS_SENDER_TOOL, {"companyName": "Acme Ltd"})

        client.create_business_sender.assert_not_called()

    def test_client_errors_propagate(self, client):
        client.create_business_sender.side_effect = RemoteError("duplicate registration", code=400)

        with pytest.raises(RemoteError, match="duplicate registration"):
            ToolBridge(client).dispatch(CREATE_BUSINESS_SENDER_TOOL, BUSINESS_ARGS)
