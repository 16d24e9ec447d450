"""Tests for the MCP stdio server."""

import io
import json
from unittest.mock import MagicMock

import httpx
import pytest

from ecppbridge.ecpp.client import NOT_LOGGED_IN, ECPPClient
from ecppbridge.ecpp.session import SessionContext
from ecppbridge.errors import RemoteError, UnauthenticatedError
from ecppbridge.tools.bridge import ToolBridge
from ecppbridge.tools.server import INVALID_PARAMS, METHOD_NOT_FOUND, PARSE_ERROR, MCPServer


def request(method, params=None, message_id=1):
    message = {"jsonrpc": "2.0", "id": message_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


@pytest.fixture
def client():
    return MagicMock(spec=ECPPClient)


@pytest.fixture
def server(client):
    return MCPServer(ToolBridge(client))


class TestHandleMessage:
    def test_initialize(self, server):
        response = server.handle_message(request("initialize", {"protocolVersion": "2025-03-26"}))

        result = response["result"]
        assert response["id"] == 1
        assert result["protocolVersion"] == "2025-03-26"
        assert "tools" in result["capabilities"]
        assert result["serverInfo"]["name"] == "ecppbridge"

    def test_initialized_notification_has_no_response(self, server):
        assert server.handle_message({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None

    def test_ping(self, server):
        assert server.handle_message(request("ping"))["result"] == {}

    def test_tools_list(self, server):
        tools = server.handle_message(request("tools/list"))["result"]["tools"]

        assert [tool["name"] for tool in tools] == [
            "loginECPP",
            "searchSenders",
            "getCreatedReviewByYou",
            "createBusinessSender",
        ]
        assert all("inputSchema" in tool for tool in tools)

    def test_tools_call_success(self, server, client):
        client.search_senders.return_value = ["Business: Acme Ltd"]

        response = server.handle_message(
            request("tools/call", {"name": "searchSenders", "arguments": {"senderName": "acme"}})
        )

        assert response["result"] == {"content": [{"type": "text", "text": "Business: Acme Ltd"}]}

    def test_not_logged_in_is_ordinary_content(self, server, client):
        client.search_senders.return_value = [NOT_LOGGED_IN]

        response = server.handle_message(request("tools/call", {"name": "searchSenders", "arguments": {}}))

        assert response["result"]["content"][0]["text"] == NOT_LOGGED_IN
        assert "isError" not in response["result"]

    def test_tool_failure_is_error_result(self, server, client):
        client.create_business_sender.side_effect = RemoteError("duplicate registration", code=400)
        arguments = {
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

        response = server.handle_message(
            request("tools/call", {"name": "createBusinessSender", "arguments": arguments})
        )

        assert response["result"] == {
            "content": [{"type": "text", "text": "duplicate registration"}],
            "isError": True,
        }

    def test_unauthenticated_create_is_error_result(self, server, client):
        client.create_business_sender.side_effect = UnauthenticatedError()
        arguments = {key: "x" for key in (
            "companyName", "companyTradingName", "countryCode", "companyRegistrationNumber",
            "companyRegistrationCountry", "addressLine", "addressCity", "addressCountry", "mobileNumber",
        )}

        response = server.handle_message(
            request("tools/call", {"name": "createBusinessSender", "arguments": arguments})
        )

        assert response["result"]["isError"] is True
        assert "Please login again" in response["result"]["content"][0]["text"]

    def test_invalid_arguments_are_rejected(self, server, client):
        response = server.handle_message(
            request("tools/call", {"name": "loginECPP", "arguments": {"username": "alice"}})
        )

        assert response["error"]["code"] == INVALID_PARAMS
        assert "password" in response["error"]["message"]
        client.login.assert_not_called()

    def test_unknown_tool_is_rejected(self, server):
        response = server.handle_message(request("tools/call", {"name": "getFxRate", "arguments": {}}))

        assert response["error"]["code"] == INVALID_PARAMS

    def test_unknown_method(self, server):
        response = server.handle_message(request("resources/list"))

        assert response["error"]["code"] == METHOD_NOT_FOUND


class TestPrompts:
    def test_prompts_list(self, server):
        prompts = server.handle_message(request("prompts/list"))["result"]["prompts"]

        assert [prompt["name"] for prompt in prompts] == ["login_ecpp"]

    def test_prompts_get(self, server):
        response = server.handle_message(request(
            "prompts/get",
            {"name": "login_ecpp", "arguments": {"username": "alice", "password": "secret"}},
        ))

        message = response["result"]["messages"][0]
        assert message["role"] == "user"
        assert message["content"]["text"] == (
            "please login and auth in ecpp with username alice and password secret"
        )

    def test_prompts_get_missing_argument(self, server):
        response = server.handle_message(
            request("prompts/get", {"name": "login_ecpp", "arguments": {"username": "alice"}})
        )

        assert response["error"]["code"] == INVALID_PARAMS

    def test_prompts_get_unknown(self, server):
        response = server.handle_message(request("prompts/get", {"name": "nope"}))

        assert response["error"]["code"] == INVALID_PARAMS


class TestServe:
    def test_serve_answers_each_request(self, server):
        stdin = io.StringIO(
            json.dumps(request("initialize", {}, message_id=1)) + "\n"
            + json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}) + "\n"
            + "\n"
            + json.dumps(request("tools/list", message_id=2)) + "\n"
        )
        stdout = io.StringIO()

        server.serve(stdin, stdout)

        responses = [json.loads(line) for line in stdout.getvalue().splitlines()]
        assert [response["id"] for response in responses] == [1, 2]

    def test_serve_reports_parse_errors(self, server):
        stdin = io.StringIO("{not json\n" + json.dumps(request("ping", message_id=5)) + "\n")
        stdout = io.StringIO()

        server.serve(stdin, stdout)

        responses = [json.loads(line) for line in stdout.getvalue().splitlines()]
        assert responses[0]["error"]["code"] == PARSE_ERROR
        assert responses[1] == {"jsonrpc": "2.0", "id": 5, "result": {}}


class TestOffShapePayloads:
    def test_numeric_company_name_is_a_normal_result(self):
        def handler(http_request):
            return httpx.Response(200, json={"data": {"senders": [{"business": {"company_name": 12345}}]}})

        http = httpx.Client(base_url="http://ecpp.test/api/v1", transport=httpx.MockTransport(handler))
        client = ECPPClient("http://ecpp.test/api/v1", session=SessionContext("tok"), http_client=http)
        server = MCPServer(ToolBridge(client))

        response = server.handle_message(request("tools/call", {"name": "searchSenders", "arguments": {}}))

        assert response["result"] == {"content": [{"type": "text", "text": "Business: 12345"}]}
