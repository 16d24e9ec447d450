"""Data models for tool descriptors, validated tool arguments and content blocks."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Type, Union

from pydantic import BaseModel, ConfigDict, Field

from ecppbridge.ecpp.models import BusinessSenderFields


class ContentBlock(BaseModel):
    """Normalized unit of tool output, shared by the LLM and MCP sides."""

    type: Literal["text"] = "text"
    text: str

    @classmethod
    def from_lines(cls, lines: List[str]) -> List["ContentBlock"]:
        return [cls(text=line) for line in lines]


class ToolDescriptor(BaseModel):
    """Name, description and JSON-schema parameters of one tool."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_mcp(cls, raw: Dict[str, Any]) -> "ToolDescriptor":
        """Rebuild a descriptor from a ``tools/list`` entry."""
        return cls(
            name=raw["name"],
            description=raw.get("description") or "",
            parameters=raw.get("inputSchema") or {"type": "object", "properties": {}},
        )

    def llm_spec(self) -> Dict[str, Any]:
        """Function-tool entry for the LLM chat request."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def mcp_spec(self) -> Dict[str, Any]:
        """Entry for an MCP ``tools/list`` response."""
        return {"name": self.name, "description": self.description, "inputSchema": self.parameters}


# ── Validated argument variants, one per tool ─────────────────────────────


class ToolArgs(BaseModel):
    """Base for validated tool arguments; fields are addressed by their camelCase alias."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class LoginArgs(ToolArgs):
    username: str
    password: str


class SearchSendersArgs(ToolArgs):
    sender_name: str = Field(default="", alias="senderName", description="Sender name")


class CreateBusinessSenderArgs(ToolArgs):
    company_name: str = Field(alias="companyName", description="Company name")
    company_trading_name: str = Field(alias="companyTradingName", description="Company trading name")
    country_code: str = Field(alias="countryCode", description="Country code")
    company_registration_number: str = Field(
        alias="companyRegistrationNumber", description="Company registration number"
    )
    company_registration_country: str = Field(
        alias="companyRegistrationCountry", description="Company registration country"
    )
    address_line: str = Field(alias="addressLine", description="Address line")
    address_city: str = Field(alias="addressCity", description="Address city")
    address_country: str = Field(alias="addressCountry", description="Address country")
    mobile_number: str = Field(alias="mobileNumber", description="Mobile number")

    def to_fields(self) -> BusinessSenderFields:
        return BusinessSenderFields(**self.model_dump())


class ListCreatedReviewsArgs(ToolArgs):
    pass


ToolArguments = Union[LoginArgs, SearchSendersArgs, CreateBusinessSenderArgs, ListCreatedReviewsArgs]


def parameters_schema(model: Type[ToolArgs]) -> Dict[str, Any]:
    """JSON schema for an argument model, without pydantic's title noise."""
    schema = model.model_json_schema(by_alias=True)
    schema.pop("title", None)
    schema["type"] = "object"
    properties = schema.setdefault("properties", {})
    for prop in properties.values():
        prop.pop("title", None)
    return schema
