"""Data models for ECPP API payloads: login profile, senders, transfer batches."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def _text(value: Any) -> str:
    """Display form of a payload field; the API is loose about strings vs numbers."""
    return "" if value is None else str(value)


class Profile(BaseModel):
    """The logged-in user as returned by ``/auth/me``."""

    username: str = ""
    display_name: str = ""
    partner_name: str = ""
    roles: List[str] = Field(default_factory=list)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "Profile":
        partner = data.get("partner")
        if not isinstance(partner, dict):
            partner = {}
        return cls(
            username=_text(data.get("username")),
            display_name=_text(data.get("display_name")),
            partner_name=_text(partner.get("name")),
            roles=[_text(role) for role in data.get("roles") or []],
        )

    def describe(self) -> List[str]:
        """Lines shown to the model after a successful login."""
        return [
            f"username is {self.username}",
            f"display name is {self.display_name}",
            f"partner is {self.partner_name}",
            f"role is {','.join(self.roles)}",
        ]


class SenderSummary(BaseModel):
    """One sender row from ``/senders/search``."""

    company_name: Optional[str] = None  # set only for business senders
    last_name: str = ""
    first_name: str = ""

    @property
    def is_business(self) -> bool:
        return self.company_name is not None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "SenderSummary":
        business = data.get("business")
        # an empty business record still marks a business sender
        if isinstance(business, dict):
            return cls(company_name=_text(business.get("company_name")))
        return cls(
            last_name=_text(data.get("legal_name_last")),
            first_name=_text(data.get("legal_name_first")),
        )

    def render(self) -> str:
        if self.is_business:
            return f"Business: {self.company_name}"
        return f"Individual: {self.last_name} {self.first_name}"


class BatchSummary(BaseModel):
    """One transfer batch from ``/transfer-batch/created-by-you``."""

    batch_id: str
    exchange_amount: Any = None
    to_currency_code: str = ""
    checker: Any = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "BatchSummary":
        principals = data.get("transfers_principal_info") or [{}]
        first = principals[0] or {}
        return cls(
            batch_id=str(data.get("batch_id", "")),
            exchange_amount=first.get("exchange_amount"),
            to_currency_code=_text(first.get("to_currency_code")),
            checker=data.get("checker"),
        )

    def render(self) -> str:
        return (
            f"{self.batch_id}, {self.exchange_amount}, "
            f"transfer: {self.to_currency_code}, checker: {self.checker}"
        )


class BusinessSenderFields(BaseModel):
    """The nine fields required to create a business sender."""

    company_name: str
    company_trading_name: str
    country_code: str
    company_registration_number: str
    company_registration_country: str
    address_line: str
    address_city: str
    address_country: str
    mobile_number: str

    def to_request_body(self) -> Dict[str, Any]:
        return {
            "segment": "business",
            "country": self.country_code,
            "company_name": self.company_name,
            "company_trading_name": self.company_trading_name,
            "company_registration_number": self.company_registration_number,
            "company_registration_country": self.company_registration_country,
            "address_line": self.address_line,
            "address_city": self.address_city,
            "address_country": self.address_country,
            "mobile_number": self.mobile_number,
        }
