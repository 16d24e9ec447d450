"""
ECPP remote API module.

Client, session holder and payload models for the ECPP business API.
"""

from ecppbridge.ecpp.client import ECPPClient
from ecppbridge.ecpp.models import BatchSummary, BusinessSenderFields, Profile, SenderSummary
from ecppbridge.ecpp.session import SessionContext

__all__ = [
    "ECPPClient",
    "SessionContext",
    "Profile",
    "SenderSummary",
    "BatchSummary",
    "BusinessSenderFields",
]
