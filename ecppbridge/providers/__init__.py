"""
ECPP Bridge providers module.

This module provides abstractions for LLM chat endpoints.
"""

from ecppbridge.providers.base import Provider, ProviderFactory, ProviderResponse

__all__ = ["Provider", "ProviderFactory", "ProviderResponse"]
