"""
Custom exceptions for the assistant, providing a structured error hierarchy.
"""

from typing import Optional


class MyraError(Exception):
    """Base exception for all custom exceptions in this package."""

    pass


class ConfigurationError(MyraError):
    """Raised for errors in configuration, like missing keys or invalid values."""

    pass


class APIError(MyraError):
    """Raised for errors related to external API interactions."""

    pass


class TransportError(APIError):
    """Raised when a backend call times out or answers with a non-success status."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status = status

    def __str__(self) -> str:
        return self.message


class ClassificationError(MyraError):
    """Raised inside the router when the LLM classification is unusable."""

    pass
