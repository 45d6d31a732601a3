"""Exception hierarchy shared by the ingestion, retrieval and analysis layers.

    ComplianceKBError
    +-- ValidationError        bad or missing request input (HTTP 400)
    +-- ConfigurationError     missing keys / incompatible settings at startup
    +-- ExternalServiceError   embedding, LLM, vector store or network failure
    +-- ParseError             the LLM did not return the expected JSON
"""

from __future__ import annotations


class ComplianceKBError(Exception):
    """Base error; ``provider_name`` names the external service involved, if any."""

    def __init__(self, message: str = "An unexpected error occurred", provider_name: str | None = None) -> None:
        self.message = message
        self.provider_name = provider_name
        super().__init__(message)

    def __str__(self) -> str:
        if self.provider_name:
            return f"[{self.provider_name}] {self.message}"
        return self.message


class ValidationError(ComplianceKBError):
    pass


class ConfigurationError(ComplianceKBError):
    pass


class ExternalServiceError(ComplianceKBError):
    pass


class ParseError(ComplianceKBError):
    pass


__all__ = [
    "ComplianceKBError",
    "ValidationError",
    "ConfigurationError",
    "ExternalServiceError",
    "ParseError",
]
