"""Pydantic domain models for the OMG language service."""

from omglang.models.errors import (
    Diagnostic,
    DiagnosticCode,
    ParseError,
    Severity,
    SourceSpan,
)

__all__ = [
    "Diagnostic",
    "DiagnosticCode",
    "ParseError",
    "Severity",
    "SourceSpan",
]
