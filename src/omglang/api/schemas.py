"""API request/response Pydantic schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from omglang.models.errors import Diagnostic, SourceSpan


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = ""


# ---------------------------------------------------------------------------
# Stateless analysis
# ---------------------------------------------------------------------------


class ParseRequest(BaseModel):
    """Request body for POST /parse."""

    text: str = Field(description="OMG source text")


class ParseErrorDetail(BaseModel):
    """A single syntax error."""

    message: str
    line: int
    column: int
    length: int = 1


class ParseResponse(BaseModel):
    """Response body for POST /parse."""

    valid: bool
    ast: dict[str, Any]
    errors: list[ParseErrorDetail] = []


class ValidateRequest(BaseModel):
    """Request body for POST /validate."""

    text: str = Field(description="OMG source text")
    base_dir: str | None = Field(
        default=None,
        description="Directory for resolving imported files; omit to skip file checks",
    )


class ValidateResponse(BaseModel):
    """Response body for POST /validate."""

    valid: bool
    diagnostics: list[Diagnostic] = []


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class DocumentUpdateRequest(BaseModel):
    """Request body for PUT /documents."""

    uri: str = Field(description="Document URI, e.g. file:///work/rules.omg")
    text: str
    version: int = 0


class DocumentResponse(BaseModel):
    """Analysis state of one document revision."""

    uri: str
    version: int
    valid: bool
    diagnostics: list[Diagnostic] = []


class DocumentSummaryResponse(BaseModel):
    """Short summary of an open document."""

    uri: str
    version: int
    rules: int
    imports: int
    diagnostics: int


class DocumentListResponse(BaseModel):
    """Response for GET /documents."""

    documents: list[DocumentSummaryResponse] = []


class DiagnosticsResponse(BaseModel):
    """Response for GET /documents/diagnostics."""

    uri: str
    diagnostics: list[Diagnostic] = []


class PositionRequest(BaseModel):
    """A 1-based cursor position inside an open document."""

    uri: str
    line: int = Field(ge=1)
    column: int = Field(ge=1)


class DefinitionResponse(BaseModel):
    """Response for POST /documents/definition."""

    span: SourceSpan | None = None


class ReferencesResponse(BaseModel):
    """Response for POST /documents/references."""

    spans: list[SourceSpan] = []


class CompletionItemResponse(BaseModel):
    """A single completion candidate."""

    label: str
    kind: str
    detail: str | None = None


class CompletionsResponse(BaseModel):
    """Response for POST /documents/completions."""

    items: list[CompletionItemResponse] = []
