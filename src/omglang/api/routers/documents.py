"""Document endpoints: cached analysis and navigation per document URI."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query

from omglang.api.deps import get_document_store
from omglang.api.schemas import (
    CompletionItemResponse,
    CompletionsResponse,
    DefinitionResponse,
    DiagnosticsResponse,
    DocumentListResponse,
    DocumentResponse,
    DocumentSummaryResponse,
    DocumentUpdateRequest,
    PositionRequest,
    ReferencesResponse,
)
from omglang.service.document_store import DocumentNotFoundError, DocumentStore

router = APIRouter()


def _not_found(uri: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Document '{uri}' not found")


@router.put("", response_model=DocumentResponse)
def update_document(
    body: DocumentUpdateRequest,
    store: DocumentStore = Depends(get_document_store),  # noqa: B008
) -> DocumentResponse:
    """Open or update a document and return its diagnostics."""
    entry = store.update(body.uri, body.text, body.version)
    return DocumentResponse(
        uri=entry.uri,
        version=entry.version,
        valid=not entry.diagnostics,
        diagnostics=entry.diagnostics,
    )


@router.get("", response_model=DocumentListResponse)
def list_documents(
    store: DocumentStore = Depends(get_document_store),  # noqa: B008
) -> DocumentListResponse:
    """List all open documents."""
    return DocumentListResponse(
        documents=[DocumentSummaryResponse(**asdict(s)) for s in store.list_documents()]
    )


@router.get("/diagnostics", response_model=DiagnosticsResponse)
def get_diagnostics(
    uri: str = Query(description="Document URI"),
    store: DocumentStore = Depends(get_document_store),  # noqa: B008
) -> DiagnosticsResponse:
    """Syntax and semantic diagnostics of an open document."""
    try:
        diagnostics = store.diagnostics(uri)
    except DocumentNotFoundError:
        raise _not_found(uri) from None
    return DiagnosticsResponse(uri=uri, diagnostics=diagnostics)


@router.post("/definition", response_model=DefinitionResponse)
def find_definition(
    body: PositionRequest,
    store: DocumentStore = Depends(get_document_store),  # noqa: B008
) -> DefinitionResponse:
    """Locate the rule or import defining the identifier at the position."""
    try:
        span = store.definition(body.uri, body.line, body.column)
    except DocumentNotFoundError:
        raise _not_found(body.uri) from None
    return DefinitionResponse(span=span)


@router.post("/references", response_model=ReferencesResponse)
def find_references(
    body: PositionRequest,
    store: DocumentStore = Depends(get_document_store),  # noqa: B008
) -> ReferencesResponse:
    """All occurrences of the identifier at the position."""
    try:
        spans = store.references(body.uri, body.line, body.column)
    except DocumentNotFoundError:
        raise _not_found(body.uri) from None
    return ReferencesResponse(spans=spans)


@router.post("/completions", response_model=CompletionsResponse)
def get_completions(
    body: PositionRequest,
    store: DocumentStore = Depends(get_document_store),  # noqa: B008
) -> CompletionsResponse:
    """Completion candidates for the context at the position."""
    try:
        items = store.completions(body.uri, body.line, body.column)
    except DocumentNotFoundError:
        raise _not_found(body.uri) from None
    return CompletionsResponse(items=[CompletionItemResponse(**asdict(i)) for i in items])


@router.delete("", status_code=204)
def close_document(
    uri: str = Query(description="Document URI"),
    store: DocumentStore = Depends(get_document_store),  # noqa: B008
) -> None:
    """Close a document and drop its cached analysis."""
    try:
        store.close(uri)
    except DocumentNotFoundError:
        raise _not_found(uri) from None
