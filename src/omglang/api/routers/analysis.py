"""Stateless analysis endpoints: POST /parse and POST /validate."""

from __future__ import annotations

from fastapi import APIRouter, Request

from omglang.api.schemas import (
    ParseErrorDetail,
    ParseRequest,
    ParseResponse,
    ValidateRequest,
    ValidateResponse,
)
from omglang.parser.parser import parse
from omglang.parser.validator import SemanticValidator
from omglang.settings import Settings

router = APIRouter()


@router.post("/parse", response_model=ParseResponse)
def parse_document(body: ParseRequest) -> ParseResponse:
    """Parse OMG text and return the syntax tree with any syntax errors."""
    result = parse(body.text)
    return ParseResponse(
        valid=result.ok,
        ast=result.ast.to_dict(),
        errors=[ParseErrorDetail(**e.model_dump()) for e in result.errors],
    )


@router.post("/validate", response_model=ValidateResponse)
def validate_document(body: ValidateRequest, request: Request) -> ValidateResponse:
    """Parse and validate OMG text; syntax errors come first."""
    settings: Settings = request.app.state.settings
    base_dir = body.base_dir if settings.check_file_references else None
    validator = SemanticValidator(confine_file_references=settings.confine_file_references)

    result = parse(body.text)
    diagnostics = [e.to_diagnostic() for e in result.errors]
    diagnostics.extend(validator.validate(result.ast, body.text, base_dir))
    return ValidateResponse(valid=not diagnostics, diagnostics=diagnostics)
