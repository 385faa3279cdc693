"""Structured error models with OMG source position tracking."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

DIAGNOSTIC_SOURCE = "omg"


class SourceSpan(BaseModel):
    """Points to an exact location in OMG source for error reporting.

    ``line`` and ``column`` are 1-based; ``length`` counts characters.
    ``end_line``/``end_column`` mark the exclusive end of the span.
    """

    model_config = ConfigDict(frozen=True)

    line: int
    column: int
    length: int = 0
    end_line: int | None = None
    end_column: int | None = None

    @property
    def end(self) -> tuple[int, int]:
        """Exclusive end position as ``(line, column)``."""
        if self.end_line is not None and self.end_column is not None:
            return self.end_line, self.end_column
        return self.line, self.column + self.length

    def covers(self, line: int, column: int) -> bool:
        return (self.line, self.column) <= (line, column) < self.end

    def contains(self, other: SourceSpan) -> bool:
        return (self.line, self.column) <= (other.line, other.column) and other.end <= self.end


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


class DiagnosticCode(StrEnum):
    SYNTAX_ERROR = "syntax-error"
    UNDEFINED_REFERENCE = "undefined-reference"
    UNBOUNDED_QUANTIFIER = "unbounded-quantifier"
    OPEN_ENDED_QUANTIFIER = "open-ended-quantifier"
    MISSING_IMPORT_FILE = "missing-import-file"
    MISSING_OPTIONAL_TOKENS_FILE = "missing-optional-tokens-file"


class ParseError(BaseModel):
    """A syntax error reported by the parser."""

    message: str
    line: int
    column: int
    length: int = 1

    @property
    def span(self) -> SourceSpan:
        return SourceSpan(line=self.line, column=self.column, length=self.length)

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            span=self.span,
            message=self.message,
            severity=Severity.ERROR,
            code=DiagnosticCode.SYNTAX_ERROR,
        )


class Diagnostic(BaseModel):
    """A single problem found in an OMG document."""

    span: SourceSpan
    message: str
    severity: Severity = Severity.ERROR
    code: DiagnosticCode
    source: str = DIAGNOSTIC_SOURCE
