"""Semantic validation of parsed OMG documents.

Validation runs independent passes over the syntax tree (and, where
statements may be too malformed to parse, over the raw text).  Each pass
returns its own list of diagnostics; the results are concatenated and
de-duplicated.  Nothing here raises on bad input.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from omglang.ast.nodes import ASTNode, NodeType
from omglang.ast.query import find_nodes_of_type
from omglang.ast.visitor import ASTVisitor
from omglang.models.errors import Diagnostic, DiagnosticCode, Severity, SourceSpan
from omglang.omg_reference import BUILTIN_RESOLVERS
from omglang.parser.resolver import FileReferenceResolver

logger = logging.getLogger("omglang.validator")

_IMPORT_TEXT_RE = re.compile(r'import\s+"([^"]+)"\s+as\s+\w+')
_OPTIONAL_TOKENS_TEXT_RE = re.compile(r'optional-tokens\s*\(\s*"([^"]+)"\s*\)')
_QUANTIFIED_CHAR_RE = re.compile(r"[a-zA-Z0-9\])}.]")

_BOUNDED_HINTS = {"+": "{1,10}", "*": "{0,10}"}


class _ReferenceChecker(ASTVisitor):
    """Reports identifiers in value position that name nothing."""

    def __init__(self, defined: set[str]) -> None:
        super().__init__()
        self.defined = defined
        self.diagnostics: list[Diagnostic] = []

    # Definition subjects are skipped; only their bodies are walked.

    def visit_import_stmt(self, node: ASTNode) -> None:
        return None

    def visit_rule_def(self, node: ASTNode) -> None:
        self.visit_children(node, node.children[1:])

    def visit_named_capture(self, node: ASTNode) -> None:
        self.visit_children(node, node.children[1:])

    def visit_filter_expr(self, node: ASTNode) -> None:
        self.visit_children(node, node.children[1:])

    def visit_resolver_arg(self, node: ASTNode) -> None:
        self.visit_children(node, node.children[-1:])

    def visit_identifier(self, node: ASTNode) -> None:
        name = str(node.value)
        if name not in self.defined:
            self.diagnostics.append(
                Diagnostic(
                    span=node.span,
                    message=f"Undefined rule reference: {name}",
                    code=DiagnosticCode.UNDEFINED_REFERENCE,
                )
            )


class SemanticValidator:
    """Validates a parsed OMG document against the language's semantic rules.

    With ``confine_file_references`` set, file checks never leave the
    document directory (see :class:`FileReferenceResolver`).
    """

    def __init__(self, confine_file_references: bool = False) -> None:
        self.confine_file_references = confine_file_references

    def validate(
        self,
        ast: ASTNode,
        text: str,
        base_dir: str | Path | None = None,
    ) -> list[Diagnostic]:
        resolver = FileReferenceResolver(base_dir, confined=self.confine_file_references)
        diagnostics: list[Diagnostic] = []
        diagnostics.extend(self._check_references(ast))
        diagnostics.extend(self._check_unbounded_ranges(ast))
        diagnostics.extend(self._check_open_ended_quantifiers(text))
        diagnostics.extend(self._check_file_references(ast, resolver))
        diagnostics.extend(self._check_file_references_in_text(text, resolver))

        result = _deduplicate(diagnostics)
        logger.debug("Validation produced %d diagnostics (%d before dedup)", len(result), len(diagnostics))
        return result

    # -- passes --------------------------------------------------------------

    def _check_references(self, ast: ASTNode) -> list[Diagnostic]:
        """Every referenced name must be a rule, an import alias or a built-in resolver."""
        defined = set(BUILTIN_RESOLVERS)
        for rule in find_nodes_of_type(ast, NodeType.RULE_DEF):
            name = rule.child(0)
            if name is not None and name.type == NodeType.IDENTIFIER:
                defined.add(str(name.value))
        for stmt in find_nodes_of_type(ast, NodeType.IMPORT_STMT):
            alias = stmt.child(1)
            if alias is not None and alias.type == NodeType.IDENTIFIER:
                defined.add(str(alias.value))

        checker = _ReferenceChecker(defined)
        checker.visit(ast)
        return checker.diagnostics

    def _check_unbounded_ranges(self, ast: ASTNode) -> list[Diagnostic]:
        """``{n,}`` parses as a range without an upper bound."""
        return [
            Diagnostic(
                span=node.span,
                message="Unbounded quantifiers are not allowed in OMG",
                code=DiagnosticCode.UNBOUNDED_QUANTIFIER,
            )
            for node in find_nodes_of_type(ast, NodeType.RANGE)
            if len(node.children) == 1
        ]

    def _check_open_ended_quantifiers(self, text: str) -> list[Diagnostic]:
        """``+`` and ``*`` are not part of the grammar, so they are found in the text.

        A ``+``/``*`` counts as a quantifier when it directly follows something
        quantifiable and sits outside strings, comments and character classes.
        """
        diagnostics: list[Diagnostic] = []
        for line_no, line in enumerate(text.split("\n"), start=1):
            in_string = False
            class_depth = 0
            index = 0
            while index < len(line):
                char = line[index]
                if char == "\\":
                    index += 2
                    continue
                if in_string:
                    in_string = char != '"'
                elif char == '"':
                    in_string = True
                elif char == "#":
                    break
                elif char == "[":
                    class_depth += 1
                elif char == "]":
                    class_depth = max(0, class_depth - 1)
                elif char in _BOUNDED_HINTS and class_depth == 0 and index > 0:
                    if _QUANTIFIED_CHAR_RE.fullmatch(line[index - 1]):
                        diagnostics.append(
                            Diagnostic(
                                span=_line_span(line_no, index + 1, 1),
                                message=(
                                    f"Open-ended quantifier '{char}' is not allowed in OMG. "
                                    f"Use a bounded quantifier like {_BOUNDED_HINTS[char]} instead."
                                ),
                                code=DiagnosticCode.OPEN_ENDED_QUANTIFIER,
                            )
                        )
                index += 1
        return diagnostics

    def _check_file_references(
        self, ast: ASTNode, resolver: FileReferenceResolver
    ) -> list[Diagnostic]:
        if resolver.base_dir is None:
            return []
        diagnostics: list[Diagnostic] = []

        for stmt in find_nodes_of_type(ast, NodeType.IMPORT_STMT):
            literal = stmt.child(0)
            if literal is None or literal.type != NodeType.STRING:
                continue
            path = resolver.strip_quotes(str(literal.value))
            if path and not resolver.exists(path):
                diagnostics.append(_missing_import(literal.span, path))

        for flag in find_nodes_of_type(ast, NodeType.RESOLVER_FLAG):
            if flag.value != "optional-tokens":
                continue
            for clause in flag.children:
                for literal in clause.children:
                    if literal.type != NodeType.STRING:
                        continue
                    path = resolver.strip_quotes(str(literal.value))
                    if path and not resolver.exists(path):
                        diagnostics.append(_missing_optional_tokens(literal.span, path))
        return diagnostics

    def _check_file_references_in_text(
        self, text: str, resolver: FileReferenceResolver
    ) -> list[Diagnostic]:
        """Same checks on the raw text, for statements too malformed to parse."""
        if resolver.base_dir is None:
            return []
        diagnostics: list[Diagnostic] = []

        for match in _IMPORT_TEXT_RE.finditer(text):
            path = match.group(1)
            if not _in_comment(text, match.start()) and not resolver.exists(path):
                span = _text_span(text, match.start(1) - 1, len(path) + 2)
                diagnostics.append(_missing_import(span, path))

        for match in _OPTIONAL_TOKENS_TEXT_RE.finditer(text):
            path = match.group(1)
            if not _in_comment(text, match.start()) and not resolver.exists(path):
                span = _text_span(text, match.start(1) - 1, len(path) + 2)
                diagnostics.append(_missing_optional_tokens(span, path))
        return diagnostics


def validate(
    ast: ASTNode,
    text: str,
    base_dir: str | Path | None = None,
) -> list[Diagnostic]:
    """Run all semantic checks over a parsed document."""
    return SemanticValidator().validate(ast, text, base_dir)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _missing_import(span: SourceSpan, path: str) -> Diagnostic:
    return Diagnostic(
        span=span,
        message=f"Import file not found: {path}",
        severity=Severity.ERROR,
        code=DiagnosticCode.MISSING_IMPORT_FILE,
    )


def _missing_optional_tokens(span: SourceSpan, path: str) -> Diagnostic:
    return Diagnostic(
        span=span,
        message=f"Optional-tokens file not found: {path}",
        severity=Severity.ERROR,
        code=DiagnosticCode.MISSING_OPTIONAL_TOKENS_FILE,
    )


def _line_span(line: int, column: int, length: int) -> SourceSpan:
    return SourceSpan(
        line=line, column=column, length=length, end_line=line, end_column=column + length
    )


def _text_span(text: str, offset: int, length: int) -> SourceSpan:
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return _line_span(line, column, length)


def _in_comment(text: str, offset: int) -> bool:
    line_start = text.rfind("\n", 0, offset) + 1
    return "#" in text[line_start:offset]


def _deduplicate(diagnostics: list[Diagnostic]) -> list[Diagnostic]:
    seen: set[tuple[int, int, int, str, str]] = set()
    unique: list[Diagnostic] = []
    for diagnostic in diagnostics:
        key = (
            diagnostic.span.line,
            diagnostic.span.column,
            diagnostic.span.length,
            diagnostic.code.value,
            diagnostic.message,
        )
        if key not in seen:
            seen.add(key)
            unique.append(diagnostic)
    return unique
