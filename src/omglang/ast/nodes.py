"""Immutable OMG syntax tree nodes. Every node owns its children; there are no parent links."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from omglang.models.errors import SourceSpan


class NodeType(StrEnum):
    ROOT = "root"
    VERSION_STMT = "version_stmt"
    VERSION_LITERAL = "version_literal"
    IMPORT_STMT = "import_stmt"
    IMPORT_OPTS = "import_opts"
    IMPORT_FLAG = "import_flag"
    RESOLVER_DEFAULT = "resolver_default"
    RESOLVER_SCOPE = "resolver_scope"
    RULE_DEF = "rule_def"
    USES_CLAUSE = "uses_clause"
    RESOLVER_METHOD = "resolver_method"
    RESOLVER_ARG_LIST = "resolver_arg_list"
    RESOLVER_ARG = "resolver_arg"
    RESOLVER_WITH = "resolver_with"
    RESOLVER_FLAG = "resolver_flag"
    OPTIONAL_TOKENS_CLAUSE = "optional_tokens_clause"
    ALT = "alt"
    CONCAT = "concat"
    QUANTIFIED = "quantified"
    GROUP_EXPR = "group_expr"
    NAMED_CAPTURE = "named_capture"
    LIST_MATCH = "list_match"
    FILTER_EXPR = "filter_expr"
    QMARK = "qmark"
    EXACT_RANGE = "exact_range"
    RANGE = "range"
    ESCAPE = "escape"
    ANCHOR = "anchor"
    DOT = "dot"
    CHARCLASS = "charclass"
    CHAR_RANGE = "char_range"
    CHAR = "char"
    STRING = "string"
    IDENTIFIER = "identifier"
    NUMBER = "number"


@dataclass(frozen=True)
class Position:
    """A 1-based line/column location."""

    line: int
    column: int


@dataclass(frozen=True)
class ASTNode:
    """A positioned OMG syntax tree node.

    ``value`` carries the literal payload for leaf kinds (identifier text,
    quoted string, integer count, flag name). The meaning of ``children`` is
    positional, e.g. the first child of a ``rule_def`` is always the rule name.
    """

    type: NodeType
    span: SourceSpan
    value: str | int | None = None
    children: tuple[ASTNode, ...] = field(default_factory=tuple)

    @property
    def line(self) -> int:
        return self.span.line

    @property
    def column(self) -> int:
        return self.span.column

    @property
    def length(self) -> int:
        return self.span.length

    def child(self, index: int) -> ASTNode | None:
        """Return the child at *index*, or None when absent."""
        if 0 <= index < len(self.children):
            return self.children[index]
        return None

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form used by the API and MCP surfaces.

        ``end_line``/``end_column`` give the exclusive end; ``length`` also
        counts the line breaks of multi-line nodes.
        """
        end_line, end_column = self.span.end
        data: dict[str, Any] = {
            "type": str(self.type),
            "line": self.span.line,
            "column": self.span.column,
            "length": self.span.length,
            "end_line": end_line,
            "end_column": end_column,
        }
        if self.value is not None:
            data["value"] = self.value
        if self.children:
            data["children"] = [c.to_dict() for c in self.children]
        return data
