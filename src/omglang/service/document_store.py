"""In-memory document cache with navigation queries, shared by MCP and REST API."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from omglang.ast.nodes import ASTNode, NodeType
from omglang.ast.query import find_node_at, find_nodes_of_type, find_path_at, has_ancestor_of_type
from omglang.models.errors import Diagnostic, SourceSpan
from omglang.omg_reference import (
    BUILTIN_RESOLVERS,
    ESCAPE_SEQUENCES,
    FILTER_METHODS,
    IMPORT_FLAGS,
    KEYWORDS,
    QUANTIFIERS,
    RESOLVER_FLAGS,
)
from omglang.parser.parser import ParseResult, parse
from omglang.parser.resolver import base_dir_from_uri
from omglang.parser.validator import SemanticValidator

logger = logging.getLogger("omglang.documents")


class DocumentNotFoundError(KeyError):
    """Raised when a document URI is not in the store."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class DocumentEntry:
    """One cached revision of a document."""

    uri: str
    version: int
    text: str
    result: ParseResult
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def ast(self) -> ASTNode:
        return self.result.ast


@dataclass
class DocumentSummary:
    """Short summary for listing documents."""

    uri: str
    version: int
    rules: int
    imports: int
    diagnostics: int


@dataclass
class CompletionItem:
    """A completion candidate: ``kind`` is rule, list, resolver, filter, keyword, flag, escape or quantifier."""

    label: str
    kind: str
    detail: str | None = None


# ---------------------------------------------------------------------------
# DocumentStore
# ---------------------------------------------------------------------------


class DocumentStore:
    """Per-document parse/validation cache.  Thread-safe via ``threading.Lock``.

    Entries are keyed by document URI and stamped with the client's version.
    An update with the same version and text reuses the cached entry, any
    other update re-parses and re-validates.
    """

    def __init__(
        self, check_file_references: bool = True, confine_file_references: bool = False
    ) -> None:
        self._lock = threading.Lock()
        self._documents: dict[str, DocumentEntry] = {}
        self._validator = SemanticValidator(confine_file_references)
        self._check_file_references = check_file_references

    # -- helpers -------------------------------------------------------------

    def _analyze(self, uri: str, text: str, version: int) -> DocumentEntry:
        result = parse(text)
        base_dir = base_dir_from_uri(uri) if self._check_file_references else None
        diagnostics = [error.to_diagnostic() for error in result.errors]
        diagnostics.extend(self._validator.validate(result.ast, text, base_dir))
        return DocumentEntry(
            uri=uri, version=version, text=text, result=result, diagnostics=diagnostics
        )

    # -- public API ----------------------------------------------------------

    def update(self, uri: str, text: str, version: int = 0) -> DocumentEntry:
        """Store a revision of *uri*, re-analysing only when it changed."""
        with self._lock:
            cached = self._documents.get(uri)
        if cached is not None and cached.version == version and cached.text == text:
            logger.debug("Document cache hit: %s (version %d)", uri, version)
            return cached

        logger.debug("Analysing %s (version %d)", uri, version)
        entry = self._analyze(uri, text, version)
        with self._lock:
            self._documents[uri] = entry
        return entry

    def get(self, uri: str) -> DocumentEntry:
        """Look up a cached document.  Raises ``DocumentNotFoundError`` if absent."""
        with self._lock:
            try:
                return self._documents[uri]
            except KeyError:
                raise DocumentNotFoundError(f"No document open with uri '{uri}'") from None

    def close(self, uri: str) -> None:
        """Drop a document.  Raises ``DocumentNotFoundError`` if absent."""
        with self._lock:
            try:
                del self._documents[uri]
            except KeyError:
                raise DocumentNotFoundError(f"No document open with uri '{uri}'") from None

    def list_documents(self) -> list[DocumentSummary]:
        with self._lock:
            entries = list(self._documents.values())

        return [
            DocumentSummary(
                uri=e.uri,
                version=e.version,
                rules=len(find_nodes_of_type(e.ast, NodeType.RULE_DEF)),
                imports=len(find_nodes_of_type(e.ast, NodeType.IMPORT_STMT)),
                diagnostics=len(e.diagnostics),
            )
            for e in entries
        ]

    def diagnostics(self, uri: str) -> list[Diagnostic]:
        """Syntax errors first, then semantic diagnostics."""
        return list(self.get(uri).diagnostics)

    def definition(self, uri: str, line: int, column: int) -> SourceSpan | None:
        """Span of the rule or import that defines the identifier at the position."""
        entry = self.get(uri)
        node = find_node_at(entry.ast, line, column)
        if node is None or node.type != NodeType.IDENTIFIER:
            return None

        for rule in find_nodes_of_type(entry.ast, NodeType.RULE_DEF):
            name = rule.child(0)
            if name is not None and name.value == node.value:
                return rule.span
        for stmt in find_nodes_of_type(entry.ast, NodeType.IMPORT_STMT):
            alias = stmt.child(1)
            if alias is not None and alias.value == node.value:
                return stmt.span
        return None

    def references(self, uri: str, line: int, column: int) -> list[SourceSpan]:
        """Spans of every identifier with the same name as the one at the position."""
        entry = self.get(uri)
        node = find_node_at(entry.ast, line, column)
        if node is None or node.type != NodeType.IDENTIFIER:
            return []
        return [
            ident.span
            for ident in find_nodes_of_type(entry.ast, NodeType.IDENTIFIER)
            if ident.value == node.value
        ]

    def completions(self, uri: str, line: int, column: int) -> list[CompletionItem]:
        """Completion candidates for the context at the position.

        The context comes from the node just before the cursor, so a
        position at the end of a partially typed word still resolves to
        the construct being typed.
        """
        entry = self.get(uri)
        path = find_path_at(entry.ast, line, max(column - 1, 1))

        def within(node_type: NodeType) -> bool:
            return bool(path) and (path[-1].type == node_type or has_ancestor_of_type(path, node_type))

        items: list[CompletionItem] = []
        if within(NodeType.FILTER_EXPR):
            items.extend(CompletionItem(k, "filter", d) for k, d in FILTER_METHODS.items())
        elif within(NodeType.LIST_MATCH):
            items.extend(CompletionItem(a, "list") for a in _import_aliases(entry.ast))
        elif within(NodeType.USES_CLAUSE):
            items.extend(CompletionItem(k, "resolver", d) for k, d in BUILTIN_RESOLVERS.items())
            items.extend(CompletionItem(k, "flag", d) for k, d in RESOLVER_FLAGS.items())
        elif within(NodeType.IMPORT_STMT):
            items.extend(CompletionItem(k, "flag", d) for k, d in IMPORT_FLAGS.items())
        elif within(NodeType.RULE_DEF):
            items.extend(CompletionItem(r, "rule") for r in _rule_names(entry.ast))
            items.extend(CompletionItem(k, "escape", d) for k, d in ESCAPE_SEQUENCES.items())
            items.extend(CompletionItem(k, "quantifier", d) for k, d in QUANTIFIERS.items())
            items.append(CompletionItem("uses", "keyword", KEYWORDS["uses"]))
        else:
            items.extend(CompletionItem(k, "keyword", d) for k, d in KEYWORDS.items())

        seen: set[str] = set()
        unique = [i for i in items if not (i.label in seen or seen.add(i.label))]
        logger.debug("%d completions at %s:%d:%d", len(unique), uri, line, column)
        return unique


def _rule_names(ast: ASTNode) -> list[str]:
    names: list[str] = []
    for rule in find_nodes_of_type(ast, NodeType.RULE_DEF):
        name = rule.child(0)
        if name is not None:
            names.append(str(name.value))
    return names


def _import_aliases(ast: ASTNode) -> list[str]:
    aliases: list[str] = []
    for stmt in find_nodes_of_type(ast, NodeType.IMPORT_STMT):
        alias = stmt.child(1)
        if alias is not None:
            aliases.append(str(alias.value))
    return aliases
