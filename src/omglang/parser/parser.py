"""Recursive-descent parser for OMG rule files.

The parser works directly on characters (no separate lexer) and produces an
immutable, positioned :class:`~omglang.ast.nodes.ASTNode` tree together with
the syntax errors it recovered from.  ``parse()`` never raises: internal
faults degrade to an empty root plus one error.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from omglang.ast.nodes import ASTNode, NodeType, Position
from omglang.models.errors import ParseError, SourceSpan
from omglang.omg_reference import IMPORT_FLAGS
from omglang.parser.scanner import Scanner

logger = logging.getLogger("omglang.parser")

# ---------------------------------------------------------------------------
# Safety limits
# ---------------------------------------------------------------------------

MAX_DOCUMENT_SIZE = 5_000_000  # characters
MAX_NESTING_DEPTH = 64  # nested groups / named captures

_IDENT_RE = re.compile(r"[a-zA-Z0-9_]+(?:\.[a-zA-Z0-9_]+)?")
_VERSION_RE = re.compile(r"[0-9]+\.[0-9]+")
_NUMBER_RE = re.compile(r"[0-9]+")
_ESCAPE_RE = re.compile(r"\\[dDsSwWbB\\\]\[-]")
# An identifier followed by "=" starts the next rule definition.
_RULE_START_RE = re.compile(r"[a-zA-Z0-9_]+(?:\.[a-zA-Z0-9_]+)?[ \t]*=")


@dataclass(frozen=True)
class ParseResult:
    """Syntax tree plus the syntax errors encountered while building it."""

    ast: ASTNode
    errors: list[ParseError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _is_range_end(char: str | None) -> bool:
    return char is not None and char.isascii() and char.isalnum()


def _text_end(text: object) -> tuple[int, int]:
    if not isinstance(text, str):
        return 1, 1
    lines = text.split("\n")
    return len(lines), len(lines[-1]) + 1


def _empty_root(text: object) -> ASTNode:
    end_line, end_column = _text_end(text)
    length = len(text) if isinstance(text, str) else 0
    span = SourceSpan(line=1, column=1, length=length, end_line=end_line, end_column=end_column)
    return ASTNode(type=NodeType.ROOT, span=span)


class OMGParser:
    """Parses one OMG document.

    A parser instance is bound to its text; call :meth:`parse` to build the
    tree.  Calling it again re-parses from scratch and yields an equal result.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self._scanner = Scanner(text)
        self._errors: list[ParseError] = []
        self._depth = 0

    def parse(self) -> ParseResult:
        self._scanner = Scanner(self._text)
        self._errors = []
        self._depth = 0
        try:
            if len(self._text) > MAX_DOCUMENT_SIZE:
                raise ValueError(
                    f"OMG document exceeds maximum size "
                    f"({len(self._text):,} chars > {MAX_DOCUMENT_SIZE:,} limit)"
                )
            ast = self._parse_root()
            return ParseResult(ast=ast, errors=self._errors)
        except Exception as exc:  # noqa: BLE001 - parse() must not raise
            logger.warning("OMG parse aborted: %s", exc, exc_info=True)
            position = self._scanner.position
            self._errors.append(
                ParseError(
                    message=str(exc) or type(exc).__name__,
                    line=position.line,
                    column=position.column,
                    length=1,
                )
            )
            return ParseResult(ast=_empty_root(self._text), errors=self._errors)

    # -- helpers -------------------------------------------------------------

    def _start(self) -> tuple[int, Position]:
        return self._scanner.offset, self._scanner.position

    def _node(
        self,
        node_type: NodeType,
        start: tuple[int, Position],
        *,
        value: str | int | None = None,
        children: Sequence[ASTNode] = (),
    ) -> ASTNode:
        start_offset, start_pos = start
        end_offset, end_pos = self._scanner.mark()
        if end_offset < start_offset:
            end_offset, end_pos = start_offset, start_pos
        span = SourceSpan(
            line=start_pos.line,
            column=start_pos.column,
            length=end_offset - start_offset,
            end_line=end_pos.line,
            end_column=end_pos.column,
        )
        return ASTNode(type=node_type, span=span, value=value, children=tuple(children))

    def _error(self, message: str) -> None:
        position = self._scanner.position
        _, last = self._scanner.mark()
        if last.line < position.line:
            # Point at the end of the last token, not past skipped blank lines.
            position = last
        self._errors.append(
            ParseError(message=message, line=position.line, column=position.column, length=1)
        )

    def _recover(self) -> None:
        """Resume at the next line unless already at the start of one."""
        scanner = self._scanner
        if scanner.at_end or scanner.position.column == 1:
            return
        scanner.skip_line()

    # -- statements ----------------------------------------------------------

    def _parse_root(self) -> ASTNode:
        scanner = self._scanner
        children: list[ASTNode] = []

        scanner.skip_whitespace()
        if scanner.peek_word() == "version":
            self._statement(self._parse_version_statement, children)

        while scanner.peek_word() == "import":
            self._statement(self._parse_import_statement, children)

        if scanner.peek_word() == "resolver":
            self._statement(self._parse_resolver_default, children)

        while not scanner.at_end:
            errors_before = len(self._errors)
            rule = self._parse_rule_definition()
            if rule is None:
                break
            children.append(rule)
            if len(self._errors) > errors_before:
                self._recover()
            scanner.skip_whitespace()

        end_line, end_column = _text_end(self._text)
        span = SourceSpan(
            line=1,
            column=1,
            length=len(self._text),
            end_line=end_line,
            end_column=end_column,
        )
        return ASTNode(type=NodeType.ROOT, span=span, children=tuple(children))

    def _statement(
        self, parse_fn: Callable[[], ASTNode | None], children: list[ASTNode]
    ) -> None:
        errors_before = len(self._errors)
        node = parse_fn()
        if node is not None:
            children.append(node)
        if len(self._errors) > errors_before:
            self._recover()
        self._scanner.skip_whitespace()

    def _parse_version_statement(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()
        if not scanner.consume_word("version"):
            return None
        scanner.skip_whitespace()

        literal = self._parse_version_literal()
        if literal is None:
            self._error('Expected version literal after "version"')
            return None
        return self._node(NodeType.VERSION_STMT, start, children=[literal])

    def _parse_import_statement(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()
        if not scanner.consume_word("import"):
            return None
        scanner.skip_whitespace()

        path = self._parse_string()
        if path is None:
            self._error('Expected string literal after "import"')
            return None
        scanner.skip_whitespace()

        if not scanner.consume_word("as"):
            self._error('Expected "as" after import string')
            return None
        scanner.skip_whitespace()

        alias = self._parse_identifier()
        if alias is None:
            self._error('Expected identifier after "as"')
            return None

        children = [path, alias]
        state = scanner.save()
        scanner.skip_whitespace()
        if scanner.consume_word("with"):
            scanner.skip_whitespace()
            options = self._parse_import_options()
            if options is not None:
                children.append(options)
        else:
            scanner.restore(state)

        return self._node(NodeType.IMPORT_STMT, start, children=children)

    def _parse_import_options(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()
        flags: list[ASTNode] = []

        flag = self._parse_import_flag()
        if flag is None:
            self._error('Expected import flag after "with"')
            return None
        flags.append(flag)

        while self._consume_comma():
            flag = self._parse_import_flag()
            if flag is None:
                self._error('Expected import flag after ","')
                break
            flags.append(flag)

        return self._node(NodeType.IMPORT_OPTS, start, children=flags)

    def _parse_import_flag(self) -> ASTNode | None:
        start = self._start()
        for flag in IMPORT_FLAGS:
            if self._scanner.consume_word(flag):
                return self._node(NodeType.IMPORT_FLAG, start, value=flag)
        return None

    def _parse_resolver_default(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()
        if not scanner.consume_word("resolver"):
            return None
        scanner.skip_whitespace()

        if not scanner.consume_word("default"):
            self._error('Expected "default" after "resolver"')
            return None
        scanner.skip_whitespace()

        if not scanner.consume_word("uses"):
            self._error('Expected "uses" after "resolver default"')
            return None
        scanner.skip_whitespace()

        errors_before = len(self._errors)
        uses = self._parse_uses_clause()
        if uses is None:
            if len(self._errors) == errors_before:
                self._error('Expected uses clause after "uses"')
            return None
        return self._node(NodeType.RESOLVER_DEFAULT, start, children=[uses])

    def _parse_rule_definition(self) -> ASTNode | None:
        scanner = self._scanner
        scanner.skip_whitespace()
        start = self._start()

        name = self._parse_identifier()
        if name is None:
            return None
        scanner.skip_whitespace()

        if not scanner.consume("="):
            self._error('Expected "=" after rule name')
            return self._node(NodeType.RULE_DEF, start, children=[name])
        scanner.skip_whitespace()

        errors_before = len(self._errors)
        expression = self._parse_expression()
        if expression is None:
            if len(self._errors) == errors_before:
                self._error('Expected expression after "="')
            return self._node(NodeType.RULE_DEF, start, children=[name])

        children = [name, expression]
        scanner.skip_whitespace()
        if scanner.consume_word("uses"):
            scanner.skip_whitespace()
            errors_before = len(self._errors)
            uses = self._parse_uses_clause()
            if uses is not None:
                children.append(uses)
            elif len(self._errors) == errors_before:
                self._error('Expected resolver after "uses"')

        return self._node(NodeType.RULE_DEF, start, children=children)

    # -- resolver configuration ----------------------------------------------

    def _parse_uses_clause(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()
        children: list[ASTNode] = []

        if scanner.peek_word() in ("resolver", "default"):
            scope = self._parse_resolver_scope()
            if scope is None:
                return None
            children.append(scope)
            scanner.skip_whitespace()

        method = self._parse_resolver_method()
        if method is not None:
            children.append(method)

        state = scanner.save()
        scanner.skip_whitespace()
        if scanner.consume_word("with"):
            scanner.skip_whitespace()
            flags = self._parse_resolver_with()
            if flags is not None:
                children.append(flags)
        else:
            scanner.restore(state)

        if not children:
            return None
        return self._node(NodeType.USES_CLAUSE, start, children=children)

    def _parse_resolver_scope(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()
        if scanner.consume_word("default"):
            scanner.skip_whitespace()
            if scanner.consume_word("resolver"):
                return self._node(NodeType.RESOLVER_SCOPE, start, value="default resolver")
            self._error('Expected "resolver" after "default"')
            return None
        if scanner.consume_word("resolver"):
            return self._node(NodeType.RESOLVER_SCOPE, start, value="resolver")
        return None

    def _parse_resolver_method(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()
        name = self._parse_identifier()
        if name is None:
            return None

        children = [name]
        state = scanner.save()
        scanner.skip_whitespace()
        if scanner.consume("("):
            scanner.skip_whitespace()
            args = self._parse_resolver_arg_list()
            if args is not None:
                children.append(args)
            scanner.skip_whitespace()
            if not scanner.consume(")"):
                self._error("Expected closing parenthesis for resolver method")
        else:
            scanner.restore(state)

        return self._node(NodeType.RESOLVER_METHOD, start, children=children)

    def _parse_resolver_arg_list(self) -> ASTNode | None:
        start = self._start()
        args: list[ASTNode] = []

        arg = self._parse_resolver_arg()
        if arg is not None:
            args.append(arg)
        while self._consume_comma():
            arg = self._parse_resolver_arg()
            if arg is not None:
                args.append(arg)

        if not args:
            return None
        return self._node(NodeType.RESOLVER_ARG_LIST, start, children=args)

    def _parse_resolver_arg(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()

        # key="value" first, then a bare "value"
        state = scanner.save()
        key = self._parse_identifier()
        if key is not None:
            scanner.skip_whitespace()
            if scanner.consume("="):
                scanner.skip_whitespace()
                value = self._parse_string()
                if value is not None:
                    return self._node(NodeType.RESOLVER_ARG, start, children=[key, value])
            scanner.restore(state)

        value = self._parse_string()
        if value is not None:
            return self._node(NodeType.RESOLVER_ARG, start, children=[value])
        return None

    def _parse_resolver_with(self) -> ASTNode | None:
        start = self._start()
        flags: list[ASTNode] = []

        flag = self._parse_resolver_flag()
        if flag is None:
            self._error('Expected resolver flag after "with"')
            return None
        flags.append(flag)

        while self._consume_comma():
            flag = self._parse_resolver_flag()
            if flag is None:
                self._error('Expected resolver flag after ","')
                break
            flags.append(flag)

        return self._node(NodeType.RESOLVER_WITH, start, children=flags)

    def _parse_resolver_flag(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()

        for flag in ("ignore-case", "ignore-punctuation"):
            if scanner.consume_word(flag):
                return self._node(NodeType.RESOLVER_FLAG, start, value=flag)

        if not scanner.consume_word("optional-tokens"):
            return None
        scanner.skip_whitespace()

        clause_start = self._start()
        if not scanner.consume("("):
            self._error('Expected "(" after optional-tokens')
            return None
        scanner.skip_whitespace()

        tokens: list[ASTNode] = []
        token = self._parse_string()
        if token is not None:
            tokens.append(token)
        while self._consume_comma():
            token = self._parse_string()
            if token is not None:
                tokens.append(token)

        scanner.skip_whitespace()
        if not scanner.consume(")"):
            self._error("Expected closing parenthesis for optional-tokens")
            return None

        clause = self._node(NodeType.OPTIONAL_TOKENS_CLAUSE, clause_start, children=tokens)
        return self._node(NodeType.RESOLVER_FLAG, start, value="optional-tokens", children=[clause])

    def _consume_comma(self) -> bool:
        scanner = self._scanner
        state = scanner.save()
        scanner.skip_whitespace()
        if scanner.consume(","):
            scanner.skip_whitespace()
            return True
        scanner.restore(state)
        return False

    # -- expressions ---------------------------------------------------------

    def _parse_expression(self) -> ASTNode | None:
        return self._parse_alternation()

    def _parse_nested_expression(self) -> ASTNode | None:
        if self._depth >= MAX_NESTING_DEPTH:
            self._error("Maximum nesting depth exceeded")
            return None
        self._depth += 1
        try:
            return self._parse_expression()
        finally:
            self._depth -= 1

    def _parse_alternation(self) -> ASTNode | None:
        scanner = self._scanner
        scanner.skip_whitespace()
        start = self._start()

        first = self._parse_concatenation()
        if first is None:
            return None

        alternatives = [first]
        while scanner.consume("|"):
            scanner.skip_whitespace()
            errors_before = len(self._errors)
            right = self._parse_concatenation()
            if right is None:
                if len(self._errors) == errors_before:
                    self._error('Expected expression after "|"')
                break
            alternatives.append(right)

        if len(alternatives) == 1:
            return first
        return self._node(NodeType.ALT, start, children=alternatives)

    def _parse_concatenation(self) -> ASTNode | None:
        scanner = self._scanner
        scanner.skip_whitespace()
        start = self._start()
        elements: list[ASTNode] = []

        while True:
            scanner.skip_whitespace()
            if self._at_expression_boundary():
                break
            errors_before = len(self._errors)
            element = self._parse_quantified()
            if element is not None:
                elements.append(element)
            if element is None or len(self._errors) > errors_before:
                break

        if not elements:
            return None
        if len(elements) == 1:
            return elements[0]
        return self._node(NodeType.CONCAT, start, children=elements)

    def _at_expression_boundary(self) -> bool:
        scanner = self._scanner
        if scanner.peek_word() == "uses":
            return True
        return _RULE_START_RE.match(scanner.text, scanner.offset) is not None

    def _parse_quantified(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()
        primary = self._parse_primary()
        if primary is None:
            return None

        state = scanner.save()
        scanner.skip_whitespace()
        quantifier = self._parse_quantifier()
        if quantifier is None:
            scanner.restore(state)
            return primary
        return self._node(NodeType.QUANTIFIED, start, children=[primary, quantifier])

    def _parse_primary(self) -> ASTNode | None:
        scanner = self._scanner
        scanner.skip_whitespace()
        # Longest distinguishing prefix decides; no backtracking once committed.
        if scanner.startswith("(?P<"):
            return self._parse_named_capture()
        if scanner.peek() == "(":
            return self._parse_group_expression()
        if scanner.startswith("[["):
            return self._parse_list_match()
        return self._parse_regex_atom()

    def _parse_group_expression(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()
        if not scanner.consume("("):
            return None
        scanner.skip_whitespace()

        errors_before = len(self._errors)
        expression = self._parse_nested_expression()
        if expression is None:
            if len(self._errors) == errors_before:
                self._error("Expected expression in group")
            return None
        scanner.skip_whitespace()

        if not scanner.consume(")"):
            self._error("Expected closing parenthesis")
            return None
        return self._node(NodeType.GROUP_EXPR, start, children=[expression])

    def _parse_named_capture(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()
        if not scanner.consume_literal("(?P<"):
            return None

        name = self._parse_identifier()
        if name is None:
            self._error("Expected identifier in named capture")
            return None
        if not scanner.consume(">"):
            self._error('Expected ">" after named capture identifier')
            return None
        scanner.skip_whitespace()

        errors_before = len(self._errors)
        expression = self._parse_nested_expression()
        if expression is None:
            if len(self._errors) == errors_before:
                self._error("Expected expression in named capture")
            return None
        scanner.skip_whitespace()

        if not scanner.consume(")"):
            self._error("Expected closing parenthesis in named capture")
            return None
        return self._node(NodeType.NAMED_CAPTURE, start, children=[name, expression])

    def _parse_list_match(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()
        if not scanner.consume_literal("[["):
            return None
        scanner.skip_whitespace()

        name = self._parse_identifier()
        if name is None:
            self._error("Expected identifier in list match")
            return None
        children = [name]
        scanner.skip_whitespace()

        if scanner.consume(":"):
            scanner.skip_whitespace()
            errors_before = len(self._errors)
            filter_expr = self._parse_filter_expression()
            if filter_expr is None:
                if len(self._errors) == errors_before:
                    self._error('Expected filter expression after ":"')
                return None
            children.append(filter_expr)
            scanner.skip_whitespace()

        if not scanner.consume_literal("]]"):
            self._error('Expected "]]" to close list match')
            return None
        return self._node(NodeType.LIST_MATCH, start, children=children)

    def _parse_filter_expression(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()
        name = self._parse_identifier()
        if name is None:
            return None
        scanner.skip_whitespace()

        if not scanner.consume("("):
            self._error('Expected "(" after filter name')
            return None
        scanner.skip_whitespace()

        errors_before = len(self._errors)
        argument = self._parse_string()
        if argument is None:
            if len(self._errors) == errors_before:
                self._error("Expected string in filter expression")
            return None
        scanner.skip_whitespace()

        if not scanner.consume(")"):
            self._error("Expected closing parenthesis in filter expression")
            return None
        return self._node(NodeType.FILTER_EXPR, start, children=[name, argument])

    def _parse_quantifier(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()

        if scanner.consume("?"):
            return self._node(NodeType.QMARK, start)

        if not scanner.consume("{"):
            return None

        low = self._parse_number()
        if low is None:
            self._error("Expected number in quantifier")
            return None

        if scanner.consume(","):
            high = self._parse_number()
            children = [low] if high is None else [low, high]
            if not scanner.consume("}"):
                self._error('Expected "}" to close range quantifier')
                return None
            # {n,} parses as a one-child range; the validator rejects it.
            return self._node(NodeType.RANGE, start, children=children)

        if not scanner.consume("}"):
            self._error('Expected "}" to close exact quantifier')
            return None
        return self._node(NodeType.EXACT_RANGE, start, children=[low])

    # -- atoms ---------------------------------------------------------------

    def _parse_regex_atom(self) -> ASTNode | None:
        char = self._scanner.peek()
        if char is None:
            return None
        if char == "\\":
            return self._parse_escape()
        if char in "^$":
            return self._parse_anchor()
        if char == ".":
            return self._parse_dot()
        if char == "[":
            return self._parse_char_class()
        if char == '"':
            return self._parse_string()
        return self._parse_identifier()

    def _parse_escape(self) -> ASTNode | None:
        start = self._start()
        text = self._scanner.match(_ESCAPE_RE)
        if text is None:
            return None
        return self._node(NodeType.ESCAPE, start, value=text)

    def _parse_anchor(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()
        char = scanner.peek()
        if char not in ("^", "$"):
            return None
        scanner.advance()
        return self._node(NodeType.ANCHOR, start, value=char)

    def _parse_dot(self) -> ASTNode | None:
        start = self._start()
        if not self._scanner.consume("."):
            return None
        return self._node(NodeType.DOT, start)

    def _parse_char_class(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()
        if not scanner.consume("["):
            return None

        items: list[ASTNode] = []
        while True:
            char = scanner.peek()
            if char is None or char == "\n":
                self._error('Expected "]" to close character class')
                return None
            if char == "]":
                scanner.advance()
                break
            item = self._parse_char_class_item()
            if item is None:
                # lone backslash with no recognised escape
                scanner.advance()
            else:
                items.append(item)

        return self._node(NodeType.CHARCLASS, start, children=items)

    def _parse_char_class_item(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()
        char = scanner.peek()

        if _is_range_end(char) and scanner.peek_at(1) == "-" and _is_range_end(scanner.peek_at(2)):
            low = scanner.advance()
            scanner.advance()
            high = scanner.advance()
            return self._node(NodeType.CHAR_RANGE, start, value=f"{low}-{high}")

        escape = self._parse_escape()
        if escape is not None:
            return escape

        if char is not None and char not in "]\\":
            scanner.advance()
            return self._node(NodeType.CHAR, start, value=char)
        return None

    def _parse_version_literal(self) -> ASTNode | None:
        start = self._start()
        text = self._scanner.match(_VERSION_RE)
        if text is None:
            return None
        return self._node(NodeType.VERSION_LITERAL, start, value=text)

    def _parse_string(self) -> ASTNode | None:
        scanner = self._scanner
        start = self._start()
        if not scanner.consume('"'):
            return None

        parts: list[str] = []
        while True:
            char = scanner.peek()
            if char is None or char == "\n":
                self._error("Unterminated string literal")
                return None
            if char == '"':
                scanner.advance()
                break
            scanner.advance()
            if char == "\\":
                escaped = scanner.peek()
                if escaped is None or escaped == "\n":
                    continue
                scanner.advance()
                parts.append(char + escaped)
            else:
                parts.append(char)

        return self._node(NodeType.STRING, start, value='"' + "".join(parts) + '"')

    def _parse_identifier(self) -> ASTNode | None:
        start = self._start()
        text = self._scanner.match(_IDENT_RE)
        if text is None:
            return None
        return self._node(NodeType.IDENTIFIER, start, value=text)

    def _parse_number(self) -> ASTNode | None:
        start = self._start()
        text = self._scanner.match(_NUMBER_RE)
        if text is None:
            return None
        return self._node(NodeType.NUMBER, start, value=int(text))


def parse(text: str) -> ParseResult:
    """Parse OMG source text into a :class:`ParseResult`."""
    return OMGParser(text).parse()
