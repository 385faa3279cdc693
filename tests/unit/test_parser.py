"""Tests for the OMG recursive-descent parser."""

from __future__ import annotations

import pytest

import omglang.parser.parser as parser_mod
from omglang.ast.nodes import ASTNode, NodeType
from omglang.parser.parser import MAX_NESTING_DEPTH, OMGParser, ParseResult, parse
from tests.conftest import SAMPLE_OMG


def _rule_body(text: str) -> ASTNode:
    """Parse a single rule and return its expression node."""
    result = parse(text)
    assert result.errors == [], result.errors
    rule = result.ast.children[0]
    assert rule.type == NodeType.RULE_DEF
    body = rule.child(1)
    assert body is not None
    return body


def _types(nodes: tuple[ASTNode, ...]) -> list[NodeType]:
    return [n.type for n in nodes]


def _all_nodes(node: ASTNode) -> list[tuple[ASTNode, ASTNode]]:
    pairs = []
    for child in node.children:
        pairs.append((node, child))
        pairs.extend(_all_nodes(child))
    return pairs


class TestStatements:
    def test_version(self) -> None:
        result = parse("version 1.0")
        assert result.errors == []
        stmt = result.ast.children[0]
        assert stmt.type == NodeType.VERSION_STMT
        literal = stmt.children[0]
        assert literal.type == NodeType.VERSION_LITERAL
        assert literal.value == "1.0"
        assert (stmt.line, stmt.column, stmt.length) == (1, 1, 11)

    def test_import_with_flags(self) -> None:
        result = parse('import "names.txt" as names with word-boundary, ignore-case')
        assert result.errors == []
        stmt = result.ast.children[0]
        assert stmt.type == NodeType.IMPORT_STMT
        path, alias, opts = stmt.children
        assert path.type == NodeType.STRING
        assert path.value == '"names.txt"'
        assert alias.value == "names"
        assert opts.type == NodeType.IMPORT_OPTS
        assert [f.value for f in opts.children] == ["word-boundary", "ignore-case"]

    def test_import_without_flags(self) -> None:
        result = parse('import "a.txt" as a\nimport "b.txt" as b')
        assert result.errors == []
        assert _types(result.ast.children) == [NodeType.IMPORT_STMT, NodeType.IMPORT_STMT]
        assert len(result.ast.children[0].children) == 2

    def test_resolver_default(self) -> None:
        result = parse("resolver default uses exact with ignore-case")
        assert result.errors == []
        default = result.ast.children[0]
        assert default.type == NodeType.RESOLVER_DEFAULT
        uses = default.children[0]
        assert uses.type == NodeType.USES_CLAUSE
        method, flags = uses.children
        assert method.type == NodeType.RESOLVER_METHOD
        assert method.children[0].value == "exact"
        assert flags.type == NodeType.RESOLVER_WITH
        assert flags.children[0].value == "ignore-case"

    def test_full_document(self, sample_result: ParseResult) -> None:
        assert sample_result.ok
        assert _types(sample_result.ast.children) == [
            NodeType.VERSION_STMT,
            NodeType.IMPORT_STMT,
            NodeType.RESOLVER_DEFAULT,
            NodeType.RULE_DEF,
            NodeType.RULE_DEF,
        ]

    def test_rules_on_separate_lines(self) -> None:
        result = parse('a = "x"\nb = a')
        assert result.errors == []
        first, second = result.ast.children
        assert first.children[1].type == NodeType.STRING
        assert second.children[0].value == "b"
        assert second.children[1].value == "a"

    def test_comments_are_skipped(self) -> None:
        result = parse('# header\nr = "a"  # trailing\n# footer\n')
        assert result.errors == []
        assert len(result.ast.children) == 1


class TestExpressions:
    def test_alternation(self) -> None:
        body = _rule_body('r = "a" | "b" | "c"')
        assert body.type == NodeType.ALT
        assert [c.value for c in body.children] == ['"a"', '"b"', '"c"']

    def test_single_operand_collapses(self) -> None:
        assert _rule_body('r = "a"').type == NodeType.STRING

    def test_concatenation(self) -> None:
        body = _rule_body("r = a b c")
        assert body.type == NodeType.CONCAT
        assert [c.value for c in body.children] == ["a", "b", "c"]

    def test_dotted_identifier(self) -> None:
        body = _rule_body("r = names.first")
        assert body.type == NodeType.IDENTIFIER
        assert body.value == "names.first"

    def test_quantifiers(self) -> None:
        body = _rule_body("r = a? b{2} c{1,3}")
        qmark, exact, bounded = body.children
        assert _types(qmark.children) == [NodeType.IDENTIFIER, NodeType.QMARK]
        assert exact.children[1].type == NodeType.EXACT_RANGE
        assert exact.children[1].children[0].value == 2
        range_node = bounded.children[1]
        assert range_node.type == NodeType.RANGE
        assert [n.value for n in range_node.children] == [1, 3]

    def test_open_upper_bound_parses_as_one_child_range(self) -> None:
        result = parse("r = [[x]]{2,}")
        assert result.errors == []
        quantified = result.ast.children[0].children[1]
        range_node = quantified.children[1]
        assert range_node.type == NodeType.RANGE
        assert len(range_node.children) == 1

    def test_group(self) -> None:
        body = _rule_body("r = (a | b)")
        assert body.type == NodeType.GROUP_EXPR
        assert body.children[0].type == NodeType.ALT

    def test_named_capture(self) -> None:
        body = _rule_body("r = (?P<who>[[names]])")
        assert body.type == NodeType.NAMED_CAPTURE
        name, expression = body.children
        assert name.value == "who"
        assert expression.type == NodeType.LIST_MATCH

    def test_list_match_with_filter(self) -> None:
        body = _rule_body('r = [[names: startsWith("A")]]')
        assert body.type == NodeType.LIST_MATCH
        name, filter_expr = body.children
        assert name.value == "names"
        assert filter_expr.type == NodeType.FILTER_EXPR
        assert filter_expr.children[0].value == "startsWith"
        assert filter_expr.children[1].value == '"A"'

    def test_char_class(self) -> None:
        body = _rule_body(r"r = [a-z0-9_\d]")
        assert body.type == NodeType.CHARCLASS
        assert [(c.type, c.value) for c in body.children] == [
            (NodeType.CHAR_RANGE, "a-z"),
            (NodeType.CHAR_RANGE, "0-9"),
            (NodeType.CHAR, "_"),
            (NodeType.ESCAPE, r"\d"),
        ]

    def test_trailing_hyphen_in_char_class(self) -> None:
        body = _rule_body("r = [a-]")
        assert [c.value for c in body.children] == ["a", "-"]

    def test_atoms(self) -> None:
        body = _rule_body(r"r = ^ \w . $")
        assert [(c.type, c.value) for c in body.children] == [
            (NodeType.ANCHOR, "^"),
            (NodeType.ESCAPE, r"\w"),
            (NodeType.DOT, None),
            (NodeType.ANCHOR, "$"),
        ]

    def test_string_keeps_quotes_and_escapes(self) -> None:
        body = _rule_body(r'r = "say \"hi\""')
        assert body.value == r'"say \"hi\""'


class TestUsesClause:
    def _uses(self, text: str) -> ASTNode:
        result = parse(text)
        assert result.errors == [], result.errors
        rule = result.ast.children[0]
        assert rule.type == NodeType.RULE_DEF
        uses = rule.children[2]
        assert uses.type == NodeType.USES_CLAUSE
        return uses

    def test_method_with_arguments(self) -> None:
        uses = self._uses('r = a uses fuzzy(threshold="0.8", "x")')
        method = uses.children[0]
        assert method.children[0].value == "fuzzy"
        arg_list = method.children[1]
        assert arg_list.type == NodeType.RESOLVER_ARG_LIST
        keyed, bare = arg_list.children
        assert _types(keyed.children) == [NodeType.IDENTIFIER, NodeType.STRING]
        assert _types(bare.children) == [NodeType.STRING]

    def test_optional_tokens(self) -> None:
        uses = self._uses('r = a uses exact with ignore-case, optional-tokens("t.txt", "u.txt")')
        flags = uses.children[1]
        assert [f.value for f in flags.children] == ["ignore-case", "optional-tokens"]
        clause = flags.children[1].children[0]
        assert clause.type == NodeType.OPTIONAL_TOKENS_CLAUSE
        assert [s.value for s in clause.children] == ['"t.txt"', '"u.txt"']

    def test_resolver_scope(self) -> None:
        uses = self._uses("r = a uses default resolver")
        assert uses.children[0].type == NodeType.RESOLVER_SCOPE
        assert uses.children[0].value == "default resolver"

    def test_uses_ends_expression(self) -> None:
        result = parse("r = a b uses exact")
        body = result.ast.children[0].children[1]
        assert [c.value for c in body.children] == ["a", "b"]

    def test_default_without_resolver_is_an_error(self) -> None:
        result = parse('r = a uses default exact\na = "x"')
        assert [e.message for e in result.errors] == ['Expected "resolver" after "default"']
        assert (result.errors[0].line, result.errors[0].column) == (1, 20)
        first, second = result.ast.children
        assert _types(first.children) == [NodeType.IDENTIFIER, NodeType.IDENTIFIER]
        assert second.children[0].value == "a"


class TestSpans:
    def test_list_match_spans(self) -> None:
        rule = parse("r = [[names]]").ast.children[0]
        list_match = rule.children[1]
        assert (list_match.line, list_match.column, list_match.length) == (1, 5, 9)
        name = list_match.children[0]
        assert (name.line, name.column, name.length) == (1, 7, 5)
        assert (rule.line, rule.column, rule.length) == (1, 1, 13)

    def test_rule_span_excludes_trailing_whitespace(self) -> None:
        rule = parse('r = "a"   \n\n').ast.children[0]
        assert rule.length == 7
        assert rule.span.end == (1, 8)

    def test_multiline_expression(self) -> None:
        body = parse('r = "a"\n  | "b"').ast.children[0].children[1]
        assert body.type == NodeType.ALT
        assert (body.span.line, body.span.column) == (1, 5)
        assert body.span.end == (2, 8)
        assert body.length == 11

    def test_root_covers_whole_document(self, sample_result: ParseResult) -> None:
        root = sample_result.ast
        assert (root.line, root.column) == (1, 1)
        assert root.length == len(SAMPLE_OMG)

    @pytest.mark.parametrize(
        "text",
        [SAMPLE_OMG, "r = (unterminated", 'a = "x"\n  | [[y: contains("z")]]{1,2}\nb = a{2,}'],
    )
    def test_children_within_parent(self, text: str) -> None:
        for parent, child in _all_nodes(parse(text).ast):
            assert parent.span.contains(child.span), (parent.type, child.type)


class TestErrors:
    def test_unterminated_group_reports_once(self) -> None:
        result = parse("r = (unterminated")
        assert [e.message for e in result.errors] == ["Expected closing parenthesis"]
        assert (result.errors[0].line, result.errors[0].column) == (1, 18)
        rule = result.ast.children[0]
        assert rule.type == NodeType.RULE_DEF
        assert _types(rule.children) == [NodeType.IDENTIFIER]

    @pytest.mark.parametrize(
        ("text", "message"),
        [
            ("version", 'Expected version literal after "version"'),
            ("import names", 'Expected string literal after "import"'),
            ('import "a.txt" names', 'Expected "as" after import string'),
            ('import "a.txt" as', 'Expected identifier after "as"'),
            ("resolver uses exact", 'Expected "default" after "resolver"'),
            ("resolver default exact", 'Expected "uses" after "resolver default"'),
            ('r "x"', 'Expected "=" after rule name'),
            ("r = ", 'Expected expression after "="'),
            ('r = "abc', "Unterminated string literal"),
            ("r = [abc", 'Expected "]" to close character class'),
            ("r = [[names", 'Expected "]]" to close list match'),
            ("r = [[]]", "Expected identifier in list match"),
            ("r = (?P<>a)", "Expected identifier in named capture"),
            ("r = (?P<n a)", 'Expected ">" after named capture identifier'),
            ("r = (?P<n>a", "Expected closing parenthesis in named capture"),
            ("r = a{", "Expected number in quantifier"),
            ("r = a{1,2", 'Expected "}" to close range quantifier'),
            ("r = a{3", 'Expected "}" to close exact quantifier'),
            ('r = [[n: contains("x"]]', "Expected closing parenthesis in filter expression"),
            ("r = [[n: contains(x)]]", "Expected string in filter expression"),
            ('r = a uses fuzzy("x"', "Expected closing parenthesis for resolver method"),
        ],
    )
    def test_error_messages(self, text: str, message: str) -> None:
        result = parse(text)
        assert [e.message for e in result.errors] == [message]

    def test_recovers_at_next_line(self) -> None:
        result = parse('r = (a\ns = "ok"')
        assert len(result.errors) == 1
        assert [r.children[0].value for r in result.ast.children] == ["r", "s"]
        assert result.ast.children[1].children[1].value == '"ok"'

    def test_error_stays_on_last_token_line(self) -> None:
        result = parse('r = (a\n\ns = "ok"')
        assert [e.message for e in result.errors] == ["Expected closing parenthesis"]
        assert (result.errors[0].line, result.errors[0].column) == (1, 7)
        assert [r.children[0].value for r in result.ast.children] == ["r", "s"]

    def test_recovers_after_mid_line_error(self) -> None:
        result = parse('r = a{x} b\ns = "ok"')
        assert [e.message for e in result.errors] == ["Expected number in quantifier"]
        assert [r.children[0].value for r in result.ast.children] == ["r", "s"]

    def test_bad_statement_does_not_abort_file(self) -> None:
        result = parse('import oops\nimport "b.txt" as b\nr = b')
        assert len(result.errors) == 1
        assert _types(result.ast.children) == [NodeType.IMPORT_STMT, NodeType.RULE_DEF]


class TestRobustness:
    def test_empty_input(self) -> None:
        result = parse("")
        assert result.ast.type == NodeType.ROOT
        assert result.ast.children == ()
        assert result.errors == []

    @pytest.mark.parametrize("text", ["%%%\x00{{[[(((", "\n\n\t", "))))", "= = =", "﻿​"])
    def test_garbage_does_not_raise(self, text: str) -> None:
        result = parse(text)
        assert result.ast.type == NodeType.ROOT

    def test_deep_nesting_is_limited(self) -> None:
        depth = MAX_NESTING_DEPTH * 8
        result = parse("r = " + "(" * depth + "a" + ")" * depth)
        assert [e.message for e in result.errors] == ["Maximum nesting depth exceeded"]

    def test_nesting_up_to_limit(self) -> None:
        depth = MAX_NESTING_DEPTH
        result = parse("r = " + "(" * depth + "a" + ")" * depth)
        assert result.errors == []

    def test_oversized_document(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(parser_mod, "MAX_DOCUMENT_SIZE", 10)
        result = parse("r = abcdefghijk")
        assert len(result.errors) == 1
        assert "exceeds maximum size" in result.errors[0].message
        assert result.ast.children == ()

    def test_internal_fault_becomes_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def _boom(self: OMGParser) -> ASTNode:
            raise RuntimeError("boom")

        monkeypatch.setattr(OMGParser, "_parse_root", _boom)
        result = parse("r = a")
        assert [e.message for e in result.errors] == ["boom"]
        assert result.ast.type == NodeType.ROOT
        assert result.ast.children == ()

    def test_parse_is_idempotent(self) -> None:
        assert parse(SAMPLE_OMG) == parse(SAMPLE_OMG)
        parser = OMGParser("r = (a")
        assert parser.parse() == parser.parse()
