"""Tests for file-reference resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from omglang.parser.resolver import FileReferenceResolver, base_dir_from_uri


class TestStripQuotes:
    @pytest.mark.parametrize(
        ("literal", "expected"),
        [('"names.txt"', "names.txt"), ("names.txt", "names.txt"), ('""', None), (None, None)],
    )
    def test_strip_quotes(self, literal: str | None, expected: str | None) -> None:
        assert FileReferenceResolver.strip_quotes(literal) == expected


class TestResolve:
    def test_relative_to_base_dir(self, tmp_path: Path) -> None:
        resolver = FileReferenceResolver(tmp_path)
        assert resolver.resolve("lists/a.txt") == tmp_path / "lists" / "a.txt"

    def test_absolute_path_kept(self, tmp_path: Path) -> None:
        target = tmp_path / "a.txt"
        assert FileReferenceResolver("/elsewhere").resolve(str(target)) == target

    def test_no_base_dir(self) -> None:
        assert FileReferenceResolver().resolve("a.txt") is None


class TestExists:
    def test_existing_file(self, rules_dir: Path) -> None:
        assert FileReferenceResolver(rules_dir).exists("names.txt")

    def test_missing_file(self, tmp_path: Path) -> None:
        assert not FileReferenceResolver(tmp_path).exists("missing.txt")

    def test_without_base_dir_everything_exists(self) -> None:
        assert FileReferenceResolver(None).exists("missing.txt")


class TestConfined:
    def test_relative_path_inside_base_dir(self, rules_dir: Path) -> None:
        assert FileReferenceResolver(rules_dir, confined=True).exists("names.txt")

    def test_absolute_path_outside_base_dir(self, tmp_path: Path) -> None:
        target = tmp_path / "secret.txt"
        target.write_text("x\n", encoding="utf-8")
        (tmp_path / "rules").mkdir()
        assert FileReferenceResolver(tmp_path / "rules").exists(str(target))
        assert not FileReferenceResolver(tmp_path / "rules", confined=True).exists(str(target))

    def test_parent_escape(self, tmp_path: Path) -> None:
        (tmp_path / "secret.txt").write_text("x\n", encoding="utf-8")
        (tmp_path / "rules").mkdir()
        resolver = FileReferenceResolver(tmp_path / "rules", confined=True)
        assert not resolver.exists("../secret.txt")

    def test_dot_segments_that_stay_inside(self, rules_dir: Path) -> None:
        (rules_dir / "lists").mkdir()
        resolver = FileReferenceResolver(rules_dir, confined=True)
        assert resolver.exists("lists/../names.txt")


class TestBaseDirFromUri:
    def test_file_uri(self) -> None:
        assert base_dir_from_uri("file:///work/rules/main.omg") == Path("/work/rules")

    def test_file_uri_with_escapes(self) -> None:
        assert base_dir_from_uri("file:///my%20rules/main.omg") == Path("/my rules")

    def test_plain_path(self) -> None:
        assert base_dir_from_uri("/work/main.omg") == Path("/work")

    @pytest.mark.parametrize("uri", ["untitled:Untitled-1", "inmemory://model/1", "", None])
    def test_virtual_documents(self, uri: str | None) -> None:
        assert base_dir_from_uri(uri) is None
