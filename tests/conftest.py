"""Shared test fixtures for the OMG language service."""

from __future__ import annotations

from pathlib import Path

import pytest

from omglang.parser.parser import ParseResult, parse
from omglang.parser.validator import SemanticValidator
from omglang.service.document_store import DocumentStore

SAMPLE_OMG = """\
version 1.0
import "names.txt" as names with word-boundary, ignore-case
resolver default uses exact with ignore-case

# people
title = "Mr" | "Mrs" | "Dr"
person = (?P<salutation>title)? \\s [[names]] uses fuzzy(threshold="0.8") with ignore-case
"""

DOCUMENT_URI = "inmemory://rules.omg"


@pytest.fixture
def sample_result() -> ParseResult:
    return parse(SAMPLE_OMG)


@pytest.fixture
def validator() -> SemanticValidator:
    return SemanticValidator()


@pytest.fixture
def store() -> DocumentStore:
    return DocumentStore()


@pytest.fixture
def rules_dir(tmp_path: Path) -> Path:
    """Directory holding the files SAMPLE_OMG imports."""
    (tmp_path / "names.txt").write_text("Ada\nGrace\n", encoding="utf-8")
    return tmp_path
