"""OMG source parsing and semantic validation."""

from omglang.parser.parser import OMGParser, ParseResult, parse
from omglang.parser.resolver import FileReferenceResolver, base_dir_from_uri
from omglang.parser.validator import SemanticValidator, validate

__all__ = [
    "FileReferenceResolver",
    "OMGParser",
    "ParseResult",
    "SemanticValidator",
    "base_dir_from_uri",
    "parse",
    "validate",
]
