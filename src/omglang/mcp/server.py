"""FastMCP server exposing the OMG parser and validator as MCP tools.

Run via::

    omglang-mcp                       # reads .env (default: stdio)
    MCP_TRANSPORT=http omglang-mcp    # streamable HTTP on port 9000
    MCP_TRANSPORT=sse  omglang-mcp    # legacy SSE on port 9000

Tools are stateless: every call receives the full OMG source text.
Settings are loaded from environment variables and ``.env`` file, see
``.env.example`` for available options.
"""

from __future__ import annotations

import json
import logging

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from omglang import __version__
from omglang.ast.query import find_path_at
from omglang.omg_reference import OMG_REFERENCE
from omglang.parser.parser import parse
from omglang.parser.validator import SemanticValidator
from omglang.settings import Settings

# ---------------------------------------------------------------------------
# Server + shared state
# ---------------------------------------------------------------------------

logger = logging.getLogger("omglang.mcp")

mcp = FastMCP("OMG Language Service")
_validator = SemanticValidator()
_check_file_references: bool = True


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


@mcp.resource("omg://reference")
def omg_reference() -> str:
    """Full OMG language reference: imports, resolvers, rule expressions, diagnostics."""
    return OMG_REFERENCE


@mcp.tool
def get_omg_reference() -> str:
    """Get the OMG language reference.

    Call this tool BEFORE writing OMG rules to learn the syntax, in
    particular that only bounded quantifiers (``?``, ``{n}``, ``{n,m}``)
    are allowed.
    """
    return OMG_REFERENCE


# ---------------------------------------------------------------------------
# Analysis tools
# ---------------------------------------------------------------------------


@mcp.tool
def parse_omg(text: str) -> str:
    """Parse OMG source and return the syntax tree as JSON.

    The result has ``valid``, ``errors`` (message/line/column/length) and
    ``ast`` (nested nodes with type, line, column, length, value, children).

    Args:
        text: Complete OMG source text.
    """
    logger.info("parse_omg called (text length=%d)", len(text))
    result = parse(text)
    payload = {
        "valid": result.ok,
        "errors": [e.model_dump() for e in result.errors],
        "ast": result.ast.to_dict(),
    }
    return json.dumps(payload, indent=2)


@mcp.tool
def validate_omg(text: str, base_dir: str | None = None) -> str:
    """Check OMG source for syntax and semantic errors.

    Reports undefined rule references, unbounded or open-ended quantifiers
    and, when *base_dir* is given, imported files that do not exist.

    Args:
        text: Complete OMG source text.
        base_dir: Directory the document lives in (optional).
    """
    logger.info("validate_omg called (text length=%d)", len(text))
    result = parse(text)
    diagnostics = [e.to_diagnostic() for e in result.errors]
    diagnostics.extend(
        _validator.validate(result.ast, text, base_dir if _check_file_references else None)
    )
    if not diagnostics:
        return "OMG source is valid."

    lines = ["OMG source has errors:"]
    for d in diagnostics:
        lines.append(f"  [{d.code}] {d.message}  (at line {d.span.line}, column {d.span.column})")
    return "\n".join(lines)


@mcp.tool
def find_node(text: str, line: int, column: int) -> str:
    """Return the innermost syntax node at a 1-based position as JSON.

    The result holds the ``node`` (type, line, column, length, value) and
    the ``ancestors`` node types from the root down.

    Args:
        text: Complete OMG source text.
        line: 1-based line number.
        column: 1-based column number.
    """
    if line < 1 or column < 1:
        raise ToolError("line and column are 1-based")
    result = parse(text)
    path = find_path_at(result.ast, line, column)
    if not path:
        raise ToolError(f"No syntax node at line {line}, column {column}")

    node = path[-1]
    summary = node.to_dict()
    summary.pop("children", None)
    return json.dumps(
        {"node": summary, "ancestors": [str(n.type) for n in path[:-1]]},
        indent=2,
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Run the MCP server using settings from environment / .env file."""
    settings = Settings()

    logging.basicConfig(level=settings.log_level.upper())
    logger.info(
        "OMG MCP Server v%s starting (transport=%s)",
        __version__,
        settings.mcp_transport,
    )

    global _check_file_references, _validator  # noqa: PLW0603
    _check_file_references = settings.check_file_references
    _validator = SemanticValidator(confine_file_references=settings.confine_file_references)

    if settings.mcp_transport == "stdio":
        mcp.run(transport="stdio")
    else:
        mcp.run(
            transport=settings.mcp_transport,
            host=settings.mcp_server_host,
            port=settings.mcp_server_port,
            log_level=settings.log_level.lower(),
        )


if __name__ == "__main__":
    main()
