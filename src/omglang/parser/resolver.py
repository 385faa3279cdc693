"""File-reference resolution: maps quoted import/optional-tokens paths to files."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import unquote, urlparse

logger = logging.getLogger("omglang.resolver")


def base_dir_from_uri(uri: str | None) -> Path | None:
    """Directory holding the document identified by *uri*.

    Accepts ``file://`` URIs and plain filesystem paths.  Other schemes
    (``untitled:``, ``inmemory://`` ...) have no directory and yield None.
    """
    if not uri:
        return None
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path)).parent
    # single-letter "schemes" are Windows drive letters
    if parsed.scheme and len(parsed.scheme) > 1:
        return None
    return Path(uri).parent


class FileReferenceResolver:
    """Resolves file references relative to the directory of the document.

    Without a base directory every reference is considered present: the
    caller has no filesystem context, so existence checks are skipped.
    A *confined* resolver never looks outside the base directory: absolute
    paths and paths escaping it via ``..`` count as missing.
    """

    def __init__(self, base_dir: str | Path | None = None, *, confined: bool = False) -> None:
        self.base_dir = Path(base_dir) if base_dir is not None else None
        self.confined = confined

    @staticmethod
    def strip_quotes(literal: str | None) -> str | None:
        """Remove the surrounding double quotes of a string literal.

        Returns None for an empty path.
        """
        if literal is None:
            return None
        if len(literal) >= 2 and literal[0] == literal[-1] == '"':
            literal = literal[1:-1]
        return literal or None

    def resolve(self, path: str) -> Path | None:
        if self.base_dir is None or not path:
            return None
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return self.base_dir / candidate

    def exists(self, path: str) -> bool:
        """True when *path* exists, or when existence cannot be determined."""
        if self.base_dir is None:
            return True
        resolved = self.resolve(path)
        if resolved is None:
            return True
        try:
            if self.confined and not resolved.resolve().is_relative_to(self.base_dir.resolve()):
                logger.debug("File reference %s is outside %s", path, self.base_dir)
                return False
            return resolved.exists()
        except (OSError, ValueError) as exc:
            logger.debug("Cannot check file reference %s: %s", resolved, exc)
            return True
