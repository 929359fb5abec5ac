"""
Comment stripping for template sources.

Comments open with ``<%#`` and close with ``%>``. A comment may wrap other tags,
including ``<%- include("...") %>`` directives, so the closing delimiter of a
nested tag must not end the comment. The scan therefore tracks nesting depth
instead of matching a regular expression.
"""

from __future__ import annotations

from pathlib import Path

COMMENT_OPEN = "<%#"
TAG_OPEN = "<%"
TAG_CLOSE = "%>"
ESCAPED_OPEN = "<%%"


def strip_comments(source: str) -> str:
    """
    Remove every comment region from source.

    Newlines inside a removed region are kept so that line numbers in the result
    match the original text. An escaped opener inside a comment is dropped with
    the rest of the region and does not open a nested tag. An unterminated
    comment swallows the rest of the input (newlines excepted) without raising.
    """
    out: list[str] = []
    length = len(source)
    i = 0
    while i < length:
        start = source.find(COMMENT_OPEN, i)
        if start == -1:
            out.append(source[i:])
            break
        out.append(source[i:start])
        i = start + len(COMMENT_OPEN)
        depth = 1
        while i < length and depth > 0:
            if source.startswith(ESCAPED_OPEN, i):
                i += len(ESCAPED_OPEN)
            elif source.startswith(TAG_OPEN, i):
                depth += 1
                i += len(TAG_OPEN)
            elif source.startswith(TAG_CLOSE, i):
                depth -= 1
                i += len(TAG_CLOSE)
            else:
                if source[i] == "\n":
                    out.append("\n")
                i += 1
    return "".join(out)


def read_template(path: Path | str, encoding: str = "utf-8") -> str:
    """Read a template file and return its comment-stripped source."""
    return strip_comments(Path(path).read_text(encoding=encoding))
