"""
Jinja2 environment for the ``<% %>`` template dialect.

Tags use ``<% statement %>``, ``<%= expression %>`` and ``<%# comment %>``.
Sources are comment-stripped before Jinja sees them, so comments may wrap
other tags. Includes resolve relative to the including file, either as the
statement ``<%- include("nav") %>`` or the call ``<%= include("nav") %>``.
A ``-`` beside a delimiter trims whitespace; it never selects unescaped output,
so ``<%- value %>`` is not an output tag.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable, Optional, Tuple

from jinja2 import BaseLoader, Environment, StrictUndefined, TemplateNotFound, pass_context
from jinja2.runtime import Context
from markupsafe import Markup

from ..config.models import DEFAULT_TEMPLATE_EXTENSION
from .comments import COMMENT_OPEN, ESCAPED_OPEN, TAG_CLOSE, TAG_OPEN, read_template
from .resolver import resolve_include

VARIABLE_OPEN = "<%="
# `<%%` renders a literal `<%`.
LITERAL_OPEN = '<%= "<%"|safe %>'


class StrippedSourceLoader(BaseLoader):
    """
    Load templates by absolute path, running every source through the comment scanner.

    Escaped openers left after stripping are rewritten so Jinja prints them.

    Relative names are taken relative to root.
    """

    def __init__(self, root: Path | str, encoding: str = "utf-8") -> None:
        self.root = Path(root)
        self.encoding = encoding

    def get_source(self, environment: Environment, template: str) -> Tuple[str, str, Callable[[], bool]]:
        path = Path(os.path.abspath(self.root / template))
        try:
            mtime = path.stat().st_mtime
            source = read_template(path, encoding=self.encoding).replace(ESCAPED_OPEN, LITERAL_OPEN)
        except (FileNotFoundError, IsADirectoryError) as exc:
            raise TemplateNotFound(template) from exc

        def uptodate() -> bool:
            try:
                return path.stat().st_mtime == mtime
            except OSError:
                return False

        return source, str(path), uptodate


@pass_context
def _include(context: Context, reference: str, **values: Any) -> Markup:
    """Render a fragment in the caller's context and return it as safe markup."""
    template = context.environment.get_template(reference, parent=context.name)
    return Markup(template.render(context.get_all(), **values))


class TemplateEnvironment(Environment):
    """Jinja environment configured for the ``<% %>`` dialect and file-relative includes."""

    def __init__(
        self,
        root: Path | str,
        *,
        extension: str = DEFAULT_TEMPLATE_EXTENSION,
        encoding: str = "utf-8",
        extra_globals: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            loader=StrippedSourceLoader(root, encoding=encoding),
            block_start_string=TAG_OPEN,
            block_end_string=TAG_CLOSE,
            variable_start_string=VARIABLE_OPEN,
            variable_end_string=TAG_CLOSE,
            comment_start_string=COMMENT_OPEN,
            comment_end_string=TAG_CLOSE,
            autoescape=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        self.template_extension = extension
        self.globals["include"] = _include
        if extra_globals:
            self.globals.update(extra_globals)

    def join_path(self, template: str, parent: str) -> str:
        return str(resolve_include(parent, template, extension=self.template_extension))
