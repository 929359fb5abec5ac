"""
Compile template documents into HTML files under the output root.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

from jinja2 import TemplateError, TemplateNotFound, TemplateSyntaxError
from markupsafe import Markup

from ..config import SiteConfig
from ..graph.builder import walk_templates
from ..templates import TemplateEnvironment, read_template
from ..util import ensure_directory, to_posix, write_text_file
from ..util.filesystem import is_relative_to

logger = logging.getLogger(__name__)


class RenderError(RuntimeError):
    """Raised when a document exists but cannot be rendered."""


@dataclass
class BuildReport:
    """
    Outcome of compiling a batch of documents.

    Attributes:
        written: Output files written, in build order.
        missing: Documents that no longer existed when their turn came.
        failures: Documents that failed to render, mapped to the error message.
    """
    written: List[Path] = field(default_factory=list)
    missing: List[Path] = field(default_factory=list)
    failures: Dict[Path, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    def summary_rows(self) -> Iterable[tuple[str, str]]:
        yield ("Pages written", str(len(self.written)))
        yield ("Pages missing", str(len(self.missing)))
        yield ("Failures", str(len(self.failures)))


def output_path_for(document: Path | str, config: SiteConfig) -> Path:
    """
    Map a document to its output file, e.g. ``src/pages/blog/a.ejs`` -> ``dev-html/blog/a.html``.
    """
    path = Path(document)
    if not is_relative_to(path, config.pages_root):
        raise RenderError(f"{path} is not inside the pages directory {config.pages_root}")
    relative = path.relative_to(config.pages_root)
    name = relative.name
    if name.endswith(config.template_extension):
        name = name[: -len(config.template_extension)]
    return config.out_root / relative.with_name(name + config.output_extension)


def fragment_key(fragment: Path, config: SiteConfig) -> str:
    """Identifier of a fragment in the ``partials`` map: relative path without extension."""
    relative = to_posix(str(fragment.relative_to(config.partials_root)))
    if relative.endswith(config.template_extension):
        relative = relative[: -len(config.template_extension)]
    return relative


def read_partials(config: SiteConfig, fragments: Optional[Iterable[Path]] = None) -> Dict[str, str]:
    """
    Read fragment sources (comment-stripped) keyed by fragment identifier.

    Args:
        config: Site configuration.
        fragments: Fragment files to read; defaults to everything under the
            fragments root. Files that vanished in the meantime are skipped.
    """
    paths = sorted(fragments) if fragments is not None else walk_templates(config.partials_root, config.template_extension)
    partials: Dict[str, str] = {}
    for path in paths:
        try:
            partials[fragment_key(path, config)] = read_template(path)
        except FileNotFoundError:
            logger.debug("Fragment disappeared before reading: %s", path)
    return partials


def create_environment(config: SiteConfig) -> TemplateEnvironment:
    return TemplateEnvironment(config.pages_root, extension=config.template_extension)


def _render_context(config: SiteConfig, partials: Mapping[str, str]) -> Dict[str, object]:
    return {
        "partials": {key: Markup(text) for key, text in partials.items()},
        "module_entry": config.resolved_module_entry,
    }


def render_document(
    document: Path | str,
    config: SiteConfig,
    *,
    partials: Optional[Mapping[str, str]] = None,
    environment: Optional[TemplateEnvironment] = None,
) -> Optional[str]:
    """
    Render one document to text.

    Returns None when the document does not exist. Template problems (syntax
    errors, missing includes, undefined names, include cycles) raise RenderError;
    other OS errors propagate unchanged.
    """
    path = Path(document)
    env = environment or create_environment(config)
    try:
        template = env.get_template(str(path))
    except TemplateNotFound:
        logger.debug("Document disappeared before rendering: %s", path)
        return None
    except TemplateSyntaxError as exc:
        raise RenderError(f"{exc.filename or path}:{exc.lineno}: {exc.message}") from exc

    if partials is None:
        partials = read_partials(config)
    try:
        return template.render(_render_context(config, partials))
    except TemplateError as exc:
        raise RenderError(f"{path}: {exc}") from exc
    except RecursionError as exc:
        raise RenderError(f"{path}: include cycle detected") from exc


def compile_page(
    document: Path | str,
    config: SiteConfig,
    *,
    partials: Optional[Mapping[str, str]] = None,
    environment: Optional[TemplateEnvironment] = None,
) -> Optional[Path]:
    """
    Render a document and write it to its output path.

    Always writes, even when the content is unchanged. Returns the output path,
    or None when the document no longer exists.
    """
    target = output_path_for(document, config)
    html = render_document(document, config, partials=partials, environment=environment)
    if html is None:
        return None
    write_text_file(target, html, lock=False)
    logger.info("Built %s", target)
    return target


def compile_pages(
    documents: Iterable[Path],
    config: SiteConfig,
    *,
    fragments: Optional[Iterable[Path]] = None,
    strict: bool = True,
) -> BuildReport:
    """
    Compile a batch of documents sharing one environment and one partials map.

    Args:
        documents: Documents to compile (built in sorted order).
        config: Site configuration.
        fragments: Fragment set for the ``partials`` map; defaults to the fragments root.
        strict: Raise on the first RenderError instead of recording it and moving on.
    """
    report = BuildReport()
    ensure_directory(config.out_root)
    environment = create_environment(config)
    partials = read_partials(config, fragments)
    for document in sorted(documents):
        try:
            target = compile_page(document, config, partials=partials, environment=environment)
        except RenderError as exc:
            if strict:
                raise
            logger.error("Failed to build %s: %s", document, exc, exc_info=True)
            report.failures[document] = str(exc)
            continue
        if target is None:
            report.missing.append(document)
        else:
            report.written.append(target)
    return report


def compile_all(config: SiteConfig) -> BuildReport:
    """
    Compile every document under the pages root.

    Blocks until every page is written; the first RenderError or OS error aborts
    the build and propagates.
    """
    documents = walk_templates(config.pages_root, config.template_extension)
    logger.info("Compiling %d page(s) from %s", len(documents), config.pages_root)
    return compile_pages(documents, config, strict=True)
