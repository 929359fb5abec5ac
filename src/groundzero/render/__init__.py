"""
Rendering of template documents to output files.
"""

from .pages import (
    BuildReport,
    RenderError,
    compile_all,
    compile_page,
    compile_pages,
    create_environment,
    fragment_key,
    output_path_for,
    read_partials,
    render_document,
)

__all__ = [
    "BuildReport",
    "RenderError",
    "compile_all",
    "compile_page",
    "compile_pages",
    "create_environment",
    "fragment_key",
    "output_path_for",
    "read_partials",
    "render_document",
]
