"""
Template source handling: comment stripping, include resolution and the Jinja environment.
"""

from .comments import read_template, strip_comments
from .environment import StrippedSourceLoader, TemplateEnvironment
from .resolver import resolve_include

__all__ = [
    "read_template",
    "strip_comments",
    "resolve_include",
    "StrippedSourceLoader",
    "TemplateEnvironment",
]
