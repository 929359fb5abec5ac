"""
Shared utility helpers for filesystem access and string handling.
"""

from .filesystem import (
    ensure_directory,
    read_text_or_none,
    walk_files,
    write_text_file,
    write_text_if_changed,
)
from .text import slugify, to_posix

__all__ = [
    "ensure_directory",
    "read_text_or_none",
    "walk_files",
    "write_text_file",
    "write_text_if_changed",
    "slugify",
    "to_posix",
]
