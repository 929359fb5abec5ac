"""
Resolution of include references to template files on disk.
"""

from __future__ import annotations

import os
from pathlib import Path

from ..config.models import DEFAULT_TEMPLATE_EXTENSION


def resolve_include(from_file: Path | str, reference: str, *, extension: str = DEFAULT_TEMPLATE_EXTENSION) -> Path:
    """
    Map an include reference to a candidate template path.

    The reference is resolved against the directory of the including file, the
    way relative links between documents work. A reference without the template
    extension prefers ``<reference><extension>``, then the bare reference if only
    that exists, and otherwise returns the extension-appended form. Existence is
    left for the caller to check; this never raises.

    Args:
        from_file: Absolute path of the file containing the include.
        reference: The literal string passed to ``include(...)``.
        extension: Template file extension, including the leading dot.

    Returns:
        Absolute, lexically normalised candidate path.
    """
    base = Path(os.path.abspath(os.path.join(os.path.dirname(str(from_file)), reference)))
    if base.suffix == extension:
        return base
    with_extension = Path(f"{base}{extension}")
    if with_extension.exists():
        return with_extension
    if base.exists():
        return base
    return with_extension
