"""
Filesystem helpers shared by the renderer, the graph builder and the sprite writer.
"""

from __future__ import annotations

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional

from filelock import FileLock

logger = logging.getLogger(__name__)


def ensure_directory(path: Path | str) -> Path:
    """
    Ensure a directory exists, returning the resolved Path.
    """
    resolved = Path(path).expanduser().resolve()
    resolved.mkdir(parents=True, exist_ok=True)
    return resolved


def _ensure_parent(target: Path) -> None:
    """Ensure the parent directory for target exists."""
    if target.parent and not target.parent.exists():
        target.parent.mkdir(parents=True, exist_ok=True)


def is_relative_to(path: Path, base: Path) -> bool:
    """Return True if path is under base."""
    try:
        path.relative_to(base)
    except ValueError:
        return False
    return True


def _raise_unless_missing(exc: OSError) -> None:
    if isinstance(exc, FileNotFoundError):
        return
    raise exc


def walk_files(root: Path | str, suffix: str) -> List[Path]:
    """
    Return every file under root ending with suffix, sorted by path.

    A missing root yields an empty list. Any other listing error (permissions,
    I/O) propagates to the caller.
    """
    base = Path(root)
    if not base.is_dir():
        return []
    found: List[Path] = []
    for dirpath, _dirnames, filenames in os.walk(base, onerror=_raise_unless_missing):
        for name in filenames:
            if name.endswith(suffix):
                found.append(Path(dirpath) / name)
    found.sort()
    return found


@contextmanager
def file_lock(path: Path | str):
    """Context manager for a filesystem lock file alongside the target."""
    target = Path(path).expanduser().resolve()
    lock_path = target.with_suffix(f"{target.suffix}.lock")
    _ensure_parent(lock_path)
    with FileLock(str(lock_path)):
        yield


def _atomic_write_text(target: Path, content: str, encoding: str) -> None:
    """Write text atomically by staging a temp file and renaming."""
    _ensure_parent(target)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, target)
    finally:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass


def write_text_file(path: Path | str, content: str, encoding: str = "utf-8", *, lock: bool = True) -> Path:
    """
    Write text to a file, creating parent directories as needed.
    """
    target = Path(path).expanduser().resolve()
    if lock:
        with file_lock(target):
            _atomic_write_text(target, content, encoding=encoding)
    else:
        _atomic_write_text(target, content, encoding=encoding)
    return target


def read_text_or_none(path: Path | str, encoding: str = "utf-8") -> Optional[str]:
    """Return the file's text, or None when it does not exist."""
    try:
        return Path(path).read_text(encoding=encoding)
    except FileNotFoundError:
        return None


def write_text_if_changed(
    path: Path | str,
    content: str,
    encoding: str = "utf-8",
) -> bool:
    """
    Atomically write content unless the file already holds exactly that text.

    Returns True when the file was (re)written. Skipping identical writes keeps
    file watchers downstream of this file quiet.
    """
    target = Path(path).expanduser().resolve()
    if read_text_or_none(target, encoding=encoding) == content:
        logger.debug("Unchanged, not rewriting %s", target)
        return False
    write_text_file(target, content, encoding=encoding)
    return True
