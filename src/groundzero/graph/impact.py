"""
Change impact analysis over a dependency graph.
"""

from __future__ import annotations

import os
from collections import deque
from pathlib import Path
from typing import Iterable, Optional, Set

from .builder import DependencyGraph


def _normalize(path: Path | str, base_dir: Path) -> Path:
    return Path(os.path.abspath(os.path.join(base_dir, path)))


def impacted_documents(
    changed_paths: Iterable[Path | str],
    graph: DependencyGraph,
    *,
    base_dir: Optional[Path | str] = None,
) -> Set[Path]:
    """
    Return the documents that must be recompiled after changed_paths changed.

    Walks reverse edges breadth-first from every changed path, collecting each
    document reached (a changed document counts itself). The visited set makes
    include cycles terminate.

    An empty result does not mean "nothing to do": the change could not be mapped
    onto any document, and callers should rebuild everything.

    Args:
        changed_paths: Changed files, absolute or relative to base_dir.
        graph: Snapshot to analyse.
        base_dir: Directory relative paths are resolved against (default: cwd).
    """
    base = Path(base_dir) if base_dir is not None else Path.cwd()
    frontier = deque(_normalize(path, base) for path in changed_paths)
    visited: Set[Path] = set()
    result: Set[Path] = set()

    while frontier:
        current = frontier.popleft()
        if current in visited:
            continue
        visited.add(current)
        if graph.is_document(current):
            result.add(current)
        for dependent in graph.dependents_of(current):
            if dependent not in visited:
                frontier.append(dependent)

    return result
