"""
Dependency graph of template includes.

Edges are discovered textually: each comment-stripped source is scanned for
``include("...")`` calls with a quoted literal argument. Includes whose target
is built from variables or expressions are invisible to the graph, so pages
relying on them are not tracked for incremental rebuilds.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Iterator, Mapping, Set, Tuple

from ..config import SiteConfig
from ..templates import read_template, resolve_include
from ..util import walk_files

logger = logging.getLogger(__name__)

INCLUDE_PATTERN = re.compile(r"""include\(\s*['"]([^'"]+)['"]""")

_EMPTY: FrozenSet[Path] = frozenset()


@dataclass(frozen=True)
class DependencyGraph:
    """
    Immutable snapshot of include relationships between template files.

    Attributes:
        documents: Templates under the documents root; each produces one output file.
        fragments: Templates under the fragments root; only ever included.
        includes: Forward edges, file -> files it includes.
        dependents: Reverse edges, file -> files that include it. Always the exact
            transpose of ``includes``.
    """
    documents: FrozenSet[Path] = frozenset()
    fragments: FrozenSet[Path] = frozenset()
    includes: Mapping[Path, FrozenSet[Path]] = field(default_factory=lambda: MappingProxyType({}))
    dependents: Mapping[Path, FrozenSet[Path]] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_includes(
        cls,
        documents: Iterable[Path],
        fragments: Iterable[Path],
        includes: Mapping[Path, Iterable[Path]],
    ) -> "DependencyGraph":
        """Build a snapshot from forward edges, deriving the reverse edges."""
        forward: Dict[Path, FrozenSet[Path]] = {}
        reverse: Dict[Path, Set[Path]] = {}
        for source, targets in includes.items():
            target_set = frozenset(targets)
            forward[source] = target_set
            for target in target_set:
                reverse.setdefault(target, set()).add(source)
        return cls(
            documents=frozenset(documents),
            fragments=frozenset(fragments),
            includes=MappingProxyType(forward),
            dependents=MappingProxyType({target: frozenset(sources) for target, sources in reverse.items()}),
        )

    def includes_of(self, path: Path) -> FrozenSet[Path]:
        return self.includes.get(path, _EMPTY)

    def dependents_of(self, path: Path) -> FrozenSet[Path]:
        return self.dependents.get(path, _EMPTY)

    def is_document(self, path: Path) -> bool:
        return path in self.documents

    def __contains__(self, path: object) -> bool:
        return path in self.documents or path in self.fragments or path in self.dependents

    def edges(self) -> Iterator[Tuple[Path, Path]]:
        """Yield every forward edge in sorted order."""
        for source in sorted(self.includes):
            for target in sorted(self.includes[source]):
                yield source, target


def walk_templates(root: Path | str, extension: str) -> list[Path]:
    """List every template under root, recursively and sorted. A missing root yields nothing."""
    return walk_files(root, extension)


def scan_includes(path: Path, extension: str) -> FrozenSet[Path]:
    """
    Return the existing files that path includes through literal ``include()`` calls.

    References that do not resolve to a file are dropped, as is a file that
    vanished since it was listed.
    """
    try:
        source = read_template(path)
    except FileNotFoundError:
        logger.debug("Template disappeared before scanning: %s", path)
        return _EMPTY
    targets: Set[Path] = set()
    for match in INCLUDE_PATTERN.finditer(source):
        resolved = resolve_include(path, match.group(1), extension=extension)
        if resolved.is_file():
            targets.add(resolved)
        else:
            logger.debug("Unresolved include %r in %s", match.group(1), path)
    return frozenset(targets)


async def build_dependency_graph(
    pages_root: Path | str,
    partials_root: Path | str,
    extension: str,
) -> DependencyGraph:
    """
    Scan both roots and build a fresh DependencyGraph.

    Files are read concurrently in worker threads; edges are merged once every
    read has finished.
    """
    documents, fragments = await asyncio.gather(
        asyncio.to_thread(walk_templates, pages_root, extension),
        asyncio.to_thread(walk_templates, partials_root, extension),
    )
    universe = sorted(set(documents) | set(fragments))
    scanned = await asyncio.gather(*(asyncio.to_thread(scan_includes, path, extension) for path in universe))
    includes = dict(zip(universe, scanned))
    graph = DependencyGraph.from_includes(documents, fragments, includes)
    logger.debug(
        "Dependency graph: %d documents, %d fragments, %d edges",
        len(graph.documents),
        len(graph.fragments),
        sum(len(targets) for targets in includes.values()),
    )
    return graph


async def build_site_graph(config: SiteConfig) -> DependencyGraph:
    """Build the graph for a configured site."""
    return await build_dependency_graph(config.pages_root, config.partials_root, config.template_extension)
