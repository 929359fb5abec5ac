"""
Include dependency graph and change impact analysis.
"""

from .builder import (
    INCLUDE_PATTERN,
    DependencyGraph,
    build_dependency_graph,
    build_site_graph,
    scan_includes,
    walk_templates,
)
from .impact import impacted_documents

__all__ = [
    "INCLUDE_PATTERN",
    "DependencyGraph",
    "build_dependency_graph",
    "build_site_graph",
    "scan_includes",
    "walk_templates",
    "impacted_documents",
]
