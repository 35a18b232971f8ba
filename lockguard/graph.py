"""
Dependency graph construction.

Merges the ranges declared in a manifest with the resolved set decoded from
a lock artifact. Declared packages always keep their direct identity; the lock
artifact only contributes their resolved version.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional

from .models import DependencyNode, LockEntry, ScanMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DependencyGraph:
    """Merged node set for one scan, keyed by package name."""
    nodes: Dict[str, DependencyNode] = field(default_factory=dict)
    mode: ScanMode = ScanMode.DIRECT

    @property
    def total(self) -> int:
        return len(self.nodes)

    @property
    def direct_count(self) -> int:
        return sum(1 for node in self.nodes.values() if node.is_direct)

    @property
    def transitive_count(self) -> int:
        return self.total - self.direct_count


def build_graph(
    declared: Mapping[str, str],
    lock_entries: Optional[Mapping[str, LockEntry]] = None,
) -> Dict[str, DependencyNode]:
    """
    Merge declared dependencies with decoded lock entries.

    Args:
        declared: Package name to declared version range from the manifest
        lock_entries: Decoded lock artifact, or None when no lock data is available

    Returns:
        Mapping of package name to DependencyNode. Declared names come first in
        declaration order, followed by transitive names in lock order.
    """
    nodes: Dict[str, DependencyNode] = {
        name: DependencyNode(name=name, resolved_version=spec, is_direct=True)
        for name, spec in declared.items()
    }

    if not lock_entries:
        return nodes

    for name, entry in lock_entries.items():
        existing = nodes.get(name)
        if existing is not None:
            nodes[name] = replace(existing, resolved_version=entry.version)
            continue
        nodes[name] = DependencyNode(
            name=name,
            resolved_version=entry.version,
            is_direct=False,
            chain=tuple(entry.chain),
        )

    return nodes


def build_dependency_graph(
    declared: Mapping[str, str],
    lock_entries: Optional[Mapping[str, LockEntry]] = None,
) -> DependencyGraph:
    """Build the graph and tag it deep only when lock data contributed to it."""
    mode = ScanMode.DEEP if lock_entries else ScanMode.DIRECT
    graph = DependencyGraph(nodes=build_graph(declared, lock_entries), mode=mode)
    logger.info(
        f"Dependency graph ({mode.value}): {graph.total} packages, "
        f"{graph.direct_count} direct, {graph.transitive_count} transitive"
    )
    return graph
