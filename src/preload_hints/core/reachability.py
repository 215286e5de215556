# src/preload_hints/core/reachability.py
"""
Reachability filtering for chunk graphs.

Decides which candidate chunks belong to a given HTML document by walking
parent links from the candidate towards the chunks the document references
directly (the roots). Parent links may form cycles.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set

from preload_hints.model import Chunk, ChunkId

logger = logging.getLogger(__name__)


class ChunkGraph:
    """
    Index-based adjacency view over the chunks of one build.

    Every chunk gets a position; parent links are resolved once into lists of
    positions so the traversal never touches the chunk records' parent ids.
    A parent id shared by several chunks links to all of them. The graph is
    read-only once built.
    """

    def __init__(self, chunks: Sequence[Chunk]) -> None:
        self.chunks: List[Chunk] = list(chunks)
        positions_by_id: Dict[ChunkId, List[int]] = {}
        self._position_by_hash: Dict[str, int] = {}
        for position, chunk in enumerate(self.chunks):
            positions_by_id.setdefault(chunk.id, []).append(position)
            self._position_by_hash.setdefault(chunk.rendered_hash, position)

        self.parents: List[List[int]] = []
        for chunk in self.chunks:
            resolved: List[int] = []
            for parent_id in chunk.parents:
                positions = positions_by_id.get(parent_id)
                if positions is None:
                    logger.debug("Chunk %r names unknown parent %r; skipping edge.", chunk.id, parent_id)
                    continue
                resolved.extend(positions)
            self.parents.append(resolved)

    def position_of(self, chunk: Chunk) -> Optional[int]:
        """Returns the position of the chunk with the same rendered hash, or None."""
        return self._position_by_hash.get(chunk.rendered_hash)

    def hash_at(self, position: int) -> str:
        return self.chunks[position].rendered_hash


@dataclass
class TraversalContext:
    """Visited state for one top-level reachability query, keyed by identity hash."""
    visited: Set[str] = field(default_factory=set)

    def enter(self, rendered_hash: str) -> bool:
        """Marks a hash as visited. Returns False if it had been visited already."""
        if rendered_hash in self.visited:
            return False
        self.visited.add(rendered_hash)
        return True


def is_reachable(graph: ChunkGraph, position: int, roots: Set[str], context: TraversalContext) -> bool:
    """
    Depth-first search from the chunk at `position` along parent links.

    A node already in `context` counts as "not reachable" for the branch that
    meets it again. Nodes are marked on entry, before their parents are
    expanded, and parents are expanded in declaration order.
    """
    stack = [position]
    while stack:
        current = stack.pop()
        rendered_hash = graph.hash_at(current)
        if not context.enter(rendered_hash):
            continue
        if rendered_hash in roots:
            return True
        # Reversed so the first declared parent is expanded first.
        stack.extend(reversed(graph.parents[current]))
    return False


def filter_reachable(
        candidates: Iterable[Chunk],
        roots: Iterable[str],
        graph: ChunkGraph,
) -> List[Chunk]:
    """
    Keeps the candidates that reach one of the root hashes.

    Each candidate is checked with a fresh TraversalContext so sibling
    candidates never share visited state.
    """
    root_hashes = set(roots)
    kept = []
    for chunk in candidates:
        position = graph.position_of(chunk)
        if position is None:
            # Not part of the graph: an isolated node is reachable only as a root itself
            reachable = chunk.rendered_hash in root_hashes
        else:
            reachable = is_reachable(graph, position, root_hashes, TraversalContext())
        if reachable:
            kept.append(chunk)
        else:
            logger.debug("Chunk %r is not reachable from the document roots.", chunk.id)
    return kept
