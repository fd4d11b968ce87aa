import itertools
from collections import defaultdict
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Set, Tuple

from .source_patterns import Pattern, PatternCatalog

Offset = Tuple[int, int]


class AdjacencyMode(Enum):
    # a neighbor candidate q may sit next to p at any offset iff
    # q.overlaps_diagonal(p)
    DIAGONAL = "diagonal"
    # footprints must agree wherever they overlap at the actual offset
    OVERLAP = "overlap"


def neighbor_offsets(N: int) -> List[Offset]:
    """Every (dy, dx) within Chebyshev radius N - 1, excluding (0, 0)."""
    span = range(-N + 1, N)
    return [(dy, dx) for dy, dx in itertools.product(span, span) if (dy, dx) != (0, 0)]


class Adjacency:
    """Decides which patterns may be placed around one another. Everything is
    computed up front from the catalog and frozen, so lookups during
    propagation are set operations only."""

    def __init__(
        self, source_patterns: PatternCatalog, mode: AdjacencyMode = AdjacencyMode.DIAGONAL
    ) -> None:
        self.source_patterns = source_patterns
        self.N = source_patterns.N
        self.mode = mode
        self.offsets = neighbor_offsets(self.N)
        # current pattern -> offset to the neighbor -> allowed neighbor patterns
        self.adjacencies: Dict[Pattern, Dict[Offset, FrozenSet[Pattern]]] = {}
        self._collect_adjacencies()

    def _collect_adjacencies(self):
        patterns = self.source_patterns.patterns
        # fmt: off
        adjacencies: defaultdict[Pattern, defaultdict[Offset, Set[Pattern]]] = (
            defaultdict(lambda: defaultdict(lambda: set()))
        )
        if self.mode is AdjacencyMode.DIAGONAL:
            for current in patterns:
                allowed = {
                    neighbor for neighbor in patterns if neighbor.overlaps_diagonal(current)
                }
                # the predicate ignores the offset, so all offsets share one set
                for offset in self.offsets:
                    adjacencies[current][offset] = allowed
        else:
            for current, neighbor in itertools.product(patterns, patterns):
                for offset in self.offsets:
                    if current.agrees_at(neighbor, offset):
                        adjacencies[current][offset].add(neighbor)
        self.adjacencies = {
            current: {offset: frozenset(allowed) for offset, allowed in by_offset.items()}
            for current, by_offset in adjacencies.items()
        }

    def _allowed_for(self, current: Pattern, offset: Offset) -> FrozenSet[Pattern]:
        return self.adjacencies.get(current, {}).get(offset, frozenset())

    def compatible(self, neighbor: Pattern, current: Pattern, offset: Offset) -> bool:
        return neighbor in self._allowed_for(current, offset)

    def allowed_neighbors(self, current_patterns: Iterable[Pattern], offset: Offset) -> Set[Pattern]:
        allowed: Set[Pattern] = set()
        for pattern in current_patterns:
            allowed |= self._allowed_for(pattern, offset)
        return allowed
