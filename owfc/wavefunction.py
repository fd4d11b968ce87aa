import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generator, List, Optional, Set, Tuple

import networkx as nx
import numpy as np
from numpy.typing import NDArray

from .adjacency import Adjacency
from .source_patterns import Pattern, PatternCatalog

logger = logging.getLogger(__name__)

Coordinate = Tuple[int, int]


class ConflictPolicy(Enum):
    # keep the neighbor's first remaining candidate and carry on
    FALLBACK = "fallback"
    # raise Contradiction and let the caller retry
    STRICT = "strict"


class Contradiction(Exception):
    pass


@dataclass
class WaveCell:
    image_coordinates: Coordinate
    pattern_weights: Dict[Pattern, int]
    # None means stale
    entropy: Optional[int] = None

    def get_entropy(self) -> int:
        # entropy = the summed catalog counts of the patterns still available
        if self.entropy is None:
            self.entropy = sum(self.pattern_weights.values())
        return self.entropy

    def invalidate_entropy(self) -> None:
        self.entropy = None

    def first_pattern(self) -> Pattern:
        return next(iter(self.pattern_weights))

    def observe(self, rng: np.random.Generator) -> Pattern:
        """Use count weighted choice to choose a pattern, then collapse
        the cell onto it.
        """
        total_weight = sum(self.pattern_weights.values())
        draw = rng.random() * total_weight
        accumulated = 0
        chosen = None
        for pattern, weight in self.pattern_weights.items():
            accumulated += weight
            if draw <= accumulated:
                chosen = pattern
                break
        if chosen is None:
            # only reachable through float rounding at the very top of the range
            chosen = list(self.pattern_weights)[-1]
        self.pattern_weights = {chosen: self.pattern_weights[chosen]}
        self.entropy = self.pattern_weights[chosen]
        return chosen

    def restrict_to(self, allowed: Set[Pattern]) -> Dict[Pattern, int]:
        """Returns the candidates that survive `allowed`, in their original
        order. Does not modify the cell."""
        return {
            pattern: weight
            for pattern, weight in self.pattern_weights.items()
            if pattern in allowed
        }

    def is_collapsed(self) -> bool:
        possibilities = len(self.pattern_weights)
        if possibilities == 0:
            raise Contradiction(f"cell {self.image_coordinates} with zero possibilities found")
        return possibilities == 1


class Wavefunction:
    """
    Has two methods: observe and propagate.
    1. initialize the cell grid in the requested dimensions, every cell
    allowing every pattern in the catalog
    2. each cell keeps track of its remaining patterns and caches its
    entropy until those patterns change.
    """

    def __init__(
        self,
        dimensions: Tuple[int, int],
        source_patterns: PatternCatalog,
        adjacency: Adjacency,
        conflict_policy: ConflictPolicy = ConflictPolicy.FALLBACK,
    ) -> None:
        # height, width
        self.dimensions = dimensions
        self.source_patterns = source_patterns
        self.adjacency = adjacency
        self.conflict_policy = conflict_policy
        # a graph of cells. nids are the output coordinates, data values are
        # the cell object. Cells within propagation reach share an edge.
        self.cells = nx.Graph()
        # observed nids, the last one is the source of the next propagation.
        self.observed_cells: List[Coordinate] = []
        self.observation_count = 0
        self.inconsistencies = 0
        self._make_cell_graph()

    def coordinates(self) -> Generator[Coordinate, None, None]:
        """Row-major order."""
        for y, x in itertools.product(range(self.dimensions[0]), range(self.dimensions[1])):
            yield (y, x)

    def _make_cell_graph(self) -> None:
        """
        For each cell in [height, width]
        1. make a node with a WaveCell that has all patterns available to it
        2. make edges from each node to every other node within Chebyshev
        distance N - 1
        """
        for coordinate in self.coordinates():
            new_cell = WaveCell(coordinate, dict(self.source_patterns.frequencies))
            self.cells.add_node(coordinate, cell=new_cell)
        # now that all nodes have been added, we construct the edges
        for coordinate in self.coordinates():
            for dy, dx in self.adjacency.offsets:
                neighbor = (coordinate[0] + dy, coordinate[1] + dx)
                if 0 <= neighbor[0] < self.dimensions[0] and 0 <= neighbor[1] < self.dimensions[1]:
                    self.cells.add_edge(coordinate, neighbor)

    def cell_at(self, coordinate: Coordinate) -> WaveCell:
        return self.cells.nodes[coordinate]["cell"]

    def get_cells(self) -> Generator[WaveCell, None, None]:
        for coordinate in self.coordinates():
            yield self.cell_at(coordinate)

    def get_minimum_entropy_uncollapsed_cell(self) -> Optional[Coordinate]:
        """First cell in row-major order with the strictly smallest entropy
        among cells that still have a choice. None when all are collapsed."""
        minimum: Optional[Coordinate] = None
        minimum_entropy = float("inf")
        for cell in self.get_cells():
            entropy = cell.get_entropy()
            if cell.is_collapsed():
                continue
            if entropy < minimum_entropy:
                minimum_entropy = entropy
                minimum = cell.image_coordinates
        return minimum

    def is_fully_collapsed(self) -> bool:
        return all(cell.is_collapsed() for cell in self.get_cells())

    def current_progress(self) -> float:
        collapsed = len([cell for cell in self.get_cells() if cell.is_collapsed()])
        return collapsed / (self.dimensions[0] * self.dimensions[1])

    def observe(self, rng: np.random.Generator) -> Optional[Coordinate]:
        """
        Find minimum entropy cell and observe one of its patterns using
        random choice weighted by the frequency of the pattern. Add it to the
        list of observed cells. Returns None if there was nothing to observe.
        """
        coordinate = self.get_minimum_entropy_uncollapsed_cell()
        if coordinate is None:
            return None
        self.cell_at(coordinate).observe(rng)
        self.observed_cells.append(coordinate)
        self.observation_count += 1
        return coordinate

    def _constrain(self, neighbor_cell: WaveCell, current_cell: WaveCell, offset) -> bool:
        """Drops neighbor patterns no current pattern allows at `offset`.
        Returns True if the neighbor lost any pattern."""
        allowed = self.adjacency.allowed_neighbors(current_cell.pattern_weights, offset)
        remaining = neighbor_cell.restrict_to(allowed)
        if not remaining:
            if self.conflict_policy is ConflictPolicy.STRICT:
                raise Contradiction(
                    f"no pattern left for cell {neighbor_cell.image_coordinates} "
                    f"next to {current_cell.image_coordinates}"
                )
            first = neighbor_cell.first_pattern()
            remaining = {first: neighbor_cell.pattern_weights[first]}
            self.inconsistencies += 1
            logger.debug(
                "Cell %s has no pattern compatible with %s, keeping its first candidate",
                neighbor_cell.image_coordinates,
                current_cell.image_coordinates,
            )
        if len(remaining) == len(neighbor_cell.pattern_weights):
            return False
        neighbor_cell.pattern_weights = remaining
        neighbor_cell.invalidate_entropy()
        return True

    def propagate(self) -> None:
        """
        starting with the most recently observed cell as the source,
        update the allowlist of patterns for other cells in
        depth-first-search order, by propagating constraints
        from the source pattern adjacencies.
        """
        assert len(self.observed_cells) > 0
        last_observed = self.observed_cells[-1]
        propagation_stack = [last_observed]
        while len(propagation_stack) > 0:
            propagater_coord = propagation_stack.pop()
            propagater_cell = self.cell_at(propagater_coord)
            for neighbor_coord in self.cells.neighbors(propagater_coord):
                neighbor_cell = self.cell_at(neighbor_coord)
                offset = (
                    neighbor_coord[0] - propagater_coord[0],
                    neighbor_coord[1] - propagater_coord[1],
                )
                if self._constrain(neighbor_cell, propagater_cell, offset):
                    propagation_stack.append(neighbor_coord)

    def produce_grid(self) -> NDArray[Any]:
        return np.array(
            [
                [self.cell_at((y, x)).first_pattern().leading_symbol for x in range(self.dimensions[1])]
                for y in range(self.dimensions[0])
            ]
        )
