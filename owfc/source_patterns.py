from numpy.typing import NDArray
import numpy as np
from dataclasses import dataclass
from collections import defaultdict
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class Pattern:
    symbols: Tuple[Any, ...]
    N: int

    @classmethod
    def from_ndarray(cls, window: NDArray[Any]):
        assert window.shape[0] == window.shape[1]
        return cls(tuple(window.flatten().tolist()), window.shape[0])

    def get_ndarray(self) -> NDArray[Any]:
        return np.reshape(np.array(self.symbols), (self.N, self.N))

    @property
    def leading_symbol(self) -> Any:
        return self.symbols[0]

    def overlaps_diagonal(self, other: "Pattern") -> bool:
        """
        True if every symbol of our top-left (N-1)x(N-1) block equals the
        symbol one row down and one column right in the other pattern. With
        N = 1 there is nothing to compare and any two patterns agree.
        """
        self_nd = self.get_ndarray()
        other_nd = other.get_ndarray()
        our_leading_block = self_nd[0: self.N - 1, 0: self.N - 1]
        their_trailing_block = other_nd[1: self.N, 1: self.N]
        return np.array_equal(our_leading_block, their_trailing_block)

    def agrees_at(self, other: "Pattern", offset: Tuple[int, int]) -> bool:
        """
        With our top-left corner at the origin and the other pattern's
        top-left corner at offset (dy, dx), every cell covered by both
        footprints must hold the same symbol.
        """
        dy, dx = offset
        if abs(dy) >= self.N or abs(dx) >= self.N:
            return True
        self_nd = self.get_ndarray()
        other_nd = other.get_ndarray()
        ours = self_nd[max(0, dy): self.N + min(0, dy), max(0, dx): self.N + min(0, dx)]
        theirs = other_nd[max(0, -dy): self.N + min(0, -dy), max(0, -dx): self.N + min(0, -dx)]
        return np.array_equal(ours, theirs)


class PatternCatalog:
    """Parses a sample grid. Identifies every NxN pattern in the sample,
    wrapping around its edges, and counts how often each one occurs.
    Read-only once built."""

    def __init__(self, source_texture: NDArray[Any], N: int = 2) -> None:
        self.source_texture = source_texture
        self.N = N
        self.frequencies: Dict[Pattern, int] = {}
        self._collect_patterns()

    def _collect_patterns(self):
        """Runs a NxN convolution across the whole sample, and counts each
        window in a deduplicated, first-seen ordered mapping.
        """
        # fmt: off
        frequencies: defaultdict[Pattern, int] = (
            defaultdict(lambda: 0)
        )
        height, width = self.source_texture.shape
        for y in range(height):
            for x in range(width):
                frequencies[self.pattern_at(y, x)] += 1
        self.frequencies = dict(frequencies)

    def pattern_at(self, y: int, x: int) -> Pattern:
        window = self.source_texture.take(
            range(y, y + self.N), mode="wrap", axis=0
        ).take(range(x, x + self.N), mode="wrap", axis=1)
        return Pattern.from_ndarray(window)

    @property
    def patterns(self) -> List[Pattern]:
        return list(self.frequencies.keys())

    def __len__(self) -> int:
        return len(self.frequencies)
