import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .adjacency import Adjacency, AdjacencyMode
from .source_patterns import PatternCatalog
from .wavefunction import ConflictPolicy, Contradiction, Wavefunction

logger = logging.getLogger(__name__)


class InvalidConfiguration(ValueError):
    pass


class EmptySample(ValueError):
    pass


class SolveCancelled(Exception):
    pass


@dataclass(frozen=True)
class RunStats:
    """Counters from the last finished run; the grid itself is not kept."""

    dimensions: Tuple[int, int]
    observations: int
    inconsistencies: int


def _validate_sample(source_texture: NDArray[Any], pattern_size: int) -> None:
    if source_texture.size == 0:
        raise EmptySample("sample grid has zero area")
    if source_texture.ndim != 2:
        raise InvalidConfiguration(
            f"sample grid must be two dimensional, got shape {source_texture.shape}"
        )
    if pattern_size < 1:
        raise InvalidConfiguration(f"pattern size must be at least 1, got {pattern_size}")
    if pattern_size > min(source_texture.shape):
        raise InvalidConfiguration(
            f"pattern size {pattern_size} exceeds sample dimensions {source_texture.shape}"
        )


def _validate_dimensions(requested_dimensions: Tuple[int, int]) -> None:
    height, width = requested_dimensions
    if height < 1 or width < 1:
        raise InvalidConfiguration(
            f"output dimensions must be at least 1x1, got {height}x{width}"
        )


class WavefunctionCollapse:
    """Runs wavefunction collapse. Returns a symbol grid. Does no I/O."""

    def __init__(
        self,
        source_texture: ArrayLike,
        pattern_size: int = 2,
        adjacency_mode: AdjacencyMode = AdjacencyMode.DIAGONAL,
        conflict_policy: ConflictPolicy = ConflictPolicy.FALLBACK,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.source_texture = np.asarray(source_texture)
        _validate_sample(self.source_texture, pattern_size)
        self.conflict_policy = conflict_policy
        self.rng = rng if rng is not None else np.random.default_rng()
        self.source_patterns = PatternCatalog(self.source_texture, pattern_size)
        self.adjacency = Adjacency(self.source_patterns, adjacency_mode)
        self.last_run: Optional[RunStats] = None
        logger.info(
            "Found %d distinct %dx%d patterns in a %dx%d sample",
            len(self.source_patterns),
            pattern_size,
            pattern_size,
            *self.source_texture.shape,
        )

    def run(
        self,
        requested_dimensions: Tuple[int, int],
        trials: int = 10,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> NDArray[Any]:
        _validate_dimensions(requested_dimensions)
        trials_left = trials
        while True:
            try:
                return self._attempt(requested_dimensions, should_stop)
            except Contradiction as contradiction:
                trials_left -= 1
                if trials_left <= 0:
                    raise Contradiction(
                        f"ran into too many contradictions ({trials} trials)"
                    ) from contradiction
                logger.warning("%s, retrying (%d trials left)", contradiction, trials_left)

    def _attempt(
        self,
        requested_dimensions: Tuple[int, int],
        should_stop: Optional[Callable[[], bool]],
    ) -> NDArray[Any]:
        wvf = Wavefunction(
            requested_dimensions, self.source_patterns, self.adjacency, self.conflict_policy
        )
        while True:
            if should_stop is not None and should_stop():
                raise SolveCancelled(
                    f"stopped after {wvf.observation_count} observations"
                )
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("%.1f%% done", wvf.current_progress() * 100.0)
            if wvf.observe(self.rng) is None:
                break
            wvf.propagate()
        logger.info(
            "Collapsed %dx%d grid in %d observations with %d local inconsistencies",
            requested_dimensions[0],
            requested_dimensions[1],
            wvf.observation_count,
            wvf.inconsistencies,
        )
        self.last_run = RunStats(
            requested_dimensions, wvf.observation_count, wvf.inconsistencies
        )
        return wvf.produce_grid()


def solve(
    sample: ArrayLike,
    output_size: int,
    pattern_size: int,
    seed: Optional[int] = None,
    adjacency_mode: AdjacencyMode = AdjacencyMode.DIAGONAL,
    conflict_policy: ConflictPolicy = ConflictPolicy.FALLBACK,
    trials: int = 10,
) -> NDArray[Any]:
    """Synthesizes an output_size x output_size grid from `sample`."""
    _validate_dimensions((output_size, output_size))
    wvfc = WavefunctionCollapse(
        sample,
        pattern_size,
        adjacency_mode=adjacency_mode,
        conflict_policy=conflict_policy,
        rng=np.random.default_rng(seed),
    )
    return wvfc.run((output_size, output_size), trials=trials)
