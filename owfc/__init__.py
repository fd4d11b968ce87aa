from .adjacency import Adjacency, AdjacencyMode
from .source_patterns import Pattern, PatternCatalog
from .wavefunction import ConflictPolicy, Contradiction, WaveCell, Wavefunction
from .wvfc import (
    RunStats,
    EmptySample,
    InvalidConfiguration,
    SolveCancelled,
    WavefunctionCollapse,
    solve,
)

__all__ = [
    "Adjacency",
    "AdjacencyMode",
    "ConflictPolicy",
    "Contradiction",
    "EmptySample",
    "InvalidConfiguration",
    "Pattern",
    "PatternCatalog",
    "RunStats",
    "SolveCancelled",
    "WaveCell",
    "Wavefunction",
    "WavefunctionCollapse",
    "solve",
]
