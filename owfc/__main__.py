import logging
import pathlib
from typing import List, Literal, Optional

import numpy as np
from tap import Tap

from . import png
from .adjacency import AdjacencyMode
from .logging_config import setup_logging
from .wavefunction import ConflictPolicy
from .wvfc import WavefunctionCollapse


class WvfcParser(Tap):
    source_tiles: pathlib.Path  # sample image, any nonzero red channel reads as 1
    output: pathlib.Path  # where to write the generated image
    size: int = 10  # output is size x size cells
    pattern_size: int = 2
    seed: Optional[int] = None
    adjacency: Literal["diagonal", "overlap"] = "diagonal"
    conflict_policy: Literal["fallback", "strict"] = "fallback"
    trials: int = 10  # attempts before giving up under the strict policy
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


def main(argv: Optional[List[str]] = None) -> None:
    args = WvfcParser().parse_args(argv)
    logger = setup_logging(getattr(logging, args.log_level))
    logger.info("Running with args %s", args)

    source_texture = png.load_sample_grid(args.source_tiles)
    wvfc = WavefunctionCollapse(
        source_texture,
        args.pattern_size,
        adjacency_mode=AdjacencyMode(args.adjacency),
        conflict_policy=ConflictPolicy(args.conflict_policy),
        rng=np.random.default_rng(args.seed),
    )
    generated_grid = wvfc.run((args.size, args.size), trials=args.trials)
    png.store_result_grid(generated_grid, args.output)
    logger.info("Output image saved as %s", args.output)


if __name__ == "__main__":
    main()
