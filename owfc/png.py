# pyright: reportUnknownVariableType=false

import imageio.v3 as iio
from pathlib import Path
from numpy.typing import NDArray
import numpy as np


def load_png(file: Path) -> NDArray[np.uint8]:
    return iio.imread(file)


def save_png(image: NDArray[np.uint8], output_file: Path):
    iio.imwrite(output_file, image)


def load_sample_grid(file: Path) -> NDArray[np.uint8]:
    """Binary symbol grid: 1 where the first channel is nonzero, else 0."""
    image = load_png(file)
    if image.ndim == 3:
        image = image[:, :, 0]
    return (image != 0).astype(np.uint8)


def store_result_grid(grid: NDArray, output_file: Path):
    """Symbol 1 becomes opaque white, 0 opaque black."""
    height, width = grid.shape
    image = np.zeros((height, width, 4), dtype=np.uint8)
    image[:, :, :3] = np.where(np.asarray(grid) != 0, 255, 0)[:, :, np.newaxis]
    image[:, :, 3] = 255
    save_png(image, output_file)
