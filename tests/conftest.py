import sys
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

# Add src to sys.path so we can import gridition
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())


def gradient(width: int, height: int) -> Image.Image:
    """RGB image whose red/green channels encode the pixel position."""
    xs = np.arange(width) % 256
    ys = np.arange(height) % 256
    pixels = np.zeros((height, width, 3), dtype=np.uint8)
    pixels[:, :, 0] = xs[np.newaxis, :]
    pixels[:, :, 1] = ys[:, np.newaxis]
    pixels[:, :, 2] = 128
    return Image.fromarray(pixels)


@pytest.fixture
def landscape():
    """300x200 image: base cells of 100 px for every shape column."""
    return gradient(300, 200)


@pytest.fixture
def square():
    """300x300 image: 100x100 base cells for a 3x3 grid."""
    return gradient(300, 300)


@pytest.fixture
def sample_image_path(tmp_path: Path):
    """Gradient image saved as PNG."""
    path = tmp_path / "photo.png"
    gradient(300, 200).save(path)
    return path
