import pytest
import numpy as np

from pyScanConvert.core import Grid


@pytest.fixture
def interior_field_grid() -> Grid:
    """Grid between the samples of ``affine_field_image``."""
    return Grid.from_size_spacing((9, 3, 3), (1.0, 1.0, 1.0), origin=(0.5, 0.5, 0.5))


@pytest.fixture
def flipped_field_grid() -> Grid:
    """Grid mirroring ``affine_field_image`` along x."""
    return Grid.from_size_spacing(
        (10, 4, 4), (1.0, 1.0, 1.0), origin=(9.0, 0.0, 0.0), direction=np.diag([-1.0, 1, 1])
    )
