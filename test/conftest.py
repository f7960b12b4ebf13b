import pytest
import numpy as np
import SimpleITK as sitk

from pyScanConvert.geometry import AffineMapping, SectorMapping
from pyScanConvert.image import CurvilinearImage
from pyScanConvert.core import Grid


@pytest.fixture
def affine_field_image() -> CurvilinearImage:
    """Cartesian image sampling f(x, y, z) = 2x + 3 at unit spacing."""
    shape = (10, 4, 4)
    x = np.arange(shape[0], dtype=np.float64)
    data = np.broadcast_to(2.0 * x[:, None, None] + 3.0, shape).copy()
    return CurvilinearImage(data=data, mapping=AffineMapping())


@pytest.fixture
def random_cartesian_image() -> CurvilinearImage:
    rng = np.random.default_rng(42)
    data = rng.random((5, 6, 7)) * 1000
    mapping = AffineMapping(origin=(-2.0, 1.0, 3.0), spacing=(0.5, 1.0, 2.0))
    return CurvilinearImage(data=data, mapping=mapping)


@pytest.fixture
def sector_mapping() -> SectorMapping:
    # 21 scan lines over +-0.5 rad, radius 10 to 30, 3 elevation slices
    return SectorMapping(
        lateral_size=21,
        lateral_angular_separation=0.05,
        radius_sample_size=1.0,
        first_sample_distance=10.0,
        elevation_sample_size=1.0,
    )


@pytest.fixture
def constant_sector_image(sector_mapping: SectorMapping) -> CurvilinearImage:
    data = np.full((21, 21, 3), 7.0)
    return CurvilinearImage(data=data, mapping=sector_mapping)


@pytest.fixture
def sector_interior_grid() -> Grid:
    """Output grid lying completely inside the sector of ``sector_mapping``."""
    return Grid.from_size_spacing(size=(7, 11, 3), spacing=(1.0, 1.0, 1.0), origin=(-3, 15, 0))


@pytest.fixture
def sample_sitk_image() -> sitk.Image:
    rng = np.random.default_rng(0)
    image = sitk.GetImageFromArray(rng.random((4, 5, 6)).astype(np.float32))
    image.SetOrigin((1.0, 2.0, 3.0))
    image.SetSpacing((1.0, 1.5, 2.0))
    image.SetDirection((1, 0, 0, 0, 1, 0, 0, 0, 1))
    return image
