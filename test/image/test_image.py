import pytest
import numpy as np
import SimpleITK as sitk
from pydantic import ValidationError

from pyScanConvert.core import GeometryError
from pyScanConvert.geometry import AffineMapping, SectorMapping
from pyScanConvert.image import CurvilinearImage, create_image, validate_image


def test_image_from_array():
    image = CurvilinearImage(data=np.zeros((4, 5, 6)), mapping=AffineMapping())
    assert image.shape == (4, 5, 6)
    assert image.num_voxels == 120
    assert image.is_cartesian


def test_image_2d_promoted():
    image = CurvilinearImage(data=np.ones((4, 5)), mapping=AffineMapping())
    assert image.shape == (4, 5, 1)


@pytest.mark.parametrize(
    "data",
    [np.zeros(5), np.zeros((2, 2, 2, 2)), np.zeros((0, 3, 3)), np.zeros((2, 2, 2), complex)],
)
def test_image_invalid_data(data):
    with pytest.raises(ValidationError):
        CurvilinearImage(data=data, mapping=AffineMapping())


def test_image_sector_shape_mismatch(sector_mapping):
    with pytest.raises(GeometryError):
        CurvilinearImage(data=np.zeros((20, 21, 3)), mapping=sector_mapping)


def test_image_sector(constant_sector_image):
    assert not constant_sector_image.is_cartesian
    assert isinstance(constant_sector_image.mapping, SectorMapping)


def test_image_index_grid():
    image = CurvilinearImage(data=np.zeros((2, 3, 4)), mapping=AffineMapping())
    index = image.index_grid()
    assert index.shape == (24, 3)
    assert np.array_equal(index[1], [0, 0, 1])
    assert np.array_equal(index[4], [0, 1, 0])
    assert np.array_equal(index[-1], [1, 2, 3])


def test_image_physical_bounds(constant_sector_image):
    lower, upper = constant_sector_image.physical_bounds()
    assert np.allclose(lower, [-30 * np.sin(0.5), 10 * np.cos(0.5), 0.0])
    assert np.allclose(upper, [30 * np.sin(0.5), 30.0, 2.0])


def test_image_from_sitk_image(sample_sitk_image):
    image = CurvilinearImage.from_sitk_image(sample_sitk_image)
    assert image.shape == sample_sitk_image.GetSize()
    assert image.data[1, 2, 3] == sample_sitk_image.GetPixel(1, 2, 3)
    assert np.allclose(image.mapping.origin, sample_sitk_image.GetOrigin())
    assert np.allclose(image.mapping.spacing, sample_sitk_image.GetSpacing())


def test_image_from_sitk_image_2d():
    sitk_image = sitk.Image(4, 3, sitk.sitkFloat32)
    sitk_image.SetSpacing((0.5, 2.0))
    sitk_image.SetOrigin((1.0, -1.0))
    image = CurvilinearImage.from_sitk_image(sitk_image)
    assert image.shape == (4, 3, 1)
    assert np.allclose(image.mapping.spacing, [0.5, 2.0, 1.0])
    assert np.allclose(image.mapping.origin, [1.0, -1.0, 0.0])


def test_image_from_sitk_image_vector():
    sitk_image = sitk.Image([4, 3, 2], sitk.sitkVectorFloat32, 3)
    with pytest.raises(ValueError):
        CurvilinearImage.from_sitk_image(sitk_image)


def test_image_from_sitk_image_with_mapping(sector_mapping):
    sitk_image = sitk.Image(21, 4, 3, sitk.sitkFloat32)
    image = CurvilinearImage.from_sitk_image(sitk_image, sector_mapping)
    assert image.mapping is sector_mapping


def test_create_image(sample_sitk_image, sector_mapping):
    assert create_image(sample_sitk_image).shape == sample_sitk_image.GetSize()
    assert create_image(np.zeros((21, 3, 3)), sector_mapping).mapping is sector_mapping
    assert create_image(np.zeros((2, 3, 3))).is_cartesian


def test_validate_image(affine_field_image, sample_sitk_image):
    assert validate_image(affine_field_image) is affine_field_image
    assert isinstance(validate_image(sample_sitk_image), CurvilinearImage)
    image = validate_image({"data": np.zeros((2, 2, 2)), "mapping": AffineMapping()})
    assert image.shape == (2, 2, 2)


def test_validate_image_invalid():
    with pytest.raises(ValueError):
        validate_image(np.zeros((2, 2, 2)))
