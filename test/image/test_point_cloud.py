import pytest
import numpy as np
from pydantic import ValidationError

from pyScanConvert.core import ProgressReporter
from pyScanConvert.image import PointCloud, image_to_point_cloud


def test_point_cloud_validation():
    cloud = PointCloud(points=np.zeros((4, 3)), values=np.arange(4))
    assert cloud.num_points == 4
    assert not cloud.is_structured


def test_point_cloud_invalid_points():
    with pytest.raises(ValidationError):
        PointCloud(points=np.zeros((4, 2)), values=np.arange(4))


def test_point_cloud_value_mismatch():
    with pytest.raises(ValidationError):
        PointCloud(points=np.zeros((4, 3)), values=np.arange(3))


def test_point_cloud_dimension_mismatch():
    with pytest.raises(ValidationError):
        PointCloud(points=np.zeros((4, 3)), values=np.arange(4), dimensions=(2, 2, 2))


def test_point_cloud_unstructured_access():
    cloud = PointCloud(points=np.zeros((4, 3)), values=np.arange(4))
    with pytest.raises(ValueError):
        cloud.structured_points()
    with pytest.raises(ValueError):
        cloud.structured_values()


def test_image_to_point_cloud(random_cartesian_image):
    cloud = image_to_point_cloud(random_cartesian_image)
    assert cloud.num_points == random_cartesian_image.num_voxels
    assert cloud.is_structured
    assert cloud.structured_values()[1, 2, 3] == random_cartesian_image.data[1, 2, 3]
    assert np.allclose(
        cloud.structured_points()[1, 2, 3],
        random_cartesian_image.mapping.index_to_physical([1, 2, 3])[0],
    )


def test_image_to_point_cloud_sector(constant_sector_image):
    cloud = image_to_point_cloud(constant_sector_image, structured=False)
    assert not cloud.is_structured
    assert np.all(cloud.values == 7.0)
    radius = np.hypot(cloud.points[:, 0], cloud.points[:, 1])
    assert radius.min() == pytest.approx(10.0)
    assert radius.max() == pytest.approx(30.0)


def test_image_to_point_cloud_progress(random_cartesian_image):
    received = []
    reporter = ProgressReporter(lambda fraction, message: received.append(fraction))
    image_to_point_cloud(random_cartesian_image, progress=reporter)
    assert received == [1.0]
