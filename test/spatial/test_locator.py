import pytest
import numpy as np

from pyScanConvert.core import GeometryError
from pyScanConvert.image import image_to_point_cloud
from pyScanConvert.spatial import (
    CellLocator,
    PointLocator,
    hexahedron_shape_functions,
    hexahedron_shape_derivatives,
)


def _lattice(shape, spacing=1.0):
    axes = [np.arange(n) * spacing for n in shape]
    return np.stack(np.meshgrid(*axes, indexing="ij"), axis=-1).astype(np.float64)


def test_shape_functions_partition_of_unity():
    rng = np.random.default_rng(3)
    weights = hexahedron_shape_functions(rng.random((20, 3)))
    assert weights.shape == (20, 8)
    assert np.allclose(weights.sum(axis=1), 1.0)


def test_shape_functions_corners():
    corners = np.array([[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0], [0, 0, 1]], dtype=float)
    weights = hexahedron_shape_functions(corners)
    assert np.allclose(weights[:, :5], np.eye(5))


def test_shape_derivatives_sum_to_zero():
    rng = np.random.default_rng(4)
    derivatives = hexahedron_shape_derivatives(rng.random((10, 3)))
    assert derivatives.shape == (10, 8, 3)
    assert np.allclose(derivatives.sum(axis=1), 0.0)


def test_point_locator_radius():
    points = np.zeros((5, 3))
    points[:, 0] = np.arange(5)
    locator = PointLocator(points)
    assert locator.num_points == 5

    indptr, indices = locator.points_within_radius(np.array([[2.0, 0, 0], [10.0, 0, 0]]), 1.0)
    assert np.array_equal(indptr, [0, 3, 3])
    assert sorted(indices[indptr[0] : indptr[1]].tolist()) == [1, 2, 3]


def test_point_locator_nearest():
    points = np.zeros((5, 3))
    points[:, 0] = np.arange(5)
    locator = PointLocator(points)
    distances, indices = locator.nearest(np.array([[3.2, 0, 0], [-4.0, 0, 0]]))
    assert np.array_equal(indices, [3, 0])
    assert np.allclose(distances, [0.2, 4.0])


def test_point_locator_invalid():
    with pytest.raises(GeometryError):
        PointLocator(np.zeros((0, 3)))
    with pytest.raises(GeometryError):
        PointLocator(np.zeros((4, 2)))


def test_cell_locator_cells():
    locator = CellLocator(_lattice((3, 3, 3)))
    assert locator.num_cells == 8
    # first cell in VTK corner order
    assert np.array_equal(locator.corner_ids[0], [0, 9, 12, 3, 1, 10, 13, 4])


def test_cell_locator_locate():
    locator = CellLocator(_lattice((3, 3, 3)))
    cell_id, pcoords = locator.locate_cell([0.5, 0.25, 1.75])
    assert cell_id == (0 * 2 + 0) * 2 + 1
    assert np.allclose(pcoords, [0.5, 0.25, 0.75])


def test_cell_locator_outside():
    locator = CellLocator(_lattice((3, 3, 3)))
    cell_ids, _ = locator.locate_cells(np.array([[5.0, 5.0, 5.0], [-0.1, 1.0, 1.0]]))
    assert np.array_equal(cell_ids, [-1, -1])


def test_cell_locator_boundary():
    locator = CellLocator(_lattice((3, 3, 3)))
    cell_id, pcoords = locator.locate_cell([2.0, 2.0, 2.0])
    assert cell_id == locator.num_cells - 1
    assert np.allclose(pcoords, [1.0, 1.0, 1.0])


def test_cell_locator_collapsed_axis():
    locator = CellLocator(_lattice((3, 3, 1)))
    assert locator.num_cells == 4

    cell_ids, pcoords = locator.locate_cells(np.array([[1.5, 0.5, 0.0], [1.5, 0.5, 0.1]]))
    assert cell_ids[0] == 2
    assert np.allclose(pcoords[0, :2], [0.5, 0.5])
    assert cell_ids[1] == -1


def test_cell_locator_sector(constant_sector_image):
    cloud = image_to_point_cloud(constant_sector_image)
    locator = CellLocator(cloud.structured_points())

    cell = 123
    corners = cloud.points[locator.corner_ids[cell]]
    pcoords = np.array([[0.3, 0.6, 0.2]])
    query = hexahedron_shape_functions(pcoords) @ corners

    cell_ids, found = locator.locate_cells(query)
    assert cell_ids[0] == cell
    assert np.allclose(found, pcoords, atol=1e-6)


def test_cell_locator_invalid():
    with pytest.raises(GeometryError):
        CellLocator(np.zeros((3, 3, 3)))
