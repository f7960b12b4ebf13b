"""Spatial search structures built once per conversion and queried many times."""

import itertools
import logging
import time

import numpy as np
from scipy.spatial import cKDTree

from pyScanConvert.core import GeometryError

logger = logging.getLogger(__name__)

# Hexahedron corner offsets in (i, j, k), VTK point ordering
HEXAHEDRON_CORNERS = np.array(
    [
        [0, 0, 0],
        [1, 0, 0],
        [1, 1, 0],
        [0, 1, 0],
        [0, 0, 1],
        [1, 0, 1],
        [1, 1, 1],
        [0, 1, 1],
    ],
    dtype=np.int64,
)


def _ball_neighbors_to_csr(neighbors: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Flatten the object array returned by query_ball_point into (indptr, indices)."""
    counts = np.fromiter((len(n) for n in neighbors), dtype=np.int64, count=len(neighbors))
    indptr = np.zeros(len(neighbors) + 1, dtype=np.int64)
    np.cumsum(counts, out=indptr[1:])
    indices = np.fromiter(
        itertools.chain.from_iterable(neighbors), dtype=np.int64, count=int(indptr[-1])
    )
    return indptr, indices


def hexahedron_shape_functions(pcoords: np.ndarray) -> np.ndarray:
    """
    Trilinear shape functions of a hexahedron.

    Parameters
    ----------
    pcoords : np.ndarray
        (P, 3) parametric coordinates in [0, 1].

    Returns
    -------
    np.ndarray
        (P, 8) corner weights in VTK corner order.
    """
    factors = np.where(
        HEXAHEDRON_CORNERS[np.newaxis, :, :] == 1,
        pcoords[:, np.newaxis, :],
        1.0 - pcoords[:, np.newaxis, :],
    )
    return factors.prod(axis=2)


def hexahedron_shape_derivatives(pcoords: np.ndarray) -> np.ndarray:
    """(P, 8, 3) derivatives of the shape functions w.r.t. the parametric coordinates."""
    factors = np.where(
        HEXAHEDRON_CORNERS[np.newaxis, :, :] == 1,
        pcoords[:, np.newaxis, :],
        1.0 - pcoords[:, np.newaxis, :],
    )
    sign = np.where(HEXAHEDRON_CORNERS == 1, 1.0, -1.0)
    derivatives = np.empty(factors.shape)
    for d in range(3):
        derivatives[:, :, d] = (
            sign[np.newaxis, :, d] * factors[:, :, (d + 1) % 3] * factors[:, :, (d + 2) % 3]
        )
    return derivatives


class PointLocator:
    """
    Radius and nearest neighbour queries over a fixed point set.

    Parameters
    ----------
    points : np.ndarray
        (N, 3) sample positions.
    workers : int, optional
        Number of workers used by the queries (-1 uses all cores).
    """

    def __init__(self, points: np.ndarray, workers: int = 1):
        points = np.asarray(points, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != 3 or points.shape[0] == 0:
            raise GeometryError(
                f"Point locator needs a non-empty (N, 3) array, got {points.shape}"
            )

        t = time.time()
        self.workers = workers
        self._tree = cKDTree(points)
        logger.debug(
            "Built point locator over %d points in %f seconds.", len(points), time.time() - t
        )

    @property
    def num_points(self) -> int:
        return int(self._tree.n)

    def points_within_radius(
        self, query: np.ndarray, radius: float
    ) -> tuple[np.ndarray, np.ndarray]:
        """
        Find all points within (and on) a radius around each query point.

        Parameters
        ----------
        query : np.ndarray
            (Q, 3) query positions.
        radius : float
            Search radius.

        Returns
        -------
        indptr : np.ndarray
            (Q + 1,) offsets; neighbours of query q are ``indices[indptr[q]:indptr[q+1]]``.
        indices : np.ndarray
            Point indices of all neighbourhoods.
        """
        query = np.atleast_2d(np.asarray(query, dtype=np.float64))
        neighbors = self._tree.query_ball_point(
            query, r=radius, workers=self.workers, return_sorted=False
        )
        return _ball_neighbors_to_csr(neighbors)

    def nearest(self, query: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """
        Find the single nearest point of each query point.

        Returns
        -------
        distances : np.ndarray
            (Q,) distances.
        indices : np.ndarray
            (Q,) point indices. Ties are resolved by the tree traversal order.
        """
        query = np.atleast_2d(np.asarray(query, dtype=np.float64))
        distances, indices = self._tree.query(query, k=1, workers=self.workers)
        return distances, indices


class CellLocator:
    """
    Point location in the hexahedral cells of a structured grid of points.

    Axes with a single sample collapse the cells along that axis (quadrilaterals,
    lines), matching the way structured grids degenerate.

    Parameters
    ----------
    structured_points : np.ndarray
        (n0, n1, n2, 3) physical positions of the grid points.
    tolerance : float, optional
        Parametric tolerance for the containment test.
    max_iterations : int, optional
        Maximum Newton steps to invert the trilinear map.
    workers : int, optional
        Number of workers used by the candidate search.
    """

    def __init__(
        self,
        structured_points: np.ndarray,
        tolerance: float = 1e-6,
        max_iterations: int = 20,
        workers: int = 1,
    ):
        structured_points = np.asarray(structured_points, dtype=np.float64)
        if structured_points.ndim != 4 or structured_points.shape[3] != 3:
            raise GeometryError(
                "Expected structured points of shape (n0, n1, n2, 3), "
                f"got {structured_points.shape}"
            )

        t = time.time()
        self.tolerance = tolerance
        self.max_iterations = max_iterations
        self.workers = workers
        self.dimensions = structured_points.shape[:3]

        self._points = structured_points.reshape((-1, 3))
        self._corner_ids = self._build_cells(self.dimensions)
        corners = self._points[self._corner_ids]

        self._lower = corners.min(axis=1)
        self._upper = corners.max(axis=1)
        centers = corners.mean(axis=1)
        circumradius = np.linalg.norm(corners - centers[:, np.newaxis, :], axis=2).max(axis=1)
        self._scale = np.maximum(circumradius, np.finfo(np.float64).tiny)
        self._search_radius = float(circumradius.max()) * (1.0 + 1e-9) + 1e-12

        self._center_tree = cKDTree(centers)
        logger.debug(
            "Built cell locator with %d cells in %f seconds.", self.num_cells, time.time() - t
        )

    @staticmethod
    def _build_cells(dimensions: tuple[int, int, int]) -> np.ndarray:
        """Return the (M, 8) point ids of all cells."""
        n0, n1, n2 = dimensions
        steps = np.array([1 if n > 1 else 0 for n in dimensions], dtype=np.int64)
        cell_dims = [max(n - 1, 1) for n in dimensions]

        base = np.stack(
            np.meshgrid(*[np.arange(n) for n in cell_dims], indexing="ij"), axis=-1
        ).reshape((-1, 3))
        ijk = base[:, np.newaxis, :] + HEXAHEDRON_CORNERS[np.newaxis, :, :] * steps
        return (ijk[:, :, 0] * n1 + ijk[:, :, 1]) * n2 + ijk[:, :, 2]

    @property
    def num_cells(self) -> int:
        return int(self._corner_ids.shape[0])

    @property
    def corner_ids(self) -> np.ndarray:
        """(M, 8) point ids of the cell corners."""
        return self._corner_ids

    def locate_cells(self, query: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """
        Locate the cell containing each query point.

        Parameters
        ----------
        query : np.ndarray
            (Q, 3) query positions.

        Returns
        -------
        cell_ids : np.ndarray
            (Q,) containing cell, -1 if the point is outside the grid.
        pcoords : np.ndarray
            (Q, 3) parametric coordinates within the cell (undefined where not found).
        """
        query = np.atleast_2d(np.asarray(query, dtype=np.float64))
        num_query = query.shape[0]
        cell_ids = np.full(num_query, -1, dtype=np.int64)
        pcoords = np.zeros((num_query, 3))

        neighbors = self._center_tree.query_ball_point(
            query, r=self._search_radius, workers=self.workers, return_sorted=True
        )
        indptr, candidates = _ball_neighbors_to_csr(neighbors)
        owner = np.repeat(np.arange(num_query), np.diff(indptr))

        # Cheap bounding box rejection before the Newton inversion
        slack = self.tolerance * self._scale[candidates, np.newaxis]
        in_box = np.all(
            (query[owner] >= self._lower[candidates] - slack)
            & (query[owner] <= self._upper[candidates] + slack),
            axis=1,
        )
        owner = owner[in_box]
        candidates = candidates[in_box]
        if candidates.size == 0:
            return cell_ids, pcoords

        corners = self._points[self._corner_ids[candidates]]
        targets = query[owner]
        r, residual = self._invert_trilinear(corners, targets)

        inside = np.all((r >= -self.tolerance) & (r <= 1.0 + self.tolerance), axis=1)
        inside &= residual <= self.tolerance * self._scale[candidates]

        # First containing cell per query point
        found_owner, first = np.unique(owner[inside], return_index=True)
        cell_ids[found_owner] = candidates[inside][first]
        pcoords[found_owner] = np.clip(r[inside][first], 0.0, 1.0)
        return cell_ids, pcoords

    def locate_cell(self, point: np.ndarray) -> tuple[int, np.ndarray]:
        """Locate a single point. Returns the cell id (-1 if outside) and pcoords."""
        cell_ids, pcoords = self.locate_cells(np.asarray(point, dtype=np.float64).reshape((1, 3)))
        return int(cell_ids[0]), pcoords[0]

    def _invert_trilinear(
        self, corners: np.ndarray, targets: np.ndarray
    ) -> tuple[np.ndarray, np.ndarray]:
        """Newton inversion of the trilinear map of each (cell, target) pair."""
        r = np.full(targets.shape, 0.5)
        for _ in range(self.max_iterations):
            mapped = np.einsum("pc,pcx->px", hexahedron_shape_functions(r), corners)
            residual = mapped - targets
            if np.all(np.abs(residual) <= 1e-12):
                break
            jacobian = np.einsum("pcd,pcx->pxd", hexahedron_shape_derivatives(r), corners)
            # pinv keeps collapsed axes at their current parametric value
            delta = np.matmul(np.linalg.pinv(jacobian), residual[:, :, np.newaxis])[:, :, 0]
            r = np.clip(r - delta, -1.0, 2.0)

        mapped = np.einsum("pc,pcx->px", hexahedron_shape_functions(r), corners)
        return r, np.linalg.norm(mapped - targets, axis=1)
