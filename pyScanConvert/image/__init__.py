"""Input images and their point cloud representation."""

from ._image import CurvilinearImage, create_image, validate_image
from ._point_cloud import PointCloud, image_to_point_cloud

__all__ = [
    "CurvilinearImage",
    "create_image",
    "validate_image",
    "PointCloud",
    "image_to_point_cloud",
]
