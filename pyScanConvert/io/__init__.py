"""Image file input / output."""

from ._image_io import load_image, save_image

__all__ = ["load_image", "save_image"]
