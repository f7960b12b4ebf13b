import logging

import numpy as np
import SimpleITK as sitk

from pyScanConvert import (
    CurvilinearImage,
    Grid,
    SectorMapping,
    scan_convert,
)
from pyScanConvert.core import TqdmProgress
from pyScanConvert.resampling import available_methods

logging.basicConfig(level=logging.INFO)

# Synthetic fan acquisition: 64 scan lines over ~60 degrees, 200 samples per line
mapping = SectorMapping(
    lateral_size=64,
    lateral_angular_separation=np.deg2rad(60.0) / 63,
    radius_sample_size=0.5,
    first_sample_distance=5.0,
    elevation_sample_size=1.0,
)

# Concentric rings as test pattern
radius = 5.0 + 0.5 * np.arange(200)
data = np.broadcast_to(np.sin(radius / 4.0)[np.newaxis, :, np.newaxis], (64, 200, 1))
image = CurvilinearImage(data=data.copy(), mapping=mapping)

# Cover the sector with a 0.5 mm grid
lower, upper = image.physical_bounds()
grid = Grid.from_bounds(lower, upper, 0.5)

for method in available_methods():
    progress = TqdmProgress(desc=method)
    output = scan_convert(image, grid=grid, method=method, progress=progress)
    progress.close()
    sitk.WriteImage(output, f"sector_{method}.nrrd")
