"""Command line interface: scan convert an image file onto a Cartesian grid."""

import logging
import sys
from argparse import ArgumentParser
from typing import Optional, Sequence

import numpy as np
from tqdm.contrib.logging import logging_redirect_tqdm

from pyScanConvert.core import Grid, ScanConvertError, TqdmProgress
from pyScanConvert.geometry import SectorMapping
from pyScanConvert.image import CurvilinearImage
from pyScanConvert.io import load_image, save_image
from pyScanConvert.resampling import ResamplingOptions, available_methods, scan_convert

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="pyscanconvert",
        description="Resample a curvilinear image onto a Cartesian grid",
    )
    parser.add_argument("input", metavar="INPUT", help="Input image")
    parser.add_argument("output", metavar="OUTPUT", help="Output image")
    parser.add_argument(
        "--method",
        "-m",
        default="ITKLinear",
        help=f"Resampling method, one of {', '.join(available_methods())} [default: ITKLinear]",
    )
    parser.add_argument("--size", type=int, nargs=3, default=None, metavar="N", help="Output size")
    parser.add_argument(
        "--spacing", type=float, nargs=3, default=None, metavar="S", help="Output spacing"
    )
    parser.add_argument(
        "--origin", type=float, nargs=3, default=None, metavar="O", help="Output origin"
    )
    parser.add_argument(
        "--direction",
        type=float,
        nargs=9,
        default=None,
        metavar="D",
        help="Output direction matrix, row major [default: identity]",
    )
    parser.add_argument(
        "--sector",
        type=float,
        nargs=4,
        default=None,
        metavar=("LATERAL_SEPARATION", "RADIUS_SAMPLE_SIZE", "FIRST_SAMPLE_DISTANCE", "ELEVATION"),
        help="Interpret the input as sector (fan) geometry; lateral separation in radians",
    )
    parser.add_argument(
        "--pixel-type",
        default="float32",
        dest="pixel_type",
        help="Output pixel type as numpy dtype name [default: float32]",
    )
    parser.add_argument(
        "--default-value",
        type=float,
        default=0.0,
        dest="default_value",
        help="Value outside the input domain [default: 0]",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=False,
        help="Fail on unknown methods instead of falling back to ITKLinear",
    )
    parser.add_argument(
        "--progress", action="store_true", default=False, help="Show a progress bar"
    )
    parser.add_argument(
        "--verbose", "-v", action="count", default=0, help="Increase logging verbosity"
    )
    return parser


def default_output_grid(
    image: CurvilinearImage, spacing: Optional[Sequence[float]] = None
) -> Grid:
    """
    Derive an output grid covering the physical bounds of an image.

    Without a spacing, the isotropic spacing is the smallest mean sample distance
    along the bounding box axes.
    """
    lower, upper = image.physical_bounds()
    if spacing is None:
        extent = upper - lower
        steps = np.maximum(np.asarray(image.shape) - 1, 1)
        candidates = extent / steps
        candidates = candidates[candidates > 0]
        spacing = float(candidates.min()) if candidates.size > 0 else 1.0
    return Grid.from_bounds(lower, upper, spacing)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format="%(levelname)s:%(name)s: %(message)s")

    progress = TqdmProgress() if args.progress else None
    try:
        image = load_image(args.input)
        if args.sector is not None:
            lateral_separation, radius_size, first_distance, elevation = args.sector
            mapping = SectorMapping(
                lateral_size=image.shape[0],
                lateral_angular_separation=lateral_separation,
                radius_sample_size=radius_size,
                first_sample_distance=first_distance,
                elevation_sample_size=elevation,
            )
            image = CurvilinearImage(data=image.data, mapping=mapping)

        if args.size is None:
            grid = default_output_grid(image, args.spacing)
            if args.origin is not None or args.direction is not None:
                grid = Grid.from_size_spacing(
                    grid.dimensions,
                    grid.resolution_vector,
                    grid.origin if args.origin is None else args.origin,
                    args.direction,
                )
        else:
            if args.spacing is None:
                raise ValueError("--spacing is required together with --size")
            grid = Grid.from_size_spacing(
                args.size,
                args.spacing,
                (0.0, 0.0, 0.0) if args.origin is None else args.origin,
                args.direction,
            )
        logger.info("Output grid: size %s, spacing %s", grid.dimensions, grid.resolution)

        options = ResamplingOptions(
            output_pixel_type=args.pixel_type,
            default_value=args.default_value,
            strict_method=args.strict,
        )
        # keep log records from tearing the progress bar
        with logging_redirect_tqdm():
            output = scan_convert(
                image, grid=grid, method=args.method, progress=progress, options=options
            )
        save_image(output, args.output)
    except (ScanConvertError, ValueError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return EXIT_FAILURE
    finally:
        if progress is not None:
            progress.close()

    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
