import pytest
import numpy as np
import SimpleITK as sitk

from pyScanConvert.cli import EXIT_FAILURE, EXIT_SUCCESS, build_parser, default_output_grid, main
from pyScanConvert.core.np2sitk import sitk_image_to_array


@pytest.fixture
def sector_file(tmp_path) -> str:
    image = sitk.GetImageFromArray(np.full((3, 21, 21), 7.0, dtype=np.float32))
    path = tmp_path / "sector.nrrd"
    sitk.WriteImage(image, str(path))
    return str(path)


@pytest.fixture
def sector_args(sector_file) -> list:
    return [sector_file, "--sector", "0.05", "1.0", "10.0", "1.0"]


def test_parser_defaults():
    args = build_parser().parse_args(["in.nrrd", "out.nrrd"])
    assert args.method == "ITKLinear"
    assert args.size is None
    assert args.pixel_type == "float32"
    assert not args.strict


def test_default_output_grid(constant_sector_image):
    grid = default_output_grid(constant_sector_image)
    lower, upper = constant_sector_image.physical_bounds()
    assert np.allclose(grid.origin, lower)
    assert np.allclose(grid.resolution_vector, 1.0)
    assert np.all(grid.physical_extent >= upper - 1e-9)


def test_cli_explicit_grid(tmp_path, sector_args):
    output = tmp_path / "out.nrrd"
    argv = [sector_args[0], str(output)] + sector_args[1:]
    argv += ["--size", "7", "11", "3", "--spacing", "1", "1", "1", "--origin", "-3", "15", "0"]
    assert main(argv) == EXIT_SUCCESS

    image = sitk.ReadImage(str(output))
    assert image.GetSize() == (7, 11, 3)
    assert np.allclose(sitk_image_to_array(image), 7.0)


def test_cli_progress_verbose(tmp_path, sector_args):
    output = tmp_path / "out.nrrd"
    argv = [sector_args[0], str(output)] + sector_args[1:]
    argv += ["--size", "7", "11", "3", "--spacing", "1", "1", "1", "--origin", "-3", "15", "0"]
    argv += ["--progress", "-vv"]
    assert main(argv) == EXIT_SUCCESS
    assert np.allclose(sitk_image_to_array(sitk.ReadImage(str(output))), 7.0)


def test_cli_default_grid(tmp_path, sector_args):
    output = tmp_path / "out.nrrd"
    argv = [sector_args[0], str(output)] + sector_args[1:] + ["-m", "VTKVoronoiKernel"]
    assert main(argv) == EXIT_SUCCESS
    assert output.exists()


def test_cli_pixel_type(tmp_path, sector_args):
    output = tmp_path / "out.nrrd"
    argv = [sector_args[0], str(output)] + sector_args[1:]
    argv += ["--size", "2", "2", "1", "--spacing", "1", "1", "1", "--origin", "0", "20", "0"]
    argv += ["--pixel-type", "uint8"]
    assert main(argv) == EXIT_SUCCESS
    assert sitk.ReadImage(str(output)).GetPixelID() == sitk.sitkUInt8


def test_cli_unsupported_pixel_type(tmp_path, sector_args):
    output = tmp_path / "out.nrrd"
    argv = [sector_args[0], str(output)] + sector_args[1:] + ["--pixel-type", "float16"]
    assert main(argv) == EXIT_FAILURE
    assert not output.exists()


def test_cli_missing_input(tmp_path):
    argv = [str(tmp_path / "missing.nrrd"), str(tmp_path / "out.nrrd")]
    assert main(argv) == EXIT_FAILURE


def test_cli_strict_unknown_method(tmp_path, sector_args):
    output = tmp_path / "out.nrrd"
    argv = [sector_args[0], str(output)] + sector_args[1:] + ["-m", "Bogus", "--strict"]
    assert main(argv) == EXIT_FAILURE
    assert not output.exists()


def test_cli_size_without_spacing(tmp_path, sector_args):
    argv = [sector_args[0], str(tmp_path / "out.nrrd")] + sector_args[1:]
    argv += ["--size", "2", "2", "2"]
    assert main(argv) == EXIT_FAILURE


def test_cli_sector_lateral_size_from_input(tmp_path):
    path = tmp_path / "small.nrrd"
    sitk.WriteImage(sitk.Image(4, 4, 1, sitk.sitkFloat32), str(path))
    argv = [str(path), str(tmp_path / "out.nrrd"), "--sector", "0.05", "1", "10", "1"]
    # lateral size follows the input, so the sector geometry is always consistent
    assert main(argv) == EXIT_SUCCESS
