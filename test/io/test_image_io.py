import pytest
import numpy as np
import SimpleITK as sitk

from pyScanConvert.io import load_image, save_image


def test_load_image(tmp_path, sample_sitk_image):
    path = tmp_path / "input.nrrd"
    sitk.WriteImage(sample_sitk_image, str(path))

    image = load_image(path)
    assert image.shape == sample_sitk_image.GetSize()
    assert image.is_cartesian
    assert np.allclose(image.mapping.spacing, sample_sitk_image.GetSpacing())


def test_load_image_with_mapping(tmp_path, sector_mapping):
    path = tmp_path / "sector.mha"
    sitk.WriteImage(sitk.Image(21, 5, 3, sitk.sitkFloat32), str(path))

    image = load_image(path, mapping=sector_mapping)
    assert not image.is_cartesian
    assert image.shape == (21, 5, 3)


def test_load_image_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_image(tmp_path / "missing.nrrd")


def test_save_image(tmp_path, sample_sitk_image):
    path = tmp_path / "output.nrrd"
    save_image(sample_sitk_image, path, use_compression=True)
    assert path.exists()

    loaded = sitk.ReadImage(str(path))
    assert loaded.GetSize() == sample_sitk_image.GetSize()
    assert np.allclose(loaded.GetOrigin(), sample_sitk_image.GetOrigin())
    expected = sitk.GetArrayFromImage(sample_sitk_image)
    assert np.array_equal(sitk.GetArrayFromImage(loaded), expected)
