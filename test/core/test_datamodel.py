import pytest
import numpy as np

from pyScanConvert.core import ScanConvertBaseModel


class DummyModel(ScanConvertBaseModel):
    value: int
    array: np.ndarray
    nested: dict


@pytest.fixture
def dummy_instance():
    data = {
        "value": 10,
        "array": np.array([1, 2, 3]),
        "nested": {"a": {"a_1": np.array([1, 2, 3])}, "b": 2},
    }
    return DummyModel.model_validate(data)


@pytest.fixture
def another_dummy_instance():
    data = {
        "value": 10,
        "array": np.array([1, 2, 3]),
        "nested": {"a": {"a_1": np.array([1, 2, 3])}, "b": 2},
    }
    return DummyModel.model_validate(data)


@pytest.fixture
def different_dummy_instance():
    data = {
        "value": 10,
        "array": np.array([1, 2, 3]),
        "nested": {"a": {"a_1": np.array([1, 3, 2])}, "b": 2},
    }
    return DummyModel.model_validate(data)


def test_operator_equality(dummy_instance, another_dummy_instance):
    assert dummy_instance == another_dummy_instance


def test_operator_inequality(dummy_instance, different_dummy_instance):
    assert dummy_instance != different_dummy_instance


def test_operator_inequality_other_type(dummy_instance):
    assert dummy_instance != 1
    assert dummy_instance != "string"


def test_camel_case_aliases():
    class AliasModel(ScanConvertBaseModel):
        null_value: float = 0.0

    assert AliasModel.model_validate({"nullValue": 2.0}).null_value == 2.0
    assert AliasModel(null_value=3.0).null_value == 3.0
