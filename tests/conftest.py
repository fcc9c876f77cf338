import pytest

from flashlight import Flashlight
from helpers import fit_linear, linear_predict, make_linear_data, make_scenario_data


@pytest.fixture
def scenario_data():
    return make_scenario_data()


@pytest.fixture
def linear_data():
    return make_linear_data()


@pytest.fixture
def linear_flashlight(linear_data):
    return Flashlight(
        model=fit_linear(linear_data),
        label='lm',
        data=linear_data,
        y='y',
        predict_function=linear_predict
    )
