import pytest
from sklearn.tree import DecisionTreeRegressor

from flashlight import Flashlight, MultiFlashlight, light_global_surrogate
from flashlight.exceptions import UnknownVariableError
from helpers import step_predict


@pytest.fixture
def step_flashlight(linear_data):
    return Flashlight(label='step', data=linear_data, y='y', predict_function=step_predict)


def test_tree_recovers_step_function(step_flashlight):
    result = light_global_surrogate(step_flashlight, v=['x1', 'x2'], seed=0)

    assert list(result.data.columns) == ['label', 'r_squared', 'max_depth']
    assert result.data['r_squared'].iloc[0] > 0.99
    assert result.data['max_depth'].iloc[0] == 3
    assert isinstance(result.models[('step',)], DecisionTreeRegressor)


def test_categorical_variables_are_encoded(step_flashlight):
    result = light_global_surrogate(step_flashlight, v=['cat', 'x1'], max_depth=2)
    tree = result.models[('step',)]

    assert 'cat_a' in tree.feature_names_in_
    assert tree.get_depth() <= 2


def test_one_tree_per_group(step_flashlight):
    result = light_global_surrogate(step_flashlight, by='cat', v=['x1', 'x2'])

    assert result.data['cat'].tolist() == ['a', 'b', 'c']
    assert sorted(result.models) == [('step', 'a'), ('step', 'b'), ('step', 'c')]


def test_default_variables(step_flashlight):
    result = light_global_surrogate(step_flashlight.update(w='w'))
    assert result.variables == ['x1', 'x2', 'noise', 'cat']


def test_surrogates_of_multiple_flashlights(step_flashlight, linear_flashlight):
    fls = MultiFlashlight([step_flashlight, linear_flashlight])
    result = light_global_surrogate(fls, v=['x1', 'x2'], n_max=100, seed=1)

    assert result.labels == ['step', 'lm']
    assert set(result.models) == {('step',), ('lm',)}


def test_unknown_variable(step_flashlight):
    with pytest.raises(UnknownVariableError):
        light_global_surrogate(step_flashlight, v=['x7'])
