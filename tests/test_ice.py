import pytest
import numpy as np
import pandas as pd

from flashlight import MultiFlashlight, light_ice
from flashlight.exceptions import GridPointNotFoundError, UnknownVariableError


def test_ice_profiles_follow_the_slope(linear_flashlight):
    result = light_ice(linear_flashlight, 'x1', evaluate_at=[0.0, 5.0, 10.0], seed=1)
    data = result.data
    slope = linear_flashlight.model.coef_[0]

    assert list(data.columns) == ['label', 'id_', 'x1', 'value']
    assert data['id_'].nunique() == 20
    assert len(data) == 60
    for _, profile in data.groupby('id_'):
        np.testing.assert_allclose(np.diff(profile['value']), [5 * slope, 5 * slope])


def test_ice_grid_and_rows(linear_flashlight):
    result = light_ice(linear_flashlight, 'x1', n_bins=4, indices=[0, 1, 2])

    assert result.data['id_'].unique().tolist() == [0, 1, 2]
    assert result.data.groupby('id_').size().tolist() == [5, 5, 5]


def test_ice_centering(linear_flashlight):
    result = light_ice(linear_flashlight, 'x1', evaluate_at=[0.0, 5.0, 10.0],
                       n_max=5, seed=1, center=5.0)
    at_center = result.data[result.data['x1'] == 5.0]

    np.testing.assert_allclose(at_center['value'], 0.0, atol=1e-10)
    assert result.center == 5.0

    with pytest.raises(GridPointNotFoundError):
        light_ice(linear_flashlight, 'x1', evaluate_at=[0.0, 5.0], center=3.0)


def test_ice_centered_at_first_point(linear_flashlight):
    result = light_ice(linear_flashlight, 'x2', n_max=4, seed=2, center='first')
    first = result.data.groupby('id_')['value'].first()
    np.testing.assert_allclose(first, 0.0, atol=1e-10)


def test_ice_with_groups(linear_flashlight):
    result = light_ice(linear_flashlight, 'x1', by='cat', n_max=6, seed=0)

    assert list(result.data.columns) == ['label', 'cat', 'id_', 'x1', 'value']
    assert result.by == ['cat']


def test_ice_of_multiple_flashlights(linear_flashlight):
    fls = MultiFlashlight([linear_flashlight, linear_flashlight.update(label='lm2')])
    result = light_ice(fls, 'x1', n_bins=2, n_max=3, seed=4)

    assert result.labels == ['lm', 'lm2']
    assert len(result.data) == 2 * 3 * 3
    first = result.data[result.data['label'] == 'lm']
    second = result.data[result.data['label'] == 'lm2']
    np.testing.assert_allclose(first['value'].to_numpy(), second['value'].to_numpy())


def test_ice_of_unknown_variable(linear_flashlight):
    with pytest.raises(UnknownVariableError):
        light_ice(linear_flashlight, 'x9')


def test_ice_of_two_variables(linear_flashlight):
    result = light_ice(linear_flashlight, ['x1', 'cat'], n_bins=2, indices=[0, 1])
    data = result.data

    assert list(data.columns) == ['label', 'id_', 'x1', 'cat', 'value']
    assert result.v == ['x1', 'cat']
    assert len(data) == 2 * 3 * 3
    # the model ignores cat
    spread = data.groupby(['id_', 'x1'])['value'].agg(lambda s: s.max() - s.min())
    np.testing.assert_allclose(spread, 0.0, atol=1e-10)


def test_ice_on_explicit_joint_grid(linear_flashlight):
    grid = pd.DataFrame({'x1': [0.0, 10.0], 'x2': [0.0, 1.0]})
    result = light_ice(linear_flashlight, ['x1', 'x2'], evaluate_at=grid, indices=[3])
    coef = linear_flashlight.model.coef_

    assert result.data['x1'].tolist() == [0.0, 10.0]
    assert result.data['x2'].tolist() == [0.0, 1.0]
    np.testing.assert_allclose(np.diff(result.data['value']), [10 * coef[0] + coef[1]])

    with pytest.raises(ValueError):
        light_ice(linear_flashlight, ['x1', 'x2'], evaluate_at=grid, center=0.0)
