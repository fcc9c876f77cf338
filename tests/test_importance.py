"""
Unit tests for permutation importance.
"""

import unittest
import numpy as np
import pandas as pd

from flashlight import Flashlight, LightResult, MultiFlashlight, light_importance, most_important
from flashlight.evaluation.metrics import mse, r_squared
from flashlight.exceptions import AmbiguousMetricDirectionError, UnknownVariableError
from helpers import (
    constant_predict,
    fit_linear,
    linear_predict,
    make_linear_data,
    make_scenario_data
)


class TestConstantPredictor(unittest.TestCase):
    """
    Importance of a variable the model ignores.
    """

    def setUp(self):
        self.fl = Flashlight(label='const', data=make_scenario_data(), y='y',
                             predict_function=constant_predict, metrics={'mse': mse})

    def test_ignored_variable_has_zero_importance(self):
        result = light_importance(self.fl, v='x', seed=1)

        self.assertEqual(list(result.data.columns),
                         ['label', 'variable', 'metric', 'value', 'error'])
        self.assertEqual(result.data['value'].iloc[0], 0.0)
        self.assertTrue(np.isnan(result.data['error'].iloc[0]))

    def test_repetitions_give_standard_errors(self):
        result = light_importance(self.fl, v='x', m_repetitions=3, seed=1)
        self.assertEqual(result.data['error'].iloc[0], 0.0)

    def test_empty_variable_list(self):
        result = light_importance(self.fl, v=[])

        self.assertEqual(len(result.data), 0)
        self.assertIn('error', result.data.columns)
        self.assertEqual(most_important(result), [])

    def test_unknown_variable(self):
        with self.assertRaises(UnknownVariableError):
            light_importance(self.fl, v=['x', 'z'])

    def test_invalid_repetitions(self):
        with self.assertRaises(ValueError):
            light_importance(self.fl, v='x', m_repetitions=0)

    def test_default_variables(self):
        result = light_importance(self.fl, seed=1)
        self.assertEqual(result.data['variable'].tolist(), ['x', 'g'])

        grouped = light_importance(self.fl, by='g', seed=1)
        self.assertEqual(grouped.data['variable'].tolist(), ['x', 'x'])
        self.assertEqual(grouped.data['g'].tolist(), ['a', 'b'])


class TestLinearModel(unittest.TestCase):
    """
    Importance for a fitted linear regression.
    """

    def setUp(self):
        data = make_linear_data()
        self.fl = Flashlight(model=fit_linear(data), label='lm', data=data, y='y',
                             predict_function=linear_predict)
        self.v = ['x1', 'x2', 'noise']

    def test_ranking(self):
        result = light_importance(self.fl, v=self.v, seed=42)
        values = dict(zip(result.data['variable'], result.data['value']))

        self.assertGreater(values['x1'], values['x2'])
        self.assertGreater(values['x2'], 0.0)
        self.assertEqual(values['noise'], 0.0)
        self.assertEqual(most_important(result, top_m=2), ['x1', 'x2'])

    def test_sign_does_not_depend_on_metric_direction(self):
        result = light_importance(self.fl, v=['x1'], seed=7,
                                  metrics={'mse': mse, 'r2': r_squared})
        self.assertTrue((result.data['value'] > 0).all())

    def test_flipped_direction_negates_importance(self):
        lower = light_importance(self.fl, v=self.v, metrics={'mse': mse},
                                 lower_is_better=True, m_repetitions=3, seed=5)
        higher = light_importance(self.fl, v=self.v, metrics={'mse': mse},
                                  lower_is_better=False, m_repetitions=3, seed=5)

        np.testing.assert_array_equal(lower.data['value'], -higher.data['value'])
        np.testing.assert_array_equal(lower.data['error'], higher.data['error'])

    def test_error_and_score_metrics_agree(self):
        # r2 = 1 - mse / var(y), so its importance is the mse importance over var(y)
        result = light_importance(self.fl, v=self.v, seed=11,
                                  metrics={'mse': mse, 'r2': r_squared})
        values = result.data.pivot(index='variable', columns='metric', values='value')

        np.testing.assert_allclose(values['r2'] * np.var(self.fl.data['y']), values['mse'],
                                   atol=1e-10)

    def test_seed_reproducibility(self):
        first = light_importance(self.fl, v=self.v, m_repetitions=2, seed=3)
        second = light_importance(self.fl, v=self.v, m_repetitions=2, seed=3)
        pd.testing.assert_frame_equal(first.data, second.data)

    def test_subsampling(self):
        result = light_importance(self.fl, v=self.v, n_max=50, seed=3)
        self.assertEqual(most_important(result, top_m=1), ['x1'])

    def test_custom_metric_needs_direction(self):
        def max_error(actual, predicted, w=None):
            return float(np.max(np.abs(np.asarray(actual) - predicted)))

        with self.assertRaises(AmbiguousMetricDirectionError):
            light_importance(self.fl, v=self.v, metrics={'max_error': max_error})

        result = light_importance(self.fl, v=['x1'], metrics={'max_error': max_error},
                                  lower_is_better=True, seed=1)
        self.assertGreater(result.data['value'].iloc[0], 0.0)

    def test_fan_out_and_grouping(self):
        fls = MultiFlashlight([self.fl, self.fl.update(label='lm2')])
        result = light_importance(fls, v=self.v, by='cat', seed=1)

        self.assertEqual(len(result.data), 2 * 3 * 3)
        self.assertEqual(result.labels, ['lm', 'lm2'])

        per_group = most_important(result, top_m=1, per_group=True)
        self.assertEqual(len(per_group), 6)
        self.assertEqual(per_group[('lm', 'a')], ['x1'])


class TestMostImportant(unittest.TestCase):
    """
    Test cases for ranking importance results.
    """

    def setUp(self):
        self.result = LightResult('importance', pd.DataFrame({
            'label': ['m'] * 4,
            'variable': ['a', 'b', 'c', 'd'],
            'metric': ['rmse'] * 4,
            'value': [1.0, 2.0, 2.0, np.nan],
            'error': [np.nan] * 4
        }), by=[])

    def test_ties_keep_variable_order(self):
        self.assertEqual(most_important(self.result), ['b', 'c', 'a', 'd'])
        self.assertEqual(most_important(self.result, top_m=2), ['b', 'c'])

    def test_requires_importance_result(self):
        with self.assertRaises(ValueError):
            most_important(LightResult('performance', self.result.data))


if __name__ == '__main__':
    unittest.main()
