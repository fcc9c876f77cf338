"""
Unit tests for performance analysis and metrics.
"""

import unittest
import numpy as np

from flashlight import Flashlight, MultiFlashlight, light_performance
from flashlight.evaluation.metrics import (
    accuracy,
    evaluate_metric,
    logloss,
    mae,
    mse,
    r_squared,
    resolve_directions,
    rmse
)
from flashlight.exceptions import (
    AmbiguousMetricDirectionError,
    IncompatibleLengthError,
    UnknownColumnError
)
from helpers import constant_predict, make_scenario_data


class TestMetrics(unittest.TestCase):
    """
    Test cases for the built-in metrics.
    """

    def setUp(self):
        self.actual = np.array([8.0, 10.0, 12.0, 14.0])
        self.predicted = np.full(4, 10.0)

    def test_regression_metrics(self):
        self.assertEqual(mse(self.actual, self.predicted), 6.0)
        self.assertAlmostEqual(rmse(self.actual, self.predicted), np.sqrt(6.0))
        self.assertEqual(mae(self.actual, self.predicted), 2.0)
        self.assertEqual(mse(self.actual, self.predicted, [1, 1, 0, 0]), 2.0)

    def test_r_squared(self):
        self.assertEqual(r_squared(self.actual, self.actual), 1.0)
        self.assertTrue(np.isnan(r_squared(np.ones(4), self.predicted)))

    def test_classification_metrics(self):
        actual = np.array([0, 1, 1, 0])
        probs = np.array([0.2, 0.9, 0.4, 0.1])
        self.assertEqual(accuracy(actual, probs), 0.75)
        self.assertGreater(logloss(actual, probs), 0.0)

    def test_evaluate_metric_degenerate_input(self):
        self.assertTrue(np.isnan(evaluate_metric(mse, [], [])))
        self.assertTrue(np.isnan(evaluate_metric(mse, self.actual, self.predicted, np.zeros(4))))
        with self.assertRaises(IncompatibleLengthError):
            evaluate_metric(mse, self.actual, self.predicted[:2])

    def test_directions(self):
        def custom(actual, predicted, w=None):
            return 0.0

        self.assertEqual(resolve_directions({'mse': mse, 'r2': r_squared}),
                         {'mse': True, 'r2': False})
        self.assertEqual(resolve_directions({'c': custom}, {'c': False}), {'c': False})
        self.assertEqual(resolve_directions({'c': custom, 'mse': mse}, True),
                         {'c': True, 'mse': True})
        with self.assertRaises(AmbiguousMetricDirectionError):
            resolve_directions({'c': custom})


class TestPerformance(unittest.TestCase):
    """
    Test cases for light_performance.
    """

    def setUp(self):
        self.data = make_scenario_data()
        self.fl = Flashlight(label='const', data=self.data, y='y',
                             predict_function=constant_predict, metrics={'mse': mse})

    def test_constant_predictor(self):
        result = light_performance(self.fl)

        self.assertEqual(result.kind, 'performance')
        self.assertEqual(list(result.data.columns), ['label', 'metric', 'value'])
        self.assertEqual(result.data['value'].iloc[0], 6.0)

    def test_default_metric(self):
        result = light_performance(self.fl.update(metrics=None))

        self.assertEqual(result.data['metric'].tolist(), ['rmse'])
        self.assertAlmostEqual(result.data['value'].iloc[0], np.sqrt(6.0))

    def test_grouped_performance(self):
        result = light_performance(self.fl, by='g')

        self.assertEqual(list(result.data.columns), ['label', 'g', 'metric', 'value'])
        self.assertEqual(result.data['g'].tolist(), ['a', 'b'])
        self.assertEqual(result.data['value'].tolist(), [2.0, 10.0])

    def test_case_weights(self):
        self.data['w'] = [1.0, 1.0, 0.0, 0.0]
        result = light_performance(self.fl.update(data=self.data, w='w'))
        self.assertEqual(result.data['value'].iloc[0], 2.0)

    def test_zero_weight_group(self):
        self.data['w'] = [1.0, 1.0, 0.0, 0.0]
        result = light_performance(self.fl.update(data=self.data, w='w'), by='g')
        self.assertTrue(np.isnan(result.data['value'].iloc[1]))

    def test_missing_response(self):
        with self.assertRaises(UnknownColumnError):
            light_performance(self.fl.update(y=None))

    def test_fan_out(self):
        fls = MultiFlashlight([
            Flashlight(label='a', predict_function=constant_predict),
            Flashlight(label='b', predict_function=constant_predict)
        ], data=self.data, y='y', metrics={'mse': mse})
        result = light_performance(fls)

        self.assertEqual(len(result.data), 2)
        self.assertEqual(result.data['label'].tolist(), ['a', 'b'])
        self.assertEqual(result.data['value'].tolist(), [6.0, 6.0])


def test_explicit_metrics_override_flashlight(scenario_data):
    fl = Flashlight(label='const', data=scenario_data, y='y',
                    predict_function=constant_predict, metrics={'mse': mse})
    result = light_performance(fl, metrics={'mae': mae, 'mse': mse})

    assert result.data['metric'].tolist() == ['mae', 'mse']
    assert result.data['value'].tolist() == [2.0, 6.0]


def test_performance_of_linear_model(linear_flashlight):
    result = light_performance(linear_flashlight, metrics={'r2': r_squared})
    assert result.data['value'].iloc[0] > 0.9


if __name__ == '__main__':
    unittest.main()
