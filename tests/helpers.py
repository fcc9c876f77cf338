"""
Shared test data and models.
"""

import numpy as np
import pandas as pd
from sklearn.linear_model import LinearRegression

FEATURES = ['x1', 'x2']


def constant_predict(model, data):
    return np.full(len(data), 10.0)


def linear_predict(model, data):
    return model.predict(data[FEATURES])


def step_predict(model, data):
    return np.where(data['x1'] > 5, 1.0, 0.0)


def make_scenario_data():
    return pd.DataFrame({
        'x': [1, 2, 3, 4],
        'y': [8.0, 10.0, 12.0, 14.0],
        'g': ['a', 'a', 'b', 'b']
    })


def make_linear_data(n=200, seed=0):
    rng = np.random.default_rng(seed)
    data = pd.DataFrame({
        'x1': rng.uniform(0, 10, n),
        'x2': rng.normal(0, 1, n),
        'noise': rng.normal(0, 1, n),
        'cat': rng.choice(['a', 'b', 'c'], n),
        'w': rng.uniform(0.5, 2.0, n)
    })
    data['y'] = 2 * data['x1'] - data['x2'] + rng.normal(0, 0.5, n)
    return data


def fit_linear(data):
    return LinearRegression().fit(data[FEATURES], data['y'])
