"""
Unit tests for the configuration module.
"""

import json
import logging
import os
import shutil
import tempfile
import unittest
from unittest import mock

from flashlight import Flashlight, light_ice, light_profile
from flashlight.config import (
    DEFAULT_CONFIG,
    LOG_FORMAT,
    get_default_config,
    get_setting,
    load_config,
    setup_logging
)
from helpers import fit_linear, linear_predict, make_linear_data


class TestConfig(unittest.TestCase):
    """
    Test cases for loading and using configurations.
    """

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.config_file = os.path.join(self.test_dir, 'config.json')
        with open(self.config_file, 'w') as f:
            json.dump({"grid": {"n_bins": 4}, "ice": {"n_max": 3}}, f)

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_default_config_is_a_copy(self):
        config = get_default_config()
        config['grid']['n_bins'] = 2
        self.assertEqual(DEFAULT_CONFIG['grid']['n_bins'], 19)

    def test_load_config_merges_defaults(self):
        config = load_config(self.config_file)

        self.assertEqual(config['grid']['n_bins'], 4)
        self.assertEqual(config['grid']['max_cardinality'], 100)
        self.assertEqual(config['ice']['center'], 'no')
        self.assertEqual(config['surrogate']['max_depth'], 3)

    def test_missing_file_gives_defaults(self):
        config = load_config(os.path.join(self.test_dir, 'missing.json'))
        self.assertEqual(config, DEFAULT_CONFIG)
        self.assertEqual(load_config(), DEFAULT_CONFIG)

    def test_get_setting(self):
        self.assertEqual(get_setting({'grid': {'n_bins': 7}}, 'grid', 'n_bins'), 7)
        self.assertEqual(get_setting({'grid': {}}, 'grid', 'n_bins'), 19)
        self.assertEqual(get_setting(None, 'profile', 'pd_n_max'), 1000)

    def test_analyses_use_config(self):
        data = make_linear_data()
        fl = Flashlight(model=fit_linear(data), label='lm', data=data, y='y',
                        predict_function=linear_predict)
        config = load_config(self.config_file)

        ice = light_ice(fl, 'x1', seed=0, config=config)
        self.assertEqual(ice.data['id_'].nunique(), 3)
        self.assertEqual(ice.data['x1'].nunique(), 5)

        explicit = light_ice(fl, 'x1', n_max=2, seed=0, config=config)
        self.assertEqual(explicit.data['id_'].nunique(), 2)

        profile = light_profile(fl, 'x1', config={'profile': {'kind': 'predicted'}})
        self.assertEqual(profile.data['kind'].iloc[0], 'predicted')

    def test_setup_logging(self):
        with mock.patch("logging.basicConfig") as basic_config:
            setup_logging("debug")
            setup_logging(config={"logging": {"level": "WARNING"}})

        basic_config.assert_any_call(level=logging.DEBUG, format=LOG_FORMAT)
        basic_config.assert_any_call(level=logging.WARNING, format=LOG_FORMAT)


if __name__ == '__main__':
    unittest.main()
