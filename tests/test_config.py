"""Unit tests for run configuration."""

import unittest
import sys
import os
from unittest.mock import patch

# Add parent directory and src to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from gym_calories.config import PipelineConfig


class TestPipelineConfig(unittest.TestCase):

    def test_defaults(self):
        config = PipelineConfig()
        self.assertEqual(config.target, 'Calories_Burned')
        self.assertEqual(config.split_ratio, 0.8)
        self.assertEqual(config.cv_folds, 10)
        self.assertEqual((config.lambda_min, config.lambda_max, config.lambda_points), (1e-4, 1.0, 20))
        self.assertEqual((config.gbt_iterations, config.gbt_learning_rate, config.gbt_depth,
                          config.gbt_l2_leaf_reg), (500, 0.05, 6, 3.0))
        self.assertEqual(config.outlier_multiplier, 2.0)
        self.assertTrue(config.strict_categories)
        self.assertFalse(config.stratify)
        self.assertIs(config.validate(), config)

    @patch.dict(os.environ, {
        'GYM_CALORIES_RANDOM_SEED': '7',
        'GYM_CALORIES_CV_FOLDS': '5',
        'GYM_CALORIES_STRATIFY': 'true',
        'GYM_CALORIES_ELASTIC_NET_MIXING': '0.2, 0.8',
        'GYM_CALORIES_PREDICTORS': 'Session_Duration,Avg_BPM,Gender',
        'GYM_CALORIES_CATEGORICAL': 'Gender',
    })
    def test_from_env(self):
        config = PipelineConfig.from_env()
        self.assertEqual(config.random_seed, 7)
        self.assertEqual(config.cv_folds, 5)
        self.assertTrue(config.stratify)
        self.assertEqual(config.elastic_net_mixing, (0.2, 0.8))
        self.assertEqual(config.predictors, ('Session_Duration', 'Avg_BPM', 'Gender'))
        config.validate()

    @patch.dict(os.environ, {'GYM_CALORIES_RANDOM_SEED': '7'})
    def test_explicit_overrides_win(self):
        config = PipelineConfig.from_env(random_seed=99, cv_folds=None)
        self.assertEqual(config.random_seed, 99)
        self.assertEqual(config.cv_folds, 10)

    def test_with_overrides_ignores_none(self):
        config = PipelineConfig().with_overrides(n_jobs=4, stratify=None)
        self.assertEqual(config.n_jobs, 4)
        self.assertFalse(config.stratify)

    def test_validation_errors(self):
        bad = [
            dict(split_ratio=1.0),
            dict(split_ratio=0.0),
            dict(cv_folds=1),
            dict(lambda_min=0.0),
            dict(lambda_min=2.0, lambda_max=1.0),
            dict(elastic_net_mixing=(0.0,)),
            dict(gbt_learning_rate=0.0),
            dict(outlier_multiplier=-1.0),
            dict(predictors=('Calories_Burned', 'Age'), categorical=()),
            dict(predictors=('Age',), categorical=('Gender',)),
        ]
        for kwargs in bad:
            with self.subTest(**{k: str(v) for k, v in kwargs.items()}):
                with self.assertRaises(ValueError):
                    PipelineConfig(**kwargs).validate()


if __name__ == '__main__':
    unittest.main()
