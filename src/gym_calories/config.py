"""Run configuration for the calorie modeling pipeline."""

import os
from dataclasses import dataclass, replace
from typing import Tuple

TARGET_COLUMN = 'Calories_Burned'

DEFAULT_PREDICTORS = (
    'Session_Duration', 'Avg_BPM', 'Weight', 'Age',
    'Gender', 'Workout_Type', 'Workout_Frequency', 'Experience_Level',
)

DEFAULT_CATEGORICAL = ('Gender', 'Workout_Type')

ENV_PREFIX = 'GYM_CALORIES_'


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_floats(value: str) -> Tuple[float, ...]:
    return tuple(float(v) for v in value.split(',') if v.strip())


def _env_names(value: str) -> Tuple[str, ...]:
    return tuple(v.strip() for v in value.split(',') if v.strip())


@dataclass(frozen=True)
class PipelineConfig:
    """Configuration with defaults for every recognized option."""

    # Features
    target: str = TARGET_COLUMN
    predictors: Tuple[str, ...] = DEFAULT_PREDICTORS
    categorical: Tuple[str, ...] = DEFAULT_CATEGORICAL
    derive_hr_features: bool = False

    # Partitioning
    split_ratio: float = 0.8
    random_seed: int = 42
    cv_folds: int = 10
    stratify: bool = False

    # Regularization grids
    lambda_min: float = 1e-4
    lambda_max: float = 1.0
    lambda_points: int = 20
    elastic_net_mixing: Tuple[float, ...] = (0.5, 0.9)
    elastic_net_lambda_points: int = 5
    max_iter: int = 10000

    # Gradient boosted trees
    gbt_iterations: int = 500
    gbt_learning_rate: float = 0.05
    gbt_depth: int = 6
    gbt_l2_leaf_reg: float = 3.0

    # Diagnostics
    outlier_multiplier: float = 2.0
    strict_categories: bool = True

    # Execution
    n_jobs: int = 1

    @classmethod
    def from_env(cls, **overrides) -> 'PipelineConfig':
        """Build a config from GYM_CALORIES_* environment variables.

        Explicit keyword overrides win over the environment.
        """
        parsers = {
            'target': str,
            'predictors': _env_names,
            'categorical': _env_names,
            'split_ratio': float,
            'random_seed': int,
            'cv_folds': int,
            'stratify': _env_bool,
            'lambda_min': float,
            'lambda_max': float,
            'lambda_points': int,
            'elastic_net_mixing': _env_floats,
            'elastic_net_lambda_points': int,
            'max_iter': int,
            'gbt_iterations': int,
            'gbt_learning_rate': float,
            'gbt_depth': int,
            'gbt_l2_leaf_reg': float,
            'outlier_multiplier': float,
            'derive_hr_features': _env_bool,
            'strict_categories': _env_bool,
            'n_jobs': int,
        }
        values = {}
        for name, parse in parsers.items():
            raw = os.getenv(ENV_PREFIX + name.upper())
            if raw is not None and raw != '':
                values[name] = parse(raw)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def with_overrides(self, **changes) -> 'PipelineConfig':
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def validate(self) -> 'PipelineConfig':
        """Raise ValueError on out-of-range options; return self for chaining."""
        if not 0 < self.split_ratio < 1:
            raise ValueError(f"split_ratio must be in (0, 1), got {self.split_ratio}")
        if self.cv_folds < 2:
            raise ValueError(f"cv_folds must be at least 2, got {self.cv_folds}")
        if not 0 < self.lambda_min <= self.lambda_max:
            raise ValueError("lambda bounds must satisfy 0 < lambda_min <= lambda_max")
        if self.lambda_points < 1 or self.elastic_net_lambda_points < 1:
            raise ValueError("lambda grids need at least one point")
        if not self.elastic_net_mixing or any(not 0 < a <= 1 for a in self.elastic_net_mixing):
            raise ValueError("elastic_net_mixing weights must be in (0, 1]")
        if self.gbt_iterations < 1 or self.gbt_depth < 1:
            raise ValueError("gbt_iterations and gbt_depth must be positive")
        if self.gbt_learning_rate <= 0:
            raise ValueError("gbt_learning_rate must be positive")
        if self.gbt_l2_leaf_reg < 0:
            raise ValueError("gbt_l2_leaf_reg must be non-negative")
        if self.outlier_multiplier <= 0:
            raise ValueError("outlier_multiplier must be positive")
        if self.target in self.predictors:
            raise ValueError(f"target {self.target} cannot also be a predictor")
        unknown = [c for c in self.categorical if c not in self.predictors]
        if unknown:
            raise ValueError(f"categorical columns not among predictors: {unknown}")
        return self
