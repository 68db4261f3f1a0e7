"""Input contract checks and feature selection for gym session records."""

import logging
from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np
import pandas as pd

from .config import DEFAULT_CATEGORICAL, DEFAULT_PREDICTORS, TARGET_COLUMN
from .errors import SchemaError

logger = logging.getLogger(__name__)

NUMERIC_COLUMNS = (
    'Age', 'Weight', 'Height', 'Max_BPM', 'Avg_BPM', 'Resting_BPM',
    'Session_Duration', 'Calories_Burned', 'Fat_Percentage', 'Water_Intake',
    'Workout_Frequency', 'Experience_Level', 'BMI',
)

CATEGORICAL_COLUMNS = ('Gender', 'Workout_Type')

INPUT_COLUMNS = NUMERIC_COLUMNS + CATEGORICAL_COLUMNS

HEART_RATE_FEATURES = ('HR_Intensity', 'HR_Reserve_Ratio')


@dataclass(frozen=True)
class FeatureSpec:
    """Target column plus an ordered predictor whitelist."""

    target: str = TARGET_COLUMN
    predictors: Tuple[str, ...] = DEFAULT_PREDICTORS
    categorical: Tuple[str, ...] = DEFAULT_CATEGORICAL

    def __post_init__(self):
        if self.target in self.predictors:
            raise SchemaError("Target column cannot also be a predictor",
                              component='FeatureSelector', column=self.target)
        stray = [c for c in self.categorical if c not in self.predictors]
        if stray:
            raise SchemaError(f"Categorical columns are not predictors: {stray}",
                              component='FeatureSelector', column=stray[0])

    @property
    def numeric(self) -> Tuple[str, ...]:
        return tuple(c for c in self.predictors if c not in self.categorical)

    @classmethod
    def from_config(cls, config) -> 'FeatureSpec':
        return cls(target=config.target, predictors=tuple(config.predictors),
                   categorical=tuple(config.categorical))


def validate_input(df: pd.DataFrame, required: Iterable[str] = INPUT_COLUMNS) -> None:
    # Check the upstream hand-off: every contract column present, typed, complete
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise SchemaError(f"Input is missing required columns: {missing}",
                          component='InputContract', column=missing[0])

    for col in required:
        if col in NUMERIC_COLUMNS and not pd.api.types.is_numeric_dtype(df[col]):
            raise SchemaError(f"Column {col} must be numeric, found dtype {df[col].dtype}",
                              component='InputContract', column=col)

    for col in required:
        null_mask = df[col].isnull()
        if null_mask.any():
            raise SchemaError(f"Column {col} has {int(null_mask.sum())} missing values",
                              component='InputContract', column=col,
                              rows=df.index[null_mask].tolist())

    logger.info("Input contract satisfied: %d rows, %d columns", len(df), len(df.columns))


def select_features(df: pd.DataFrame, spec: FeatureSpec) -> pd.DataFrame:
    """Project ``df`` onto the target followed by the predictors.

    Row order and index labels are preserved and a new frame is returned.

    Raises:
        SchemaError: a named column is absent, the target is not numeric,
            or a non-categorical predictor is not numeric.
    """
    columns = [spec.target] + list(spec.predictors)
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise SchemaError(f"Dataset is missing columns: {missing}",
                          component='FeatureSelector', column=missing[0])

    if not pd.api.types.is_numeric_dtype(df[spec.target]):
        raise SchemaError(f"Target {spec.target} must be numeric, found dtype {df[spec.target].dtype}",
                          component='FeatureSelector', column=spec.target)

    for col in spec.numeric:
        if not pd.api.types.is_numeric_dtype(df[col]):
            raise SchemaError(f"Predictor {col} must be numeric, found dtype {df[col].dtype}",
                              component='FeatureSelector', column=col)

    selected = df.loc[:, columns].copy()
    logger.info("Selected %d predictors for target %s", len(spec.predictors), spec.target)
    return selected


def add_heart_rate_features(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of ``df`` with relative heart-rate ratios appended.

    HR_Intensity is Avg_BPM / Max_BPM. HR_Reserve_Ratio is where the session
    average sits between resting and max heart rate (Karvonen reserve).
    """
    needed = ['Avg_BPM', 'Max_BPM', 'Resting_BPM']
    missing = [col for col in needed if col not in df.columns]
    if missing:
        raise SchemaError(f"Heart-rate features need columns {missing}",
                          component='FeatureSelector', column=missing[0])

    avg = df['Avg_BPM'].astype(float)
    peak = df['Max_BPM'].astype(float)
    rest = df['Resting_BPM'].astype(float)

    reserve = peak - rest
    bad_rows = df.index[(peak <= 0) | (reserve <= 0)]
    if len(bad_rows):
        raise SchemaError("Max_BPM must be positive and above Resting_BPM",
                          component='FeatureSelector', column='Max_BPM', rows=bad_rows.tolist())

    return df.assign(
        HR_Intensity=avg / peak,
        HR_Reserve_Ratio=(avg - rest) / reserve,
    )


def target_deciles(y: pd.Series, n_bins: int = 10) -> np.ndarray:
    # Quantile bucket per row; duplicate edges collapse for heavily tied targets
    ranks = pd.Series(np.asarray(y, dtype=float)).rank(method='first')
    bins = min(n_bins, len(ranks))
    return pd.qcut(ranks, q=bins, labels=False, duplicates='drop').to_numpy()
