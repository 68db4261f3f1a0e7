"""Residual diagnostics for the selected model."""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd
from scipy import stats

from .errors import InsufficientDataError

logger = logging.getLogger(__name__)

SHAPIRO_MAX_N = 5000


@dataclass
class ResidualSummary:
    table: pd.DataFrame
    std: float
    threshold: float
    outlier_count: int
    skewness: float
    excess_kurtosis: float
    skew_description: str
    kurtosis_description: str
    shapiro_pvalue: Optional[float] = None

    @property
    def outliers(self) -> pd.DataFrame:
        return self.table[self.table['is_outlier']]

    def describe(self) -> str:
        text = (f"{self.outlier_count} of {len(self.table)} residuals beyond "
                f"+/-{self.threshold:.2f}; distribution is {self.skew_description} "
                f"and {self.kurtosis_description}")
        if self.shapiro_pvalue is not None:
            text += f" (Shapiro-Wilk p={self.shapiro_pvalue:.3g})"
        return text


def flag_outliers(residuals, threshold: float) -> np.ndarray:
    # Strictly greater: a residual sitting exactly on the threshold is kept
    return np.abs(np.asarray(residuals, dtype=float)) > threshold


def describe_skew(skewness: float, tolerance: float = 0.5) -> str:
    if not np.isfinite(skewness) or abs(skewness) <= tolerance:
        return 'approximately symmetric'
    return 'right-skewed' if skewness > 0 else 'left-skewed'


def describe_kurtosis(excess: float, tolerance: float = 0.5) -> str:
    if not np.isfinite(excess) or abs(excess) <= tolerance:
        return 'close to normal peakedness'
    if excess > 0:
        return 'more peaked than normal (heavy tails)'
    return 'flatter than normal (light tails)'


def analyze_residuals(y_true, y_pred, multiplier: float = 2.0, index=None) -> ResidualSummary:
    """Residual table and distribution summary for one model's test predictions.

    residual = actual - predicted; rows with |residual| greater than
    ``multiplier`` sample standard deviations are flagged. Nothing is
    corrected, the summary is for reporting only.
    """
    actual = np.asarray(y_true, dtype=float)
    predicted = np.asarray(y_pred, dtype=float)
    if actual.shape != predicted.shape:
        raise ValueError(f"Shape mismatch: {actual.shape} vs {predicted.shape}")
    if len(actual) < 2:
        raise InsufficientDataError("Need at least 2 residuals for a sample standard deviation",
                                    component='ResidualAnalyzer')

    residuals = actual - predicted
    std = float(np.std(residuals, ddof=1))
    threshold = multiplier * std
    is_outlier = flag_outliers(residuals, threshold)

    table = pd.DataFrame({
        'predicted': predicted,
        'actual': actual,
        'residual': residuals,
        'is_outlier': is_outlier,
    }, index=index if index is not None else pd.RangeIndex(len(actual)))

    if std > 0:
        skewness = float(stats.skew(residuals, bias=False)) if len(residuals) > 2 else float('nan')
        excess = float(stats.kurtosis(residuals, fisher=True, bias=False)) if len(residuals) > 3 else float('nan')
    else:
        skewness, excess = 0.0, 0.0

    shapiro_p = None
    if std > 0 and 3 <= len(residuals) <= SHAPIRO_MAX_N:
        shapiro_p = float(stats.shapiro(residuals).pvalue)

    summary = ResidualSummary(
        table=table,
        std=std,
        threshold=threshold,
        outlier_count=int(is_outlier.sum()),
        skewness=skewness,
        excess_kurtosis=excess,
        skew_description=describe_skew(skewness),
        kurtosis_description=describe_kurtosis(excess),
        shapiro_pvalue=shapiro_p,
    )
    logger.info("Residuals: %s", summary.describe())
    return summary
