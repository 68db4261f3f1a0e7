"""Out-of-sample metrics, model ranking and calorie-band error breakdown."""

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Tuple

import numpy as np
import pandas as pd
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

from .models.regressors import TrainedModel

logger = logging.getLogger(__name__)

METRIC_COLUMNS = ['RMSE', 'MAE', 'R2']

# (low, high, label); high=None means open-ended
CALORIE_BANDS = [
    (0, 300, 'Light session'),
    (300, 600, 'Moderate session'),
    (600, 1000, 'Hard session'),
    (1000, 1500, 'Very hard session'),
    (1500, None, 'Extreme session'),
]


@dataclass(frozen=True)
class MetricsRecord:
    model: str
    rmse: float
    mae: float
    r2: float

    def as_dict(self) -> Dict[str, float]:
        return {'RMSE': self.rmse, 'MAE': self.mae, 'R2': self.r2}


def compute_metrics(y_true, y_pred, model: str = '') -> MetricsRecord:
    """RMSE, MAE and R^2 of ``y_pred`` against ``y_true``.

    R^2 is measured against the mean of ``y_true`` itself, so it is at most 1.
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if len(y_true) == 0:
        raise ValueError("Cannot score an empty prediction set")
    if y_true.shape != y_pred.shape:
        raise ValueError(f"Shape mismatch: {y_true.shape} vs {y_pred.shape}")

    rmse = float(np.sqrt(mean_squared_error(y_true, y_pred)))
    mae = float(mean_absolute_error(y_true, y_pred))
    r2 = float(r2_score(y_true, y_pred)) if len(y_true) > 1 else float('nan')
    return MetricsRecord(model=model, rmse=rmse, mae=mae, r2=r2)


def evaluate_models(models: Mapping[str, TrainedModel], X_test: pd.DataFrame,
                    y_test) -> Tuple[pd.DataFrame, Dict[str, np.ndarray]]:
    """Predict the held-out rows with each model and tabulate its metrics.

    Returns the metrics table (indexed by model name) and the predictions
    keyed the same way.
    """
    records = []
    predictions = {}
    for name, model in models.items():
        y_pred = model.predict(X_test)
        predictions[name] = y_pred
        record = compute_metrics(y_test, y_pred, model=name)
        records.append(record)
        logger.info("%-24s RMSE=%.3f MAE=%.3f R2=%.4f", name, record.rmse, record.mae, record.r2)

    return metrics_table(records), predictions


def metrics_table(records) -> pd.DataFrame:
    table = pd.DataFrame([dict(model=r.model, **r.as_dict()) for r in records],
                         columns=['model'] + METRIC_COLUMNS)
    return table.set_index('model')


def select_best(metrics: pd.DataFrame) -> str:
    """Name of the lowest-RMSE model; ties go to the higher R^2."""
    if metrics.empty:
        raise ValueError("No metrics to rank")
    ranked = metrics.assign(_neg_r2=-metrics['R2'].fillna(-np.inf))
    ranked = ranked.sort_values(['RMSE', '_neg_r2'], kind='mergesort')
    return str(ranked.index[0])


def rank_models(metrics: pd.DataFrame) -> pd.DataFrame:
    ranked = metrics.sort_values(['RMSE', 'R2'], ascending=[True, False], kind='mergesort')
    return ranked.assign(rank=np.arange(1, len(ranked) + 1))


def error_by_calorie_range(y_true, y_pred) -> pd.DataFrame:
    # Accuracy per session intensity band, only for bands that have rows
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)

    rows = []
    for low, high, label in CALORIE_BANDS:
        mask = y_true >= low
        if high is not None:
            mask &= y_true < high
        if not mask.any():
            continue
        mae = mean_absolute_error(y_true[mask], y_pred[mask])
        rmse = np.sqrt(mean_squared_error(y_true[mask], y_pred[mask]))
        mean_calories = y_true[mask].mean()
        rows.append({
            'band': label,
            'calorie_range': f"{low}-{high}" if high is not None else f"{low}+",
            'samples': int(mask.sum()),
            'MAE': mae,
            'RMSE': rmse,
            'error_pct': (mae / mean_calories) * 100 if mean_calories > 0 else np.nan,
        })

    return pd.DataFrame(rows, columns=['band', 'calorie_range', 'samples', 'MAE', 'RMSE', 'error_pct'])
