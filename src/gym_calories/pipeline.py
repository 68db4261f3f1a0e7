"""End-to-end train/evaluate run over a clean gym session dataset."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd

from .config import PipelineConfig
from .cross_validation import CrossValidator, CVResult
from .evaluation import MetricsRecord, error_by_calorie_range, evaluate_models, select_best
from .features import (HEART_RATE_FEATURES, FeatureSpec, add_heart_rate_features,
                       select_features, validate_input)
from .models.regressors import MODEL_KINDS, TrainedModel, candidate_grid, feature_importance
from .partition import Split, train_test_split_indices
from .residuals import ResidualSummary, analyze_residuals

logger = logging.getLogger(__name__)


@dataclass
class PipelineReport:
    """Everything a run produces; read-only once built."""

    metrics: pd.DataFrame
    best_model: str
    best_metrics: MetricsRecord
    residuals: ResidualSummary
    cv_results: Dict[str, CVResult]
    calorie_bands: pd.DataFrame
    importance: Optional[pd.DataFrame]
    models: Dict[str, TrainedModel]
    split: Split
    notes: List[str] = field(default_factory=list)

    @property
    def residual_table(self) -> pd.DataFrame:
        return self.residuals.table

    def cv_table(self) -> pd.DataFrame:
        frames = []
        for name, result in self.cv_results.items():
            frames.append(result.table.assign(model=name))
        if not frames:
            return pd.DataFrame()
        return pd.concat(frames, ignore_index=True)


class CalorieModelingPipeline:
    """Selects features, splits once, trains every variant and scores them.

    The same seeded split is shared by all variants so their test metrics
    are directly comparable.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = (config or PipelineConfig()).validate()
        predictors = tuple(self.config.predictors)
        if self.config.derive_hr_features:
            predictors += tuple(f for f in HEART_RATE_FEATURES if f not in predictors)
        self.spec = FeatureSpec(target=self.config.target, predictors=predictors,
                                categorical=tuple(self.config.categorical))
        self.validator = CrossValidator(folds=self.config.cv_folds, seed=self.config.random_seed,
                                        n_jobs=self.config.n_jobs,
                                        strict=self.config.strict_categories,
                                        max_iter=self.config.max_iter)
        self.data = None
        self.split = None
        self.models: Dict[str, TrainedModel] = {}
        self.cv_results: Dict[str, CVResult] = {}

    def prepare(self, df: pd.DataFrame) -> pd.DataFrame:
        validate_input(df)
        if self.config.derive_hr_features:
            df = add_heart_rate_features(df)
        self.data = select_features(df, self.spec)
        return self.data

    def partition(self) -> Split:
        y = self.data[self.spec.target].to_numpy(dtype=float)
        self.split = train_test_split_indices(
            len(self.data), ratio=self.config.split_ratio, seed=self.config.random_seed,
            cv_folds=self.config.cv_folds, target=y, stratify=self.config.stratify)
        return self.split

    def _subset(self, positions):
        rows = self.data.iloc[positions]
        return rows[list(self.spec.predictors)], rows[self.spec.target].to_numpy(dtype=float)

    def train_models(self) -> Dict[str, TrainedModel]:
        X_train, y_train = self._subset(self.split.train)

        for i, kind in enumerate(MODEL_KINDS, 1):
            candidates = candidate_grid(kind, self.config)
            logger.info("Training %s (%d/%d), %d candidate(s)",
                        candidates[0].name, i, len(MODEL_KINDS), len(candidates))
            model, result = self.validator.fit_best(candidates, X_train, y_train, self.spec)
            self.models[model.name] = model
            if result is not None:
                self.cv_results[model.name] = result

        return self.models

    def run(self, df: pd.DataFrame) -> PipelineReport:
        self.prepare(df)
        self.partition()
        self.train_models()

        X_test, y_test = self._subset(self.split.test)
        metrics, predictions = evaluate_models(self.models, X_test, y_test)
        best = select_best(metrics)
        best_row = metrics.loc[best]
        best_metrics = MetricsRecord(model=best, rmse=float(best_row['RMSE']),
                                     mae=float(best_row['MAE']), r2=float(best_row['R2']))
        logger.info("Best model: %s (RMSE %.3f)", best, best_metrics.rmse)

        residuals = analyze_residuals(y_test, predictions[best],
                                      multiplier=self.config.outlier_multiplier,
                                      index=X_test.index)

        notes = []
        for model in self.models.values():
            notes.extend(model.notes)
        for name, result in self.cv_results.items():
            notes.extend(result.notes)
            if result.skipped_folds:
                notes.append(f"{name}: skipped degenerate CV folds {result.skipped_folds}")

        return PipelineReport(
            metrics=metrics,
            best_model=best,
            best_metrics=best_metrics,
            residuals=residuals,
            cv_results=dict(self.cv_results),
            calorie_bands=error_by_calorie_range(y_test, predictions[best]),
            importance=feature_importance(self.models[best]),
            models=dict(self.models),
            split=self.split,
            notes=list(dict.fromkeys(notes)),
        )


def run_pipeline(df: pd.DataFrame, config: Optional[PipelineConfig] = None) -> PipelineReport:
    return CalorieModelingPipeline(config).run(df)
