"""k-fold hyperparameter search for the regularized linear variants."""

import logging
import warnings
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from sklearn.metrics import mean_squared_error

from .errors import DegenerateFoldError, InsufficientDataError
from .features import FeatureSpec
from .models.regressors import ModelVariant, TrainedModel, fit_model
from .partition import kfold_indices

logger = logging.getLogger(__name__)


@dataclass
class CVResult:
    """Outcome of one grid search: winner, per-candidate scores, skipped folds."""

    best: ModelVariant
    table: pd.DataFrame
    folds: int
    skipped_folds: List[int] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)

    @property
    def best_rmse(self) -> float:
        return float(self.table.loc[self.table['selected'], 'mean_rmse'].iloc[0])


def _check_fold(fold_id: int, y_val: np.ndarray, labels) -> None:
    if np.ptp(y_val) == 0:
        raise DegenerateFoldError(
            f"Fold {fold_id} has zero target variance in its validation rows",
            component='CrossValidator', rows=list(labels))


def _score_fold(variant: ModelVariant, X: pd.DataFrame, y: np.ndarray,
                train_idx: np.ndarray, val_idx: np.ndarray, spec: FeatureSpec,
                seed: int, strict: bool, max_iter: int,
                categories: Dict[str, List[str]]) -> Tuple[float, List[str]]:
    # One (candidate, fold) unit; owns its own preprocessor and estimator
    with warnings.catch_warnings():
        warnings.simplefilter('ignore')
        model = fit_model(variant, X.iloc[train_idx], y[train_idx], spec,
                          seed=seed, strict=strict, max_iter=max_iter,
                          categories=categories)
    predicted = model.predict(X.iloc[val_idx])
    rmse = float(np.sqrt(mean_squared_error(y[val_idx], predicted)))
    return rmse, model.notes


def select_candidate(candidates: Sequence[ModelVariant], mean_rmse: Sequence[float]) -> int:
    """Index of the candidate with the lowest mean RMSE.

    Ties go to the most regularized candidate: largest lambda first, then the
    largest L1 mixing weight.
    """
    scores = np.asarray(mean_rmse, dtype=float)
    best = np.nanmin(scores)
    tied = [i for i, s in enumerate(scores) if np.isclose(s, best, rtol=1e-9, atol=1e-12)]
    return max(tied, key=lambda i: (candidates[i].penalty,
                                    float(candidates[i].params.get('alpha', 0.0)),
                                    -i))


class CrossValidator:
    """Seeded k-fold grid search with refit of the winner on all training rows.

    Every (candidate, fold) pair is an independent unit run through joblib,
    so results do not depend on ``n_jobs``.
    """

    def __init__(self, folds: int = 10, seed: int = 42, n_jobs: int = 1,
                 strict: bool = True, max_iter: int = 10000):
        if folds < 2:
            raise ValueError(f"Cross-validation needs at least 2 folds, got {folds}")
        self.folds = folds
        self.seed = seed
        self.n_jobs = n_jobs
        self.strict = strict
        self.max_iter = max_iter

    def split(self, n_rows: int) -> List[Tuple[np.ndarray, np.ndarray]]:
        return kfold_indices(n_rows, self.folds, self.seed)

    def search(self, candidates: Sequence[ModelVariant], X: pd.DataFrame, y,
               spec: FeatureSpec) -> CVResult:
        """Score every candidate on every usable fold and pick the winner."""
        if not candidates:
            raise ValueError("No hyperparameter candidates to search")

        y = np.asarray(y, dtype=float)
        splits = self.split(len(X))
        # Category levels of the whole training partition
        categories = {col: sorted(X[col].astype(str).unique()) for col in spec.categorical}

        usable, skipped = [], []
        for fold_id, (train_idx, val_idx) in enumerate(splits):
            try:
                _check_fold(fold_id, y[val_idx], X.index[val_idx])
            except DegenerateFoldError as e:
                logger.warning("Skipping fold: %s", e)
                warnings.warn(str(e), RuntimeWarning, stacklevel=2)
                skipped.append(fold_id)
                continue
            usable.append((train_idx, val_idx))

        if not usable:
            raise InsufficientDataError(
                f"All {self.folds} folds have zero target variance", component='CrossValidator')

        logger.info("Searching %d %s candidates over %d folds (%d skipped)",
                    len(candidates), candidates[0].name, len(usable), len(skipped))

        units = [(c, f) for c in range(len(candidates)) for f in range(len(usable))]
        scored = Parallel(n_jobs=self.n_jobs)(
            delayed(_score_fold)(candidates[c], X, y, usable[f][0], usable[f][1], spec,
                                 self.seed, self.strict, self.max_iter, categories)
            for c, f in units
        )

        fold_scores = np.empty((len(candidates), len(usable)))
        notes = []
        for (c, f), (rmse, unit_notes) in zip(units, scored):
            fold_scores[c, f] = rmse
            notes.extend(unit_notes)

        mean_rmse = fold_scores.mean(axis=1)
        std_rmse = fold_scores.std(axis=1, ddof=1) if len(usable) > 1 else np.zeros(len(candidates))
        winner = select_candidate(candidates, mean_rmse)

        table = pd.DataFrame({
            'candidate': [c.describe() for c in candidates],
            'lambda': [c.params.get('lambda', np.nan) for c in candidates],
            'alpha': [c.params.get('alpha', np.nan) for c in candidates],
            'mean_rmse': mean_rmse,
            'std_rmse': std_rmse,
            'folds_used': len(usable),
        })
        table['selected'] = table.index == winner

        best = candidates[winner]
        logger.info("Best %s: mean CV RMSE %.3f", best.describe(), mean_rmse[winner])
        if notes:
            logger.info("%d fold fits hit the iteration budget", len(notes))

        return CVResult(best=best, table=table, folds=self.folds,
                        skipped_folds=skipped, notes=sorted(set(notes)))

    def fit_best(self, candidates: Sequence[ModelVariant], X: pd.DataFrame, y,
                 spec: FeatureSpec) -> Tuple[TrainedModel, Optional[CVResult]]:
        """Search when there is a real grid, then refit the winner on all of ``X``."""
        result = None
        if len(candidates) > 1:
            result = self.search(candidates, X, y, spec)
            chosen = result.best
        else:
            chosen = candidates[0]

        model = fit_model(chosen, X, np.asarray(y, dtype=float), spec, seed=self.seed,
                          strict=self.strict, max_iter=self.max_iter)
        return model, result
