"""Regression variants sharing one fit/predict contract.

Five families compete on the same split: ordinary least squares, Ridge,
Lasso, ElasticNet and gradient boosted trees (XGBoost). Each is described by
a ``ModelVariant`` tag plus hyperparameters; ``fit_model`` turns a variant
and a training frame into a ``TrainedModel`` that owns both the estimator
and the preprocessing state fit on exactly those rows.
"""

import logging
import warnings
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
import xgboost as xgb
from sklearn.exceptions import ConvergenceWarning as SklearnConvergenceWarning
from sklearn.linear_model import ElasticNet, Lasso, LinearRegression, Ridge

from ..errors import ConvergenceWarning
from ..features import FeatureSpec
from ..preprocessing import Preprocessor

logger = logging.getLogger(__name__)

OLS = 'ols'
RIDGE = 'ridge'
LASSO = 'lasso'
ELASTIC_NET = 'elastic_net'
GBT = 'gbt'

MODEL_KINDS = (OLS, RIDGE, LASSO, ELASTIC_NET, GBT)

DISPLAY_NAMES = {
    OLS: 'Linear Regression',
    RIDGE: 'Ridge Regression',
    LASSO: 'Lasso Regression',
    ELASTIC_NET: 'Elastic Net',
    GBT: 'Gradient Boosted Trees',
}


@dataclass(frozen=True)
class ModelVariant:
    """One model family with a concrete hyperparameter setting."""

    kind: str
    params: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        if self.kind not in MODEL_KINDS:
            raise ValueError(f"Unknown model kind {self.kind!r}; expected one of {MODEL_KINDS}")

    @property
    def name(self) -> str:
        return DISPLAY_NAMES[self.kind]

    @property
    def penalty(self) -> float:
        # Regularization strength; OLS and GBT count as unpenalized
        return float(self.params.get('lambda', 0.0))

    def describe(self) -> str:
        if not self.params:
            return self.name
        settings = ', '.join(f"{k}={v:g}" for k, v in sorted(self.params.items()))
        return f"{self.name} ({settings})"


@dataclass
class TrainedModel:
    """Fitted estimator plus the preprocessing learned from its training rows."""

    variant: ModelVariant
    estimator: object
    preprocessor: Preprocessor
    n_train: int
    notes: List[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.variant.name

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        features = self.preprocessor.transform(X)
        return np.asarray(self.estimator.predict(features), dtype=float)


def lambda_grid(lambda_min: float = 1e-4, lambda_max: float = 1.0, points: int = 20) -> np.ndarray:
    return np.logspace(np.log10(lambda_min), np.log10(lambda_max), points)


def candidate_grid(kind: str, config) -> List[ModelVariant]:
    """Hyperparameter candidates searched for ``kind``.

    OLS and GBT have a single fixed configuration; the regularized linear
    families expand over a logarithmic lambda grid.
    """
    if kind == OLS:
        return [ModelVariant(OLS)]

    if kind in (RIDGE, LASSO):
        grid = lambda_grid(config.lambda_min, config.lambda_max, config.lambda_points)
        return [ModelVariant(kind, {'lambda': float(lam)}) for lam in grid]

    if kind == ELASTIC_NET:
        grid = lambda_grid(config.lambda_min, config.lambda_max, config.elastic_net_lambda_points)
        return [ModelVariant(ELASTIC_NET, {'alpha': float(mix), 'lambda': float(lam)})
                for mix in config.elastic_net_mixing for lam in grid]

    if kind == GBT:
        return [ModelVariant(GBT, {
            'iterations': int(config.gbt_iterations),
            'learning_rate': float(config.gbt_learning_rate),
            'depth': int(config.gbt_depth),
            'l2_leaf_reg': float(config.gbt_l2_leaf_reg),
        })]

    raise ValueError(f"Unknown model kind {kind!r}")


def build_estimator(variant: ModelVariant, seed: int = 42, max_iter: int = 10000):
    # Fresh, unfitted estimator for one variant
    params = variant.params
    if variant.kind == OLS:
        return LinearRegression()
    if variant.kind == RIDGE:
        return Ridge(alpha=params['lambda'])
    if variant.kind == LASSO:
        return Lasso(alpha=params['lambda'], max_iter=max_iter)
    if variant.kind == ELASTIC_NET:
        return ElasticNet(alpha=params['lambda'], l1_ratio=params['alpha'], max_iter=max_iter)
    if variant.kind == GBT:
        return xgb.XGBRegressor(
            n_estimators=int(params.get('iterations', 500)),
            learning_rate=float(params.get('learning_rate', 0.05)),
            max_depth=int(params.get('depth', 6)),
            reg_lambda=float(params.get('l2_leaf_reg', 3.0)),
            objective='reg:squarederror',
            random_state=seed,
            n_jobs=1,
            verbosity=0,
        )
    raise ValueError(f"Unknown model kind {variant.kind!r}")


def fit_model(variant: ModelVariant, X: pd.DataFrame, y, spec: FeatureSpec,
              seed: int = 42, strict: bool = True, max_iter: int = 10000,
              categories: Optional[Dict[str, List[str]]] = None) -> TrainedModel:
    """Fit ``variant`` on ``X``/``y`` and return the trained model.

    Preprocessing is learned from ``X`` alone; ``categories`` only adds
    category levels the encoder must know about. Solver non-convergence is
    recovered: the last iterate is kept, the warning is logged, re-issued as
    ``ConvergenceWarning`` and recorded on the result.
    """
    if len(X) == 0:
        raise ValueError("Cannot fit a model on zero rows")
    if len(X) != len(y):
        raise ValueError("X and y must have the same length")

    preprocessor = Preprocessor(spec.numeric, spec.categorical, strict=strict, categories=categories)
    features = preprocessor.fit_transform(X)
    target = np.asarray(y, dtype=float)

    estimator = build_estimator(variant, seed=seed, max_iter=max_iter)
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter('always', SklearnConvergenceWarning)
        estimator.fit(features, target)

    notes = []
    for w in caught:
        if issubclass(w.category, SklearnConvergenceWarning):
            message = f"{variant.describe()} did not converge in {max_iter} iterations; using last iterate"
            notes.append(message)
            logger.warning(message)
            warnings.warn(message, ConvergenceWarning, stacklevel=2)
        else:
            warnings.warn_explicit(w.message, w.category, w.filename, w.lineno)

    return TrainedModel(variant=variant, estimator=estimator, preprocessor=preprocessor,
                        n_train=len(X), notes=notes)


def feature_importance(model: TrainedModel) -> Optional[pd.DataFrame]:
    """Rank features by |coefficient| for linear models or gain share for trees."""
    estimator = model.estimator
    names = model.preprocessor.feature_names_

    if hasattr(estimator, 'feature_importances_'):
        values = np.asarray(estimator.feature_importances_, dtype=float)
    elif hasattr(estimator, 'coef_'):
        values = np.abs(np.ravel(estimator.coef_))
    else:
        return None

    importance = pd.DataFrame({'feature': names, 'importance': values})
    return importance.sort_values('importance', ascending=False).reset_index(drop=True)
