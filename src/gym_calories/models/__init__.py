from .regressors import (
    DISPLAY_NAMES,
    ELASTIC_NET,
    GBT,
    LASSO,
    MODEL_KINDS,
    OLS,
    RIDGE,
    ModelVariant,
    TrainedModel,
    build_estimator,
    candidate_grid,
    feature_importance,
    fit_model,
    lambda_grid,
)
