"""Calorie expenditure modeling for gym session tracking data."""

from .config import PipelineConfig
from .errors import (ConvergenceWarning, DegenerateFoldError, InsufficientDataError,
                     PipelineError, SchemaError, UnseenCategoryError)
from .features import FeatureSpec, add_heart_rate_features, select_features, validate_input
from .pipeline import CalorieModelingPipeline, PipelineReport, run_pipeline

__version__ = '1.0.0'
