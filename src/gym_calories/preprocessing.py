"""Train-only scaling and categorical encoding."""

import logging
from typing import List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.exceptions import NotFittedError
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from .errors import UnseenCategoryError

logger = logging.getLogger(__name__)


class Preprocessor:
    """Standardize numeric predictors and one-hot encode categorical ones.

    Scaling and observed levels come from the frame passed to ``fit``;
    ``transform`` only applies them. With ``strict`` set, a category that was not present at
    fit time raises ``UnseenCategoryError`` instead of being encoded as the
    all-zero unknown row.

    ``categories`` optionally maps a categorical column to levels that must
    be encoded even when the fit rows lack them. Cross-validation passes the
    levels of the whole training partition so a rare level that lands only
    in a validation fold is not treated as drift.
    """

    def __init__(self, numeric: Sequence[str], categorical: Sequence[str] = (), strict: bool = True,
                 categories: Optional[Mapping[str, Sequence[str]]] = None):
        self.numeric = list(numeric)
        self.categorical = list(categorical)
        self.strict = strict
        self.categories = dict(categories or {})
        self.scaler = None
        self.encoder = None
        self.feature_names_: List[str] = []

    @property
    def is_fitted(self) -> bool:
        return bool(self.feature_names_)

    def fit(self, df: pd.DataFrame) -> 'Preprocessor':
        if len(df) == 0:
            raise ValueError("Cannot fit preprocessing on an empty frame")

        names = []
        if self.numeric:
            self.scaler = StandardScaler()
            self.scaler.fit(df[self.numeric].to_numpy(dtype=float))
            names.extend(self.numeric)

        if self.categorical:
            observed = df[self.categorical].astype(str)
            levels = [sorted(set(observed[col]) | {str(v) for v in self.categories.get(col, ())})
                      for col in self.categorical]
            self.encoder = OneHotEncoder(categories=levels, handle_unknown='ignore', sparse_output=False)
            self.encoder.fit(observed)
            names.extend(self.encoder.get_feature_names_out(self.categorical))

        self.feature_names_ = [str(n) for n in names]
        logger.debug("Preprocessor fit on %d rows -> %d features", len(df), len(self.feature_names_))
        return self

    def check_categories(self, df: pd.DataFrame) -> None:
        """Raise UnseenCategoryError for any value unknown to the fitted encoder."""
        if self.encoder is None:
            return
        for col, known in zip(self.categorical, self.encoder.categories_):
            values = df[col].astype(str)
            unseen_mask = ~values.isin(known)
            if unseen_mask.any():
                unseen = sorted(values[unseen_mask].unique())
                raise UnseenCategoryError(
                    f"Values {unseen} in {col} were not seen during fit (known: {list(known)})",
                    component='Preprocessor', column=col,
                    rows=df.index[unseen_mask].tolist())

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        if not self.is_fitted:
            raise NotFittedError("Preprocessor must be fit before transform")

        if self.strict:
            self.check_categories(df)

        blocks = []
        if self.scaler is not None:
            blocks.append(self.scaler.transform(df[self.numeric].to_numpy(dtype=float)))
        if self.encoder is not None:
            blocks.append(self.encoder.transform(df[self.categorical].astype(str)))

        matrix = np.hstack(blocks) if len(blocks) > 1 else blocks[0]
        return pd.DataFrame(matrix, columns=self.feature_names_, index=df.index)

    def fit_transform(self, df: pd.DataFrame) -> pd.DataFrame:
        return self.fit(df).transform(df)

    def state(self) -> dict:
        # Learned parameters, for inspection and leakage checks
        out = {'feature_names': list(self.feature_names_)}
        if self.scaler is not None:
            out['mean'] = dict(zip(self.numeric, self.scaler.mean_.tolist()))
            out['scale'] = dict(zip(self.numeric, self.scaler.scale_.tolist()))
        if self.encoder is not None:
            out['categories'] = {col: list(cats) for col, cats in zip(self.categorical, self.encoder.categories_)}
        return out
