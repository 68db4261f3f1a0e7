import logging
import os

import pandas as pd

from .features import CATEGORICAL_COLUMNS, validate_input

logger = logging.getLogger(__name__)


class DataManager:
    # Loads the cleaned gym tracking export handed over by the upstream audit step

    def __init__(self, filepath, sample_size=None, random_state=42):
        self.filepath = filepath
        self.sample_size = sample_size
        self.random_state = random_state
        self.df = None

    def load_data(self):
        if not os.path.exists(self.filepath):
            raise FileNotFoundError(f"Data file not found: {self.filepath}")
        if self.sample_size is not None and self.sample_size <= 0:
            raise ValueError("sample_size must be positive")

        logger.info("Loading workout sessions from %s", self.filepath)
        df = pd.read_csv(self.filepath)

        # Categorical levels are labels, never numbers; blanks stay missing
        for col in CATEGORICAL_COLUMNS:
            if col in df.columns:
                df[col] = df[col].where(df[col].isna(), df[col].astype(str).str.strip())

        if self.sample_size:
            df = df.sample(n=min(self.sample_size, len(df)), random_state=self.random_state)
            df = df.reset_index(drop=True)
            logger.info("Randomly sampled %s records", f"{len(df):,}")
        else:
            logger.info("Using all %s records", f"{len(df):,}")

        validate_input(df)
        self.df = df
        return self.df
