"""Seeded train/test partitioning and k-fold generation."""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from .errors import InsufficientDataError
from .features import target_deciles

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Split:
    """Disjoint positional train/test indices covering every row."""

    train: np.ndarray
    test: np.ndarray

    @property
    def n_rows(self) -> int:
        return len(self.train) + len(self.test)

    @property
    def train_fraction(self) -> float:
        return len(self.train) / self.n_rows


def _check_size(n: int, cv_folds: int) -> None:
    if n < 2 * cv_folds:
        raise InsufficientDataError(
            f"Need at least {2 * cv_folds} rows for {cv_folds}-fold CV, got {n}",
            component='Partitioner')


def _stratified_train_positions(y: np.ndarray, n_train: int, rng: np.random.Generator) -> np.ndarray:
    # Each decile gets its proportional share; leftover slots go to the
    # largest fractional remainders so the total stays exactly n_train
    buckets = target_deciles(y)
    labels = np.unique(buckets)
    members = [np.flatnonzero(buckets == label) for label in labels]
    quotas = np.array([len(m) * n_train / len(y) for m in members])
    counts = np.floor(quotas).astype(int)
    shortfall = n_train - counts.sum()
    if shortfall > 0:
        order = np.argsort(-(quotas - counts), kind='stable')
        counts[order[:shortfall]] += 1

    chosen = []
    for idx, count in zip(members, counts):
        chosen.append(rng.permutation(idx)[:count])
    return np.concatenate(chosen)


def train_test_split_indices(n_rows: int, ratio: float = 0.8, seed: int = 42,
                             cv_folds: int = 10, target: Optional[np.ndarray] = None,
                             stratify: bool = False) -> Split:
    """Partition ``range(n_rows)`` into seeded train and test positions.

    The training side always receives ceil(ratio * n_rows) rows. With
    ``stratify`` the rows are drawn per target decile so both subsets keep
    the shape of a skewed continuous target.

    Raises:
        ValueError: ratio outside (0, 1), or stratify without a target.
        InsufficientDataError: fewer than 2 * cv_folds rows, or a split that
            would leave the test side empty.
    """
    if not 0 < ratio < 1:
        raise ValueError(f"Split ratio must be in (0, 1), got {ratio}")
    _check_size(n_rows, cv_folds)

    n_train = math.ceil(ratio * n_rows)
    if n_train >= n_rows:
        raise InsufficientDataError(
            f"Ratio {ratio} leaves no test rows out of {n_rows}", component='Partitioner')

    rng = np.random.default_rng(seed)
    if stratify:
        if target is None:
            raise ValueError("Stratified split needs the target values")
        target = np.asarray(target, dtype=float)
        if len(target) != n_rows:
            raise ValueError("Target length does not match n_rows")
        train = _stratified_train_positions(target, n_train, rng)
    else:
        train = rng.permutation(n_rows)[:n_train]

    train = np.sort(train)
    test = np.setdiff1d(np.arange(n_rows), train)

    logger.info("Split %d rows into %d train / %d test (seed=%d, stratify=%s)",
                n_rows, len(train), len(test), seed, stratify)
    return Split(train=train, test=test)


def kfold_indices(n_rows: int, folds: int = 10, seed: int = 42) -> List[Tuple[np.ndarray, np.ndarray]]:
    """Return ``folds`` (train, validation) position pairs over ``range(n_rows)``.

    Rows are shuffled with ``default_rng(seed)`` like the train/test split and
    cut into consecutive chunks, so validation folds are disjoint, cover each
    row exactly once and differ in size by at most one.
    """
    _check_size(n_rows, folds)
    order = np.random.default_rng(seed).permutation(n_rows)
    all_rows = np.arange(n_rows)

    pairs = []
    for chunk in np.array_split(order, folds):
        val_idx = np.sort(chunk)
        pairs.append((np.setdiff1d(all_rows, val_idx), val_idx))
    return pairs

