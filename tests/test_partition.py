"""Unit tests for the seeded train/test split and k-fold generation."""

import unittest
import sys
import os
import math

import numpy as np

# Add parent directory and src to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from gym_calories.errors import InsufficientDataError
from gym_calories.features import target_deciles
from gym_calories.partition import kfold_indices, train_test_split_indices


class TestTrainTestSplit(unittest.TestCase):

    def test_disjoint_and_complete(self):
        for n in (20, 57, 100, 973):
            split = train_test_split_indices(n, ratio=0.8, seed=3)
            self.assertEqual(len(np.intersect1d(split.train, split.test)), 0)
            union = np.union1d(split.train, split.test)
            np.testing.assert_array_equal(union, np.arange(n))

    def test_train_size_within_one_row(self):
        for n, ratio in [(100, 0.8), (57, 0.8), (33, 0.7), (41, 0.55)]:
            split = train_test_split_indices(n, ratio=ratio, seed=1, cv_folds=5)
            self.assertEqual(len(split.train), math.ceil(ratio * n))
            self.assertLessEqual(abs(len(split.train) - ratio * n), 1)

    def test_same_seed_identical(self):
        a = train_test_split_indices(200, seed=42)
        b = train_test_split_indices(200, seed=42)
        np.testing.assert_array_equal(a.train, b.train)
        np.testing.assert_array_equal(a.test, b.test)

    def test_different_seed_differs(self):
        a = train_test_split_indices(200, seed=1)
        b = train_test_split_indices(200, seed=2)
        self.assertFalse(np.array_equal(a.train, b.train))

    def test_too_few_rows(self):
        with self.assertRaises(InsufficientDataError):
            train_test_split_indices(19, cv_folds=10)
        train_test_split_indices(20, cv_folds=10)

    def test_ratio_bounds(self):
        for ratio in (0.0, 1.0, -0.2, 1.5):
            with self.assertRaises(ValueError):
                train_test_split_indices(100, ratio=ratio)

    def test_ratio_leaving_no_test_rows(self):
        with self.assertRaises(InsufficientDataError):
            train_test_split_indices(20, ratio=0.99, cv_folds=10)

    def test_train_fraction_property(self):
        split = train_test_split_indices(50, ratio=0.8, seed=0, cv_folds=5)
        self.assertEqual(split.n_rows, 50)
        self.assertAlmostEqual(split.train_fraction, 0.8)


class TestStratifiedSplit(unittest.TestCase):

    def setUp(self):
        rng = np.random.default_rng(0)
        self.target = rng.lognormal(mean=6.5, sigma=0.4, size=250)

    def test_size_matches_unstratified(self):
        split = train_test_split_indices(250, ratio=0.8, seed=9, target=self.target, stratify=True)
        self.assertEqual(len(split.train), 200)
        np.testing.assert_array_equal(np.union1d(split.train, split.test), np.arange(250))

    def test_every_decile_represented_in_test(self):
        split = train_test_split_indices(250, ratio=0.8, seed=9, target=self.target, stratify=True)
        buckets = target_deciles(self.target)
        test_counts = np.bincount(buckets[split.test], minlength=10)
        self.assertTrue(all(test_counts == 5))

    def test_reproducible(self):
        a = train_test_split_indices(250, seed=4, target=self.target, stratify=True)
        b = train_test_split_indices(250, seed=4, target=self.target, stratify=True)
        np.testing.assert_array_equal(a.train, b.train)

    def test_requires_target(self):
        with self.assertRaises(ValueError):
            train_test_split_indices(250, stratify=True)


class TestKFold(unittest.TestCase):

    def test_fifty_rows_ten_folds_of_five(self):
        folds = kfold_indices(50, folds=10, seed=42)
        self.assertEqual(len(folds), 10)
        seen = []
        for train_idx, val_idx in folds:
            self.assertEqual(len(val_idx), 5)
            self.assertEqual(len(train_idx), 45)
            self.assertEqual(len(np.intersect1d(train_idx, val_idx)), 0)
            seen.extend(val_idx.tolist())
        self.assertEqual(sorted(seen), list(range(50)))

    def test_uneven_sizes_differ_by_one(self):
        sizes = [len(v) for _, v in kfold_indices(53, folds=10, seed=0)]
        self.assertEqual(sum(sizes), 53)
        self.assertLessEqual(max(sizes) - min(sizes), 1)

    def test_seeded_folds_repeat(self):
        a = kfold_indices(80, folds=10, seed=5)
        b = kfold_indices(80, folds=10, seed=5)
        for (_, va), (_, vb) in zip(a, b):
            np.testing.assert_array_equal(va, vb)

    def test_folds_follow_split_shuffle(self):
        order = np.random.default_rng(7).permutation(40)
        folds = kfold_indices(40, folds=4, seed=7)
        for i, (train_idx, val_idx) in enumerate(folds):
            np.testing.assert_array_equal(val_idx, np.sort(order[i * 10:(i + 1) * 10]))
            np.testing.assert_array_equal(train_idx, np.setdiff1d(np.arange(40), val_idx))

    def test_different_seed_changes_folds(self):
        a = kfold_indices(60, folds=5, seed=1)
        b = kfold_indices(60, folds=5, seed=2)
        self.assertFalse(all(np.array_equal(va, vb) for (_, va), (_, vb) in zip(a, b)))

    def test_too_few_rows_for_folds(self):
        with self.assertRaises(InsufficientDataError):
            kfold_indices(15, folds=10)


if __name__ == '__main__':
    unittest.main()
