"""Tests for the gym-calories-train command."""

import unittest
import sys
import os
import io
import tempfile
from contextlib import redirect_stdout
from unittest.mock import patch

import pandas as pd

# Add parent directory and src to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from gym_calories.cli import main
from gym_calories.data import DataManager
from gym_calories.errors import SchemaError
from tests.sample_data import make_gym_frame


class TestCommandLine(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.csv = os.path.join(self.tmp.name, 'sessions.csv')
        make_gym_frame(80, seed=12, linear=False, noise=15.0).to_csv(self.csv, index=False)

    def tearDown(self):
        self.tmp.cleanup()

    @patch.dict(os.environ, {'GYM_CALORIES_GBT_ITERATIONS': '40', 'GYM_CALORIES_LAMBDA_POINTS': '5'})
    def test_run_writes_outputs(self):
        out_dir = os.path.join(self.tmp.name, 'results')
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            code = main([self.csv, '--folds', '5', '--seed', '3', '--output-dir', out_dir,
                         '--log-level', 'WARNING'])

        self.assertEqual(code, 0)
        printed = buffer.getvalue()
        self.assertIn('++ Model Comparison (held-out test set) ++', printed)
        self.assertIn('++ Residual Diagnostics ++', printed)

        # Comparison rows come out ranked, best first
        lines = printed.splitlines()
        start = lines.index('++ Model Comparison (held-out test set) ++') + 3
        table_rows = lines[start:start + 5]
        self.assertTrue(table_rows[0].lstrip().startswith('1 '))
        self.assertTrue(table_rows[0].endswith('<- best'))
        self.assertTrue(table_rows[4].lstrip().startswith('5 '))
        rmse = [float(row[27:38]) for row in table_rows]
        self.assertEqual(rmse, sorted(rmse))

        metrics = pd.read_csv(os.path.join(out_dir, 'metrics.csv'), index_col='model')
        self.assertEqual(len(metrics), 5)
        residuals = pd.read_csv(os.path.join(out_dir, 'residuals.csv'))
        self.assertEqual(len(residuals), 16)
        self.assertIn('is_outlier', residuals.columns)
        cv = pd.read_csv(os.path.join(out_dir, 'cv_results.csv'))
        self.assertEqual(len(cv), 5 + 5 + 10)

    def test_missing_file_returns_error_code(self):
        with redirect_stdout(io.StringIO()):
            code = main([os.path.join(self.tmp.name, 'nope.csv'), '--log-level', 'ERROR'])
        self.assertEqual(code, 1)

    def test_schema_problem_returns_error_code(self):
        pd.read_csv(self.csv).drop(columns=['BMI']).to_csv(self.csv, index=False)
        with redirect_stdout(io.StringIO()):
            code = main([self.csv, '--log-level', 'ERROR'])
        self.assertEqual(code, 1)


class TestDataManager(unittest.TestCase):

    def test_load_and_sample(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'sessions.csv')
            make_gym_frame(50).to_csv(path, index=False)
            df = DataManager(path, sample_size=30).load_data()
            self.assertEqual(len(df), 30)
            self.assertEqual(set(df['Gender']), {'Male', 'Female'})

    def test_rejects_incomplete_rows(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'sessions.csv')
            frame = make_gym_frame(50)
            frame.loc[3, 'Water_Intake'] = None
            frame.to_csv(path, index=False)
            with self.assertRaises(SchemaError):
                DataManager(path).load_data()

    def test_rejects_blank_category(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'sessions.csv')
            frame = make_gym_frame(50)
            frame['Gender'] = frame['Gender'].astype(object)
            frame.loc[7, 'Gender'] = None
            frame.to_csv(path, index=False)
            with self.assertRaises(SchemaError) as ctx:
                DataManager(path).load_data()
            self.assertEqual(ctx.exception.column, 'Gender')
            self.assertEqual(ctx.exception.rows, [7])

    def test_strips_category_labels(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'sessions.csv')
            frame = make_gym_frame(50)
            frame['Workout_Type'] = frame['Workout_Type'].astype(str) + '  '
            frame.to_csv(path, index=False)
            df = DataManager(path).load_data()
            self.assertFalse(df['Workout_Type'].str.endswith(' ').any())
            self.assertFalse((df['Workout_Type'] == 'nan').any())

    def test_bad_sample_size(self):
        with self.assertRaises(ValueError):
            DataManager(__file__, sample_size=0).load_data()


if __name__ == '__main__':
    unittest.main()
