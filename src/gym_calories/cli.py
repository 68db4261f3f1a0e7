# Command line entry point: train every model family on a gym session export
# and print the comparison, best model and residual diagnostics

import argparse
import logging
import os
import sys

from dotenv import load_dotenv

from .config import PipelineConfig
from .data import DataManager
from .errors import PipelineError
from .evaluation import rank_models
from .pipeline import PipelineReport, run_pipeline

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog='gym-calories-train',
        description='Compare regression models for Calories_Burned on gym tracking data')
    parser.add_argument('data', help='CSV with one row per workout session')
    parser.add_argument('--seed', type=int, default=None, help='random seed (default 42)')
    parser.add_argument('--folds', type=int, default=None, help='cross-validation folds (default 10)')
    parser.add_argument('--split-ratio', type=float, default=None, help='training share (default 0.8)')
    parser.add_argument('--stratify', action='store_true', default=None,
                        help='stratify the train/test split on target deciles')
    parser.add_argument('--with-hr-features', action='store_true', default=None,
                        help='add HR_Intensity and HR_Reserve_Ratio predictors')
    parser.add_argument('--lenient-categories', action='store_true',
                        help='encode unseen categories as unknown instead of failing')
    parser.add_argument('--n-jobs', type=int, default=None, help='parallel workers for CV')
    parser.add_argument('--output-dir', default=None,
                        help='write metrics.csv, residuals.csv and cv_results.csv here')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    return parser


def print_report(report: PipelineReport):
    print("\n++ Model Comparison (held-out test set) ++")
    print(f"{'#':>2} {'Model':<24} {'RMSE':>10} {'MAE':>10} {'R²':>8}")
    print("-" * 59)
    for name, row in rank_models(report.metrics).iterrows():
        marker = '  <- best' if name == report.best_model else ''
        print(f"{int(row['rank']):>2} {name:<24} {row['RMSE']:>10.2f} {row['MAE']:>10.2f} "
              f"{row['R2']:>8.4f}{marker}")

    if report.cv_results:
        print("\n++ Selected Hyperparameters (cross-validation) ++")
        for name, result in report.cv_results.items():
            print(f"{name:<24}: {result.best.describe()} | mean CV RMSE = {result.best_rmse:.2f}")

    best = report.best_metrics
    print(f"\n++ Best Model: {best.model} ++")
    print(f"RMSE: {best.rmse:.2f} calories")
    print(f"MAE: {best.mae:.2f} calories")
    print(f"R²: {best.r2:.4f}")

    if not report.calorie_bands.empty:
        print("\n++ Error by Session Intensity ++")
        for _, row in report.calorie_bands.iterrows():
            print(f"{row['band']:<20}: MAE = {row['MAE']:.1f} ({row['error_pct']:.1f}% error, "
                  f"{row['samples']:,} samples)")

    if report.importance is not None:
        print(f"\nFeature Importance ({report.best_model}):")
        for _, row in report.importance.iterrows():
            print(f"  {row['feature']:<28}: {row['importance']:.3f}")

    residuals = report.residuals
    print("\n++ Residual Diagnostics ++")
    print(f"Residual std: {residuals.std:.2f}, outlier threshold: ±{residuals.threshold:.2f}")
    print(f"Outliers: {residuals.outlier_count} of {len(residuals.table)}")
    print(f"Skewness: {residuals.skewness:.3f} ({residuals.skew_description})")
    print(f"Excess kurtosis: {residuals.excess_kurtosis:.3f} ({residuals.kurtosis_description})")

    if report.notes:
        print("\n++ Notes ++")
        for note in report.notes:
            print(f"  {note}")


def write_outputs(report: PipelineReport, output_dir: str):
    os.makedirs(output_dir, exist_ok=True)
    report.metrics.to_csv(os.path.join(output_dir, 'metrics.csv'))
    report.residual_table.to_csv(os.path.join(output_dir, 'residuals.csv'), index_label='row')
    cv = report.cv_table()
    if not cv.empty:
        cv.to_csv(os.path.join(output_dir, 'cv_results.csv'), index=False)
    logger.info("Results written to %s", output_dir)


def main(argv=None):
    load_dotenv()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    try:
        config = PipelineConfig.from_env(
            random_seed=args.seed,
            cv_folds=args.folds,
            split_ratio=args.split_ratio,
            stratify=args.stratify,
            derive_hr_features=args.with_hr_features,
            strict_categories=False if args.lenient_categories else None,
            n_jobs=args.n_jobs,
        ).validate()

        print("=" * 80)
        print("GYM CALORIE MODELING - TRAIN AND EVALUATE")
        print("=" * 80)

        df = DataManager(args.data).load_data()
        report = run_pipeline(df, config)
        print_report(report)

        if args.output_dir:
            write_outputs(report, args.output_dir)
        return 0

    except (PipelineError, FileNotFoundError, ValueError) as e:
        logger.error("Run aborted: %s", e)
        return 1
    except KeyboardInterrupt:
        logger.info("Run interrupted by user")
        return 1


if __name__ == '__main__':
    sys.exit(main())
