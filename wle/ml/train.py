"""
train.py — Batch Run: Fetch, Select, Predict, Report
=====================================================

Downloads the training and test tables, runs the model-selection
pipeline, and writes the artifacts of the run.

This script can be run standalone:
    python -m wle.ml.train

Or called programmatically:
    from wle.ml.train import main
    main()

Run flow:
    1. Fetch pml-training.csv and pml-testing.csv
    2. Stratified 70/30 build / validation split
    3. Reduce features, rank, fit the candidate bank, stack
    4. Score contenders on validation, select the best
    5. Predict the test rows with the selected model
    6. Write report.md, plots, predictions.csv and the selected model
"""

import os
import sys
import logging

from . import config
from .data_loader import load_test_table, load_training_table
from .errors import PipelineError
from .pipeline import run_pipeline
from .report import write_report
from .utils import ensure_output_dirs, setup_logging

logger = logging.getLogger("ml.train")


def main(train_source: str = None, test_source: str = None,
         output_dir: str = None) -> bool:
    """
    Complete run: fetch → select → predict → report.

    Args:
        train_source: Training CSV URL or path.  Defaults to config.TRAIN_URL.
        test_source: Test CSV URL or path.  Defaults to config.TEST_URL.
        output_dir: Artifact directory.  Defaults to config.OUTPUT_DIR.

    Returns:
        True if the run succeeded, False otherwise.
    """
    setup_logging()
    output_dir = ensure_output_dirs(output_dir)

    logger.info("=" * 60)
    logger.info("STARTING MODEL SELECTION PIPELINE")
    logger.info("=" * 60)

    try:
        # ── Step 1: Fetch source tables ──────────────────────────
        train_df = load_training_table(train_source)
        test_df = load_test_table(test_source)

        # ── Steps 2-5: Select and predict ────────────────────────
        result = run_pipeline(train_df, test_df)

        # ── Step 6: Artifacts ────────────────────────────────────
        report_path = write_report(result, output_dir)
        model_path = os.path.join(output_dir,
                                  os.path.basename(config.MODEL_PATH))
        result.selected_model.save_model(model_path)
        predictions_path = os.path.join(
            output_dir, os.path.basename(config.PREDICTIONS_PATH))
        result.prediction.to_frame().to_csv(predictions_path, index=False)
    except PipelineError as e:
        logger.error(f"Pipeline failed: {e}")
        return False

    logger.info("=" * 60)
    logger.info("MODEL SELECTION COMPLETE")
    logger.info(f"  Selected model:  {result.selected} "
                f"(validation accuracy "
                f"{result.evaluations[result.selected].accuracy:.4f})")
    logger.info(f"  Report:          {report_path}")
    logger.info(f"  Predictions:     {predictions_path}")
    logger.info(f"  Model saved to:  {model_path}")
    logger.info("=" * 60)

    return True


# ── CLI entry point ──────────────────────────────────────────────
if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
