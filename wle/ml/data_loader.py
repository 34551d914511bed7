"""
data_loader.py — Source Table Retrieval
========================================

Downloads the training and test CSVs into DataFrames.  Both are read
once at startup; a failed fetch aborts the run (no retry).

The training table carries the `classe` outcome, the test table a
`problem_id` row identifier in its place.  Spreadsheet artefacts such
as "#DIV/0!" are read as missing values so that summary columns parse
as numbers.
"""

import logging
import pandas as pd

from . import config
from .errors import DataFetchError

logger = logging.getLogger("ml.data_loader")


def load_table(source: str, required_column: str = None) -> pd.DataFrame:
    """
    Read one CSV table from a URL or local path.

    Args:
        source: HTTP(S) URL or file path.
        required_column: Column that must be present (outcome or row id).

    Returns:
        DataFrame with one row per recorded window.

    Raises:
        DataFetchError: On network, parse or layout failure.
    """
    logger.info(f"Fetching table from {source} …")
    try:
        df = pd.read_csv(source, na_values=config.NA_VALUES,
                         keep_default_na=True, low_memory=False)
    except Exception as e:
        raise DataFetchError(f"Failed to load {source}: {e}") from e

    # The row-number column is written without a header name
    if "Unnamed: 0" in df.columns and "X" not in df.columns:
        df = df.rename(columns={"Unnamed: 0": "X"})

    if df.empty:
        raise DataFetchError(f"Table at {source} contains no rows")

    if required_column is not None and required_column not in df.columns:
        raise DataFetchError(
            f"Table at {source} has no '{required_column}' column"
        )

    logger.info(f"Loaded {len(df)} rows × {df.shape[1]} columns")
    return df


def load_training_table(source: str = None) -> pd.DataFrame:
    """Fetch the labeled training table.  Defaults to config.TRAIN_URL."""
    return load_table(source or config.TRAIN_URL,
                      required_column=config.LABEL_COLUMN)


def load_test_table(source: str = None) -> pd.DataFrame:
    """Fetch the unlabeled test table.  Defaults to config.TEST_URL."""
    return load_table(source or config.TEST_URL,
                      required_column=config.ID_COLUMN)
