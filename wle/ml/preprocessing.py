"""
preprocessing.py — Feature Reduction and Imputation
====================================================

Responsibilities in the classification pipeline:
1. Drop the leading identifier block (row number, subject, timestamps,
   window bookkeeping).
2. Drop columns with zero or near-zero variance.
3. Drop columns that are missing in at least 90% of rows.
4. Replace the remaining missing values with zero, and drop any column
   the fill leaves with near-zero variance.

Why each step matters:
- **Identifiers**: the subject name and timestamps are tied to how the
  recording sessions were scheduled, not to how the lift was performed.
  Keeping them lets a model memorise the session instead of the movement.
- **Near-zero variance**: a column where one value dominates carries
  almost no signal and can make cross-validation folds degenerate.
- **Mostly-missing columns**: the WLE summary statistics (kurtosis,
  skewness, max/min/amplitude ...) are only filled on window-boundary
  rows, roughly 2% of the table.
- **Zero imputation**: after the filters only sparse gaps remain; the
  estimators used downstream cannot handle NaN.

The reducer is fitted on the build partition only and then applied
unchanged to validation and test tables, so every table is narrowed to
the same columns.
"""

import logging
import pandas as pd

from . import config
from .errors import EmptyTableError, ModelNotFittedError
from .utils import require_columns

logger = logging.getLogger("ml.preprocessing")


def near_zero_variance(df: pd.DataFrame, freq_cut: float = None,
                       unique_cut: float = None) -> pd.DataFrame:
    """
    Compute near-zero-variance diagnostics for every column.

    For each column (missing values ignored):
        freq_ratio     = count(most common) / count(second most common)
        percent_unique = 100 × distinct values / row count
        zero_var       = at most one distinct value
        nzv            = zero_var or
                         (freq_ratio > freq_cut and percent_unique <= unique_cut)

    Args:
        df: Table whose columns are checked.
        freq_cut: Frequency-ratio cutoff.  Defaults to config.NZV_FREQ_CUT.
        unique_cut: Percent-unique cutoff.  Defaults to config.NZV_UNIQUE_CUT.

    Returns:
        DataFrame indexed by column name with columns
        freq_ratio, percent_unique, zero_var, nzv.
    """
    freq_cut = config.NZV_FREQ_CUT if freq_cut is None else freq_cut
    unique_cut = config.NZV_UNIQUE_CUT if unique_cut is None else unique_cut
    n_rows = len(df)

    rows = {}
    for col in df.columns:
        counts = df[col].value_counts(dropna=True)
        n_unique = len(counts)
        freq_ratio = (float(counts.iloc[0] / counts.iloc[1])
                      if n_unique > 1 else 0.0)
        percent_unique = 100.0 * n_unique / n_rows if n_rows else 0.0
        zero_var = n_unique <= 1
        rows[col] = {
            "freq_ratio": freq_ratio,
            "percent_unique": percent_unique,
            "zero_var": zero_var,
            "nzv": bool(zero_var or (freq_ratio > freq_cut
                                     and percent_unique <= unique_cut)),
        }

    return pd.DataFrame.from_dict(
        rows, orient="index",
        columns=["freq_ratio", "percent_unique", "zero_var", "nzv"],
    )


def missing_ratio(df: pd.DataFrame) -> pd.Series:
    """Share of missing values per column (0.0 – 1.0)."""
    if df.empty:
        return pd.Series(0.0, index=df.columns)
    return df.isna().mean()


def to_numeric(df: pd.DataFrame) -> pd.DataFrame:
    """Coerce every column to a number; unparseable cells become NaN."""
    return df.apply(pd.to_numeric, errors="coerce")


class FeatureReducer:
    """
    Learns which predictor columns survive reduction and applies that
    selection to any table.

    Attributes:
        label (str): Outcome column, never dropped.
        missing_threshold (float): Drop columns missing in >= this share.
        kept_columns (list[str]): Surviving predictors, in table order.
        dropped_identifiers (list[str]): Housekeeping columns removed.
        dropped_near_zero (list[str]): Columns flagged near-zero variance.
        dropped_missing (list[str]): Columns removed for missingness.
        nzv_metrics (pd.DataFrame): Diagnostics from near_zero_variance().
        missing_ratios (pd.Series): Missing share per non-NZV column.
    """

    def __init__(self, label: str = None, missing_threshold: float = None,
                 identifier_columns: list = None):
        self.label = label or config.LABEL_COLUMN
        self.missing_threshold = (config.MISSING_THRESHOLD
                                  if missing_threshold is None
                                  else missing_threshold)
        self.identifier_columns = list(identifier_columns
                                       if identifier_columns is not None
                                       else config.IDENTIFIER_COLUMNS)
        self.kept_columns: list[str] = []
        self.dropped_identifiers: list[str] = []
        self.dropped_near_zero: list[str] = []
        self.dropped_missing: list[str] = []
        self.nzv_metrics = None
        self.missing_ratios = None
        self._is_fitted = False

    # ── Fitting ────────────────────────────────────────────────────

    def fit(self, df: pd.DataFrame) -> "FeatureReducer":
        """
        Decide the surviving columns from a labeled build table.

        Args:
            df: Build partition, including the outcome column.

        Returns:
            self (for method chaining).

        Raises:
            EmptyTableError: If `df` has no rows.
        """
        if df.empty:
            raise EmptyTableError("Cannot reduce features of an empty table")

        # Step 1: identifier block
        housekeeping = self.identifier_columns + ["Unnamed: 0"]
        self.dropped_identifiers = [c for c in df.columns if c in housekeeping]
        predictors = [c for c in df.columns
                      if c not in self.dropped_identifiers
                      and c not in (self.label, config.ID_COLUMN)]
        numeric = to_numeric(df[predictors])

        # Step 2: near-zero variance
        self.nzv_metrics = near_zero_variance(numeric)
        self.dropped_near_zero = self.nzv_metrics.index[
            self.nzv_metrics["nzv"].astype(bool)].tolist()
        remaining = [c for c in predictors if c not in self.dropped_near_zero]

        # Step 3: missingness (inclusive threshold)
        self.missing_ratios = missing_ratio(numeric[remaining])
        self.dropped_missing = self.missing_ratios.index[
            self.missing_ratios >= self.missing_threshold].tolist()
        self.kept_columns = [c for c in remaining
                             if c not in self.dropped_missing]

        # Step 4: zero fill can leave a sparse column dominated by one value
        filled = numeric[self.kept_columns].fillna(config.IMPUTE_VALUE)
        refilled = near_zero_variance(filled)
        degenerate = refilled.index[refilled["nzv"].astype(bool)].tolist()
        if degenerate:
            logger.info(f"Dropped {len(degenerate)} column(s) that become "
                        f"near-zero variance after imputation")
            self.dropped_near_zero += degenerate
            self.kept_columns = [c for c in self.kept_columns
                                 if c not in degenerate]

        self._is_fitted = True
        logger.info(f"Dropped {len(self.dropped_identifiers)} identifier, "
                    f"{len(self.dropped_near_zero)} near-zero-variance and "
                    f"{len(self.dropped_missing)} mostly-missing columns; "
                    f"{len(self.kept_columns)} predictors kept")
        logger.debug(f"Near-zero variance: {self.dropped_near_zero}")
        logger.debug(f"Mostly missing: {self.dropped_missing}")
        return self

    # ── Application ────────────────────────────────────────────────

    def transform(self, df: pd.DataFrame, columns=None) -> pd.DataFrame:
        """
        Narrow a table to the learned predictors and impute gaps.

        The outcome and row-identifier columns are carried through
        untouched when present.

        Args:
            df: Any table sharing the training layout.
            columns: Restrict the output to these predictors (e.g. the
                columns one model reads).  Defaults to all kept columns.

        Returns:
            New dense DataFrame (no NaN among predictors).

        Raises:
            ModelNotFittedError: If called before fit().
            MissingFeatureError: If a requested predictor is absent from `df`.
            ValueError: If `columns` names a predictor the fit dropped.
        """
        if not self._is_fitted:
            raise ModelNotFittedError(
                "FeatureReducer has not been fitted yet. Call fit() first."
            )
        if columns is None:
            columns = self.kept_columns
        else:
            columns = list(columns)
            unknown = [c for c in columns if c not in self.kept_columns]
            if unknown:
                raise ValueError(f"Not among the reduced predictors: {unknown}")
        require_columns(df, columns, context="reduced table")

        out = to_numeric(df[columns])
        n_missing = int(out.isna().sum().sum())
        out = out.fillna(config.IMPUTE_VALUE)
        if n_missing > 0:
            logger.info(f"Imputed {n_missing} missing values with "
                        f"{config.IMPUTE_VALUE}")

        for col in (self.label, config.ID_COLUMN):
            if col in df.columns:
                out[col] = df[col].to_numpy()
        return out

    def fit_transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """Fit on `df` and return its reduced form."""
        return self.fit(df).transform(df)

    def summary(self) -> dict:
        """Column counts per reduction step, for reporting."""
        return {
            "identifiers": len(self.dropped_identifiers),
            "near_zero_variance": len(self.dropped_near_zero),
            "mostly_missing": len(self.dropped_missing),
            "kept": len(self.kept_columns),
        }
