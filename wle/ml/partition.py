"""
partition.py — Stratified Build / Validation Split
===================================================

Splits the labeled table into a model-building subset and a held-out
validation subset.  Sampling is stratified on the outcome so each
subset keeps roughly the class mix of the full table, and seeded so
repeated runs produce identical row sets.
"""

import logging
import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from . import config
from .errors import EmptyTableError
from .utils import require_columns

logger = logging.getLogger("ml.partition")


class Partition:
    """
    Result of a stratified split.

    Attributes:
        build (pd.DataFrame): Rows used to fit models.
        validation (pd.DataFrame): Held-out rows.
        build_index (np.ndarray): Row labels of `build` in the source table.
        validation_index (np.ndarray): Row labels of `validation`.
    """

    def __init__(self, build: pd.DataFrame, validation: pd.DataFrame):
        self.build = build
        self.validation = validation
        self.build_index = build.index.to_numpy()
        self.validation_index = validation.index.to_numpy()

    def __repr__(self) -> str:
        return (f"Partition(build={len(self.build)}, "
                f"validation={len(self.validation)})")


def split_positions(table: pd.DataFrame, label: str = None,
                    train_fraction: float = None,
                    seed: int = None) -> tuple[np.ndarray, np.ndarray]:
    """
    Compute stratified build / validation row positions.

    Args:
        table: Full labeled table.
        label: Outcome column to stratify on.  Defaults to config.LABEL_COLUMN.
        train_fraction: Share of rows in the build subset (0.7).
        seed: Random seed (1240).

    Returns:
        (build_positions, validation_positions): disjoint, sorted arrays
        of integer positions covering every row of `table`, whatever its
        index labels (duplicates included).

    Raises:
        EmptyTableError: If `table` has no rows.
    """
    label = label or config.LABEL_COLUMN
    train_fraction = train_fraction or config.TRAIN_FRACTION
    seed = config.PARTITION_SEED if seed is None else seed

    if table.empty:
        raise EmptyTableError("Cannot partition an empty table")
    require_columns(table, [label], context="training table")

    build_pos, validation_pos = train_test_split(
        np.arange(len(table)),
        train_size=train_fraction,
        stratify=table[label],
        random_state=seed,
    )
    return np.sort(build_pos), np.sort(validation_pos)


def split_indices(table: pd.DataFrame, label: str = None,
                  train_fraction: float = None,
                  seed: int = None) -> tuple[np.ndarray, np.ndarray]:
    """
    Compute stratified build / validation row labels.

    Same split as split_positions(), expressed as index labels of
    `table`.  The two arrays are disjoint when the index is unique.
    """
    build_pos, validation_pos = split_positions(
        table, label=label, train_fraction=train_fraction, seed=seed
    )
    return (table.index[build_pos].to_numpy(),
            table.index[validation_pos].to_numpy())


def partition(table: pd.DataFrame, label: str = None,
              train_fraction: float = None, seed: int = None) -> Partition:
    """
    Split `table` into build and validation frames.

    Rows are selected by position, so every row lands in exactly one
    frame even if the index repeats a label.  Both frames are copies;
    the source table is left untouched.
    """
    seed = config.PARTITION_SEED if seed is None else seed
    build_pos, validation_pos = split_positions(
        table, label=label, train_fraction=train_fraction, seed=seed
    )
    if not table.index.is_unique:
        logger.warning("Training table index has duplicate labels; "
                       "partitioning by row position")
    result = Partition(
        build=table.iloc[build_pos].copy(),
        validation=table.iloc[validation_pos].copy(),
    )
    logger.info(f"Partitioned {len(table)} rows → "
                f"{len(result.build)} build / "
                f"{len(result.validation)} validation (seed={seed})")
    return result
