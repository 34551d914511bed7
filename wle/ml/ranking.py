"""
ranking.py — Exploratory Feature Ranking
=========================================

Fits one quick decision tree over every surviving predictor and reads
off its feature importances.  The top columns become the shared
working set that every candidate model is fitted on.
"""

import logging
import pandas as pd
from sklearn.tree import DecisionTreeClassifier

from . import config
from .errors import EmptyTableError
from .features import FeatureSubset
from .utils import require_columns

logger = logging.getLogger("ml.ranking")


def sort_importances(importances: pd.Series) -> pd.Series:
    """
    Sort importances descending.

    The sort is stable, so equal scores keep the order of the table's
    columns.
    """
    return importances.sort_values(ascending=False, kind="mergesort")


def predictor_columns(table: pd.DataFrame, label: str = None) -> list[str]:
    """Every column of `table` except the outcome and row identifier."""
    label = label or config.LABEL_COLUMN
    return [c for c in table.columns if c not in (label, config.ID_COLUMN)]


def rank_features(table: pd.DataFrame, label: str = None,
                  seed: int = None) -> pd.Series:
    """
    Rank every predictor of a reduced table by decision-tree importance.

    Args:
        table: Reduced build table (predictors + outcome).
        label: Outcome column.  Defaults to config.LABEL_COLUMN.
        seed: Tree random state.  Defaults to config.MODEL_SEED.

    Returns:
        Series of importance scores indexed by column name, descending.
    """
    label = label or config.LABEL_COLUMN
    seed = config.MODEL_SEED if seed is None else seed

    if table.empty:
        raise EmptyTableError("Cannot rank features of an empty table")
    require_columns(table, [label], context="ranking table")

    columns = predictor_columns(table, label)
    tree = DecisionTreeClassifier(random_state=seed)
    tree.fit(table[columns], table[label])

    ranking = sort_importances(
        pd.Series(tree.feature_importances_, index=columns, name="importance")
    )
    logger.info(f"Ranked {len(columns)} predictors; top 5: "
                f"{', '.join(ranking.index[:5])}")
    return ranking


def select_top(ranking: pd.Series, n: int = None) -> FeatureSubset:
    """Top `n` names of a ranking (config.TOP_FEATURES by default)."""
    n = n or config.TOP_FEATURES
    return FeatureSubset(ranking.index[:n])
