"""
features.py — Named Feature Subsets
====================================

A FeatureSubset is the ordered list of columns a model reads.  Every
fitted model carries its own subset, and the same subset is used to
select columns at fit, validation and prediction time, so no stage
depends on the column order of whatever table it receives.
"""

import pandas as pd

from .utils import require_columns


class FeatureSubset:
    """
    Immutable, ordered set of column names.

    Usage:
        subset = FeatureSubset(["roll_belt", "yaw_belt"])
        X = subset.select(table)
    """

    __slots__ = ("_names",)

    def __init__(self, names):
        names = tuple(names)
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate feature names in {names}")
        self._names = names

    @property
    def names(self) -> tuple:
        return self._names

    def top(self, n: int) -> "FeatureSubset":
        """First `n` names (all of them if fewer)."""
        return FeatureSubset(self._names[:n])

    def select(self, table: pd.DataFrame) -> pd.DataFrame:
        """
        Return the subset's columns of `table`, in subset order.

        Raises:
            MissingFeatureError: If any name is absent from `table`.
        """
        require_columns(table, self._names, context="feature table")
        return table.loc[:, list(self._names)]

    def issubset(self, other: "FeatureSubset") -> bool:
        return set(self._names) <= set(other.names)

    def __iter__(self):
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name) -> bool:
        return name in self._names

    def __eq__(self, other) -> bool:
        if not isinstance(other, FeatureSubset):
            return NotImplemented
        return self._names == other.names

    def __hash__(self) -> int:
        return hash(self._names)

    def __repr__(self) -> str:
        return f"FeatureSubset({list(self._names)})"
