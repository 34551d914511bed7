"""
stacking.py — Second-Stage Meta-Model
======================================

Combines two fitted base models by training a random forest whose only
inputs are the base models' predicted labels.

    base predictions on training rows ─┐
                                       ├─ one-hot over outcome domain ─ RF
    true label ────────────────────────┘

The meta-model is fitted on the same rows as its base models, so its
in-sample (out-of-bag) accuracy is optimistic; only the validation
score is comparable with the base models.
"""

import logging
import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestClassifier
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder

from . import config
from .errors import PipelineError
from .features import FeatureSubset
from .model import ForestModel

logger = logging.getLogger("ml.stacking")


class StackedModel(ForestModel):
    """
    Random forest over the predicted labels of base models.

    Each base model contributes one categorical input column, named
    after the base model.  Labels are one-hot encoded over the full
    outcome domain; a label outside the domain encodes as all zeros.

    Attributes:
        bases (tuple[ClassifierModel]): Fitted base models, in input order.
        domain (list[str]): Outcome domain used for the encoding.
    """

    name = "stacked"
    title = "Stacked Random Forest"

    def __init__(self, bases, label: str = None, seed: int = None,
                 domain=None):
        super().__init__(label=label, seed=seed)
        self.bases = tuple(bases)
        if len(self.bases) < 2:
            raise ValueError("Stacking needs at least two base models")
        self.domain = list(domain) if domain is not None else None

    def build_estimator(self):
        return Pipeline([
            ("encode", OneHotEncoder(
                categories=[self.domain] * len(self.bases),
                handle_unknown="ignore",
            )),
            ("forest", RandomForestClassifier(
                n_estimators=config.N_ESTIMATORS,
                oob_score=True,
                random_state=self.seed,
                n_jobs=config.N_JOBS,
            )),
        ])

    def fit(self, table: pd.DataFrame, features: FeatureSubset = None,
            label: str = None) -> "StackedModel":
        """
        Fit the meta-model on base predictions over `table`.

        Args:
            table: Training rows of the base models.
            features: Ignored; the inputs are always the base models.
            label: Outcome column.
        """
        label = label or self.label
        if self.domain is None:
            observed = set(table[label].astype(str))
            for base in self.bases:
                observed |= set(base.classes_)
            self.domain = sorted(observed)
        return super().fit(table, FeatureSubset(b.name for b in self.bases),
                           label)

    def refit_top(self, table, n=None):
        raise PipelineError("A stacked model reads base-model predictions "
                            "and cannot be refit on a feature subset")

    def base_predictions(self, table: pd.DataFrame) -> pd.DataFrame:
        """One predicted-label column per base model, indexed like `table`."""
        return pd.DataFrame(
            {base.name: base.predict(table).astype(str) for base in self.bases},
            index=table.index,
        )

    def _design_matrix(self, table):
        return self.base_predictions(table)

    def _forest(self) -> RandomForestClassifier:
        return self.estimator.named_steps["forest"]

    def _compute_importances(self, X, y):
        # Sum the one-hot column importances back onto their base model
        sizes = [len(c) for c in self.estimator.named_steps["encode"].categories_]
        parts = np.split(self._forest().feature_importances_,
                         np.cumsum(sizes)[:-1])
        return np.array([part.sum() for part in parts])

    @property
    def required_columns(self) -> list[str]:
        self._check_fitted()
        columns = []
        for base in self.bases:
            columns.extend(c for c in base.required_columns if c not in columns)
        return columns


def fit_stacked_model(bases, table: pd.DataFrame,
                      label: str = None) -> StackedModel:
    """
    Stack fitted base models.

    Args:
        bases: Fitted base models (config.STACK_BASE_MODELS by default in
            the pipeline: the reduced random forest and boosting fits).
        table: The rows the base models were trained on.
        label: Outcome column.

    Returns:
        Fitted StackedModel.
    """
    label = label or config.LABEL_COLUMN
    names = ", ".join(b.name for b in bases)
    logger.info(f"Stacking [{names}] on {len(table)} training rows …")
    model = StackedModel(bases, label=label).fit(table, label=label)
    return model
