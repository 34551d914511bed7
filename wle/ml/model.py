"""
model.py — Candidate Classifier Wrappers
=========================================

Wraps the four scikit-learn classifiers compared by the pipeline to
provide one interface:
- fit(table, features)  → fitted model bound to its FeatureSubset
- predict(table)        → class labels
- importances()         → per-feature scores, descending
- refit_top(table, n)   → NEW model on this model's own top-n features
- in-sample confusion matrix and accuracy, recorded at fit time
- persistence (save / load via joblib)

Methods:
    lda            — LinearDiscriminantAnalysis
    tree           — DecisionTreeClassifier
    random_forest  — RandomForestClassifier
    boosting       — GradientBoostingClassifier

In-sample accuracy is estimated on the training rows without reusing a
row for both fitting and scoring: stratified k-fold predictions for
LDA, tree and boosting, out-of-bag predictions for the random forest.
"""

import logging
import numpy as np
import pandas as pd
import joblib
from sklearn.discriminant_analysis import LinearDiscriminantAnalysis
from sklearn.ensemble import GradientBoostingClassifier, RandomForestClassifier
from sklearn.inspection import permutation_importance
from sklearn.model_selection import StratifiedKFold, cross_val_predict
from sklearn.tree import DecisionTreeClassifier

from . import config
from .errors import EmptyTableError, ModelNotFittedError
from .evaluation import accuracy, confusion
from .features import FeatureSubset
from .ranking import sort_importances
from .utils import require_columns

logger = logging.getLogger("ml.model")


class ClassifierModel:
    """
    Base wrapper binding one scikit-learn classifier to a feature subset.

    Subclasses implement build_estimator() and may override how
    in-sample predictions and importances are obtained.

    Attributes:
        name (str): Method identifier (e.g. "random_forest").
        title (str): Human-readable method name for reports.
        estimator: Underlying fitted sklearn estimator (None until fit).
        features (FeatureSubset): Columns the model reads.
        classes_ (list[str]): Outcome domain seen at fit time.
        n_train_rows (int): Rows the model was fitted on.
        in_sample_confusion (pd.DataFrame): Resampled confusion matrix.
        in_sample_accuracy (float): Accuracy derived from that matrix.
    """

    name = "classifier"
    title = "Classifier"

    def __init__(self, label: str = None, seed: int = None):
        self.label = label or config.LABEL_COLUMN
        self.seed = config.MODEL_SEED if seed is None else seed
        self.estimator = None
        self.features = None
        self.classes_ = None
        self.n_train_rows = 0
        self.in_sample_confusion = None
        self.in_sample_accuracy = None
        self._importances = None

    def build_estimator(self):
        """Return a fresh, unfitted sklearn estimator."""
        raise NotImplementedError

    # ── Training ───────────────────────────────────────────────────

    def fit(self, table: pd.DataFrame, features: FeatureSubset,
            label: str = None) -> "ClassifierModel":
        """
        Fit the classifier on `features` of `table`.

        Args:
            table: Training rows with predictors and outcome.
            features: Columns to read.
            label: Outcome column.  Defaults to the model's label.

        Returns:
            self (for method chaining).
        """
        self.label = label or self.label
        if table.empty:
            raise EmptyTableError(f"Cannot fit {self.name} on an empty table")
        require_columns(table, [self.label], context="training table")

        self.features = FeatureSubset(features)
        X = self._design_matrix(table)
        y = table[self.label].astype(str)

        logger.info(f"Training {self.title} on {X.shape[0]} rows, "
                    f"{X.shape[1]} features …")
        self.estimator = self.build_estimator()
        self.estimator.fit(X, y)
        self.classes_ = [str(c) for c in self.estimator.classes_]
        self.n_train_rows = len(X)

        predicted = self._in_sample_predictions(X, y)
        self.in_sample_confusion = confusion(y, predicted, self.classes_)
        self.in_sample_accuracy = accuracy(y, predicted)
        self._importances = sort_importances(
            pd.Series(self._compute_importances(X, y),
                      index=list(self.features), name="importance")
        )
        logger.info(f"{self.title}: in-sample accuracy "
                    f"{self.in_sample_accuracy:.4f}")
        return self

    def refit_top(self, table: pd.DataFrame, n: int = None) -> "ClassifierModel":
        """
        Fit a new model of the same method on this model's top-n features.

        The current model is left untouched.

        Args:
            table: Training rows (the same rows this model was fitted on).
            n: Number of features to keep.  Defaults to config.REFIT_FEATURES.

        Returns:
            A new, fitted model.
        """
        subset = self.top_features(n)
        logger.info(f"Refitting {self.title} on its top {len(subset)} "
                    f"features: {', '.join(subset)}")
        return type(self)(label=self.label, seed=self.seed).fit(
            table, subset, self.label
        )

    def _design_matrix(self, table: pd.DataFrame) -> pd.DataFrame:
        return self.features.select(table)

    def _cv(self, y: pd.Series) -> StratifiedKFold:
        smallest = int(y.value_counts().min())
        n_splits = max(2, min(config.CV_FOLDS, smallest))
        return StratifiedKFold(n_splits=n_splits, shuffle=True,
                               random_state=self.seed)

    def _in_sample_predictions(self, X: pd.DataFrame,
                               y: pd.Series) -> np.ndarray:
        """Stratified k-fold predictions for every training row."""
        return cross_val_predict(self.build_estimator(), X, y,
                                 cv=self._cv(y), n_jobs=config.N_JOBS)

    def _compute_importances(self, X: pd.DataFrame, y: pd.Series) -> np.ndarray:
        return self.estimator.feature_importances_

    # ── Inference ──────────────────────────────────────────────────

    def predict(self, table: pd.DataFrame) -> np.ndarray:
        """
        Predict class labels for every row of `table`.

        Raises:
            ModelNotFittedError: If the model has not been fitted.
            MissingFeatureError: If a required column is absent.
        """
        self._check_fitted()
        return np.asarray(self.estimator.predict(self._design_matrix(table)))

    def importances(self) -> pd.Series:
        """Feature importance scores, descending."""
        self._check_fitted()
        return self._importances.copy()

    def top_features(self, n: int = None) -> FeatureSubset:
        """This model's own n most important features."""
        n = n or config.REFIT_FEATURES
        return FeatureSubset(self.importances().index[:n])

    @property
    def required_columns(self) -> list[str]:
        """Raw table columns needed to call predict()."""
        self._check_fitted()
        return list(self.features)

    @property
    def is_fitted(self) -> bool:
        return self.estimator is not None

    def _check_fitted(self) -> None:
        """Raise if the model hasn't been fitted / loaded."""
        if not self.is_fitted:
            raise ModelNotFittedError(
                f"{self.title} has not been fitted yet. "
                "Call fit() or load_model() first."
            )

    def __repr__(self) -> str:
        n = len(self.features) if self.features is not None else 0
        return f"{type(self).__name__}(features={n}, fitted={self.is_fitted})"

    # ── Persistence ───────────────────────────────────────────────

    def save_model(self, path: str = None) -> None:
        """
        Serialize the fitted model, with its feature subset, using joblib.

        Args:
            path: Output file path.  Defaults to config.MODEL_PATH.
        """
        self._check_fitted()
        path = path or config.MODEL_PATH
        joblib.dump(self, path)
        logger.info(f"Model saved to {path}")

    @staticmethod
    def load_model(path: str = None) -> "ClassifierModel":
        """
        Load a model written by save_model().

        Args:
            path: Input file path.  Defaults to config.MODEL_PATH.
        """
        path = path or config.MODEL_PATH
        model = joblib.load(path)
        logger.info(f"Model loaded from {path}")
        return model


class LDAModel(ClassifierModel):
    """Linear discriminant analysis.  Importances by permutation."""

    name = "lda"
    title = "Linear Discriminant Analysis"

    def build_estimator(self):
        return LinearDiscriminantAnalysis()

    def _compute_importances(self, X, y):
        result = permutation_importance(
            self.estimator, X, y,
            n_repeats=config.PERMUTATION_REPEATS,
            random_state=self.seed,
            n_jobs=config.N_JOBS,
        )
        return result.importances_mean


class TreeModel(ClassifierModel):
    """Single classification tree."""

    name = "tree"
    title = "Decision Tree"

    def build_estimator(self):
        return DecisionTreeClassifier(random_state=self.seed)


class ForestModel(ClassifierModel):
    """
    Random forest.  In-sample accuracy comes from the out-of-bag
    decision function instead of k-fold refits.
    """

    name = "random_forest"
    title = "Random Forest"

    def build_estimator(self):
        return RandomForestClassifier(
            n_estimators=config.N_ESTIMATORS,
            oob_score=True,
            random_state=self.seed,
            n_jobs=config.N_JOBS,
        )

    def _forest(self) -> RandomForestClassifier:
        return self.estimator

    def _in_sample_predictions(self, X, y):
        forest = self._forest()
        votes = forest.oob_decision_function_
        never_oob = ~np.isfinite(votes).all(axis=1) | (votes.sum(axis=1) == 0)
        predicted = forest.classes_[np.nan_to_num(votes).argmax(axis=1)]
        if never_oob.any():
            # No out-of-bag vote: fall back to the full forest's prediction
            logger.warning(f"{self.title}: {int(never_oob.sum())} row(s) never "
                           "out-of-bag; scored with in-sample predictions")
            predicted[never_oob] = self.estimator.predict(X[never_oob])
        return predicted

    def _compute_importances(self, X, y):
        return self._forest().feature_importances_


class BoostingModel(ClassifierModel):
    """Gradient-boosted trees."""

    name = "boosting"
    title = "Gradient Boosting"

    def build_estimator(self):
        return GradientBoostingClassifier(
            n_estimators=config.BOOSTING_STAGES,
            random_state=self.seed,
        )


# Candidate methods, in comparison order
MODEL_TYPES = {
    cls.name: cls for cls in (LDAModel, TreeModel, ForestModel, BoostingModel)
}


class CandidatePair:
    """
    The two fits of one method: on the shared working set, and on the
    method's own top features.
    """

    def __init__(self, full: ClassifierModel, reduced: ClassifierModel):
        self.full = full
        self.reduced = reduced

    @property
    def name(self) -> str:
        return self.full.name

    def __iter__(self):
        return iter((self.full, self.reduced))

    def __repr__(self) -> str:
        return f"CandidatePair({self.full!r}, {self.reduced!r})"


def fit_candidate_bank(table: pd.DataFrame, features: FeatureSubset,
                       label: str = None, refit_n: int = None,
                       methods=None) -> dict[str, CandidatePair]:
    """
    Fit every candidate method on `features`, then refit each on its
    own top features.

    Args:
        table: Reduced build table.
        features: Shared working set (the top ranked features).
        label: Outcome column.  Defaults to config.LABEL_COLUMN.
        refit_n: Size of each refit subset (config.REFIT_FEATURES).
        methods: Method names to fit.  Defaults to all of MODEL_TYPES.

    Returns:
        Dict of method name → CandidatePair, in comparison order.
    """
    label = label or config.LABEL_COLUMN
    methods = methods or list(MODEL_TYPES)

    bank = {}
    for name in methods:
        full = MODEL_TYPES[name](label=label).fit(table, features, label)
        reduced = full.refit_top(table, refit_n)
        bank[name] = CandidatePair(full, reduced)
    return bank
