"""
evaluation.py — Accuracy, Confusion Matrices and Model Selection
=================================================================

Scores fitted models on the held-out validation rows and picks the
model carried forward to prediction.

    accuracy = exact matches / rows

Selection is an argmax over validation accuracy.  Ties go to the
model listed first.  A fixed manual choice can be forced through
config.SELECTED_MODEL.
"""

import logging
import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix

from . import config
from .errors import EmptyTableError, PipelineError
from .utils import require_columns

logger = logging.getLogger("ml.evaluation")


def accuracy(truth, predicted) -> float:
    """
    Share of rows where the prediction equals the true label.

    Raises:
        EmptyTableError: If there are no rows to score.
        ValueError: If the two sequences differ in length.
    """
    truth = np.asarray(truth, dtype=object)
    predicted = np.asarray(predicted, dtype=object)
    if len(truth) != len(predicted):
        raise ValueError(f"Length mismatch: {len(truth)} labels vs "
                         f"{len(predicted)} predictions")
    if len(truth) == 0:
        raise EmptyTableError("Cannot compute accuracy on zero rows")
    return float(np.mean(truth == predicted))


def confusion(truth, predicted, classes=None) -> pd.DataFrame:
    """
    Class × class count grid (rows = truth, columns = prediction).

    Args:
        truth: True labels.
        predicted: Predicted labels.
        classes: Label order.  Defaults to the sorted union of both.
    """
    truth = np.asarray(truth, dtype=object)
    predicted = np.asarray(predicted, dtype=object)
    if classes is None:
        classes = sorted(set(truth) | set(predicted))
    grid = confusion_matrix(truth, predicted, labels=list(classes))
    return pd.DataFrame(
        grid,
        index=pd.Index(classes, name="truth"),
        columns=pd.Index(classes, name="predicted"),
    )


class Evaluation:
    """
    Validation result of one model.

    Attributes:
        name (str): Model identifier.
        accuracy (float): Out-of-sample accuracy in [0, 1].
        correct (np.ndarray): Per-row boolean correctness vector.
        confusion (pd.DataFrame): Validation confusion matrix.
    """

    def __init__(self, name: str, truth, predicted, classes=None):
        self.name = name
        self.predicted = np.asarray(predicted, dtype=object)
        self.correct = np.asarray(truth, dtype=object) == self.predicted
        self.accuracy = accuracy(truth, predicted)
        self.confusion = confusion(truth, predicted, classes)

    @property
    def n_rows(self) -> int:
        return len(self.correct)

    def __repr__(self) -> str:
        return f"Evaluation({self.name!r}, accuracy={self.accuracy:.4f})"


def evaluate_model(name: str, model, table: pd.DataFrame,
                   label: str = None) -> Evaluation:
    """Score one fitted model on a labeled table."""
    label = label or config.LABEL_COLUMN
    require_columns(table, [label], context="validation table")
    truth = table[label].astype(str).to_numpy()
    result = Evaluation(name, truth, model.predict(table),
                        classes=model.classes_)
    logger.info(f"Validation accuracy {name}: {result.accuracy:.4f} "
                f"({int(result.correct.sum())}/{result.n_rows})")
    return result


def evaluate_models(models: dict, table: pd.DataFrame,
                    label: str = None) -> dict[str, Evaluation]:
    """
    Score several fitted models on the same labeled table.

    Args:
        models: Dict of name → fitted model (order is kept).
        table: Validation rows with every column the models need.
        label: Outcome column.  Defaults to config.LABEL_COLUMN.

    Returns:
        Dict of name → Evaluation, in the order of `models`.
    """
    if table.empty:
        raise EmptyTableError("Cannot evaluate on an empty table")
    return {name: evaluate_model(name, model, table, label)
            for name, model in models.items()}


def select_best(evaluations: dict, preferred: str = None) -> str:
    """
    Name of the model carried forward to prediction.

    Args:
        evaluations: Dict of name → Evaluation.
        preferred: Fixed manual choice overriding the argmax.

    Returns:
        The preferred name if given, otherwise the name with the highest
        accuracy (first one wins a tie).

    Raises:
        PipelineError: If there is nothing to choose from, or `preferred`
            is not among the evaluated models.
    """
    if not evaluations:
        raise PipelineError("No evaluated models to select from")

    if preferred:
        if preferred not in evaluations:
            raise PipelineError(
                f"Selected model '{preferred}' is not one of: "
                f"{', '.join(evaluations)}"
            )
        logger.info(f"Using manually selected model '{preferred}'")
        return preferred

    best = max(evaluations, key=lambda name: evaluations[name].accuracy)
    logger.info(f"Best validation accuracy: {best} "
                f"({evaluations[best].accuracy:.4f})")
    return best


def accuracy_table(models: dict, evaluations: dict) -> pd.DataFrame:
    """
    Model-vs-accuracy summary for the report.

    Args:
        models: Dict of name → fitted model (in-sample accuracy).
        evaluations: Dict of name → Evaluation (validation accuracy).

    Returns:
        DataFrame indexed by model name with columns
        features, in_sample_accuracy, validation_accuracy.
    """
    rows = []
    for name, model in models.items():
        ev = evaluations.get(name)
        rows.append({
            "model": name,
            "features": len(model.features),
            "in_sample_accuracy": model.in_sample_accuracy,
            "validation_accuracy": ev.accuracy if ev is not None else np.nan,
        })
    return pd.DataFrame(rows).set_index("model")
