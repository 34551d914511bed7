"""
predict.py — Test-Set Prediction
=================================

Applies the selected model to the unlabeled test table and summarises
the predicted labels.  A test table lacking any column the model reads
is a fatal error; nothing is imputed for absent columns.
"""

import logging
import pandas as pd

from . import config
from .errors import EmptyTableError
from .utils import require_columns

logger = logging.getLogger("ml.predict")


class Prediction:
    """
    Predicted labels for the test rows.

    Attributes:
        model_name (str): Identifier of the model that produced them.
        labels (pd.Series): Predicted classe, indexed by row identifier.
        classes (list[str]): Outcome domain of the model.
    """

    def __init__(self, model_name: str, labels: pd.Series, classes):
        self.model_name = model_name
        self.labels = labels
        self.classes = list(classes)

    def distribution(self) -> pd.Series:
        """Count of predicted rows per class (zero for unpredicted classes)."""
        return (self.labels.value_counts()
                .reindex(self.classes, fill_value=0)
                .rename("count"))

    def to_frame(self) -> pd.DataFrame:
        """Two-column table: row identifier, predicted classe."""
        return self.labels.rename(config.LABEL_COLUMN).reset_index()

    def __len__(self) -> int:
        return len(self.labels)


def predict_test(model, table: pd.DataFrame,
                 id_column: str = None) -> Prediction:
    """
    Predict the class of every test row.

    Args:
        model: Fitted ClassifierModel (or StackedModel).
        table: Test table, already passed through the feature reducer.
        id_column: Row identifier column.  Defaults to config.ID_COLUMN;
            the table index is used when the column is absent.

    Returns:
        Prediction with one label per row.

    Raises:
        EmptyTableError: If the test table has no rows.
        MissingFeatureError: If a column the model reads is absent.
    """
    id_column = id_column or config.ID_COLUMN
    if table.empty:
        raise EmptyTableError("Test table contains no rows")
    require_columns(table, model.required_columns, context="test table")

    if id_column in table.columns:
        index = pd.Index(table[id_column].to_numpy(), name=id_column)
    else:
        index = table.index.rename(id_column)

    labels = pd.Series(model.predict(table), index=index, name="prediction")
    result = Prediction(model.name, labels, model.classes_)
    logger.info(f"Predicted {len(result)} test rows with {model.name}: "
                f"{result.distribution().to_dict()}")
    return result
