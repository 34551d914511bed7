"""
errors.py — Pipeline Exceptions
================================

Every failure in the pipeline is fatal for the run.  Stages raise one of
the exceptions below; train.main() catches PipelineError, logs it and
reports failure.
"""


class PipelineError(RuntimeError):
    """Base class for all pipeline failures."""


class DataFetchError(PipelineError):
    """A source table could not be downloaded or parsed."""


class EmptyTableError(PipelineError):
    """A stage received a table with no rows."""


class ModelNotFittedError(PipelineError):
    """A model was used before fit() was called."""


class MissingFeatureError(PipelineError):
    """
    One or more required columns are absent from a table.

    Attributes:
        missing (list[str]): The absent column names, in request order.
    """

    def __init__(self, missing, context: str = "table"):
        self.missing = list(missing)
        super().__init__(
            f"{context} is missing required column(s): "
            f"{', '.join(self.missing)}"
        )
