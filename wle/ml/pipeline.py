"""
pipeline.py — End-to-End Model Selection Pipeline
==================================================

Runs every stage on in-memory tables, strictly forward:

    partition → reduce → rank → candidate bank → stack → evaluate → predict

Each stage returns new tables/models; nothing already produced is
modified by a later stage.  Network access and file output live in
train.py so the whole selection can be exercised on synthetic tables.
"""

import logging
import pandas as pd

from . import config
from .evaluation import evaluate_models, select_best
from .model import fit_candidate_bank
from .partition import partition
from .predict import predict_test
from .preprocessing import FeatureReducer
from .ranking import rank_features, select_top
from .stacking import fit_stacked_model

logger = logging.getLogger("ml.pipeline")


class PipelineResult:
    """
    Everything the report needs from one run.

    Attributes:
        partition (Partition): Build / validation split of the training table.
        reducer (FeatureReducer): Fitted column filter.
        build (pd.DataFrame): Reduced build rows.
        validation (pd.DataFrame): Reduced validation rows.
        ranking (pd.Series): Exploratory tree importances, descending.
        working_set (FeatureSubset): Top ranked features shared by candidates.
        bank (dict[str, CandidatePair]): Full and refit fits per method.
        stacked (StackedModel): Meta-model over the stack base models.
        contenders (dict): Models competing for selection.
        evaluations (dict[str, Evaluation]): Validation scores of contenders.
        candidate_evaluations (dict[str, Evaluation]): Validation scores of
            every candidate fit, keyed by candidate_key().
        selected (str): Name of the model used for prediction.
        prediction (Prediction | None): Test predictions, when a test
            table was supplied.
    """

    def __init__(self):
        self.partition = None
        self.reducer = None
        self.build = None
        self.validation = None
        self.ranking = None
        self.working_set = None
        self.bank = {}
        self.stacked = None
        self.contenders = {}
        self.evaluations = {}
        self.candidate_evaluations = {}
        self.selected = None
        self.prediction = None

    @property
    def selected_model(self):
        return self.contenders[self.selected]

    def candidate_models(self) -> dict:
        """Every fitted candidate, keyed by candidate_key()."""
        models = {}
        for pair in self.bank.values():
            for model in pair:
                models[candidate_key(model)] = model
        return models


def candidate_key(model) -> str:
    """Report name of a candidate fit, e.g. "boosting_14"."""
    return f"{model.name}_{len(model.features)}"


def run_pipeline(train_df: pd.DataFrame, test_df: pd.DataFrame = None,
                 label: str = None, preferred: str = None) -> PipelineResult:
    """
    Select a classifier on `train_df` and, optionally, predict `test_df`.

    Args:
        train_df: Labeled observation table.
        test_df: Unlabeled table with a row identifier, or None.
        label: Outcome column.  Defaults to config.LABEL_COLUMN.
        preferred: Fixed model choice.  Defaults to config.SELECTED_MODEL;
            when both are unset the best validation accuracy wins.

    Returns:
        PipelineResult holding every stage's output.
    """
    label = label or config.LABEL_COLUMN
    preferred = preferred or config.SELECTED_MODEL
    result = PipelineResult()

    # ── Step 1: Build / validation split ─────────────────────────
    result.partition = partition(train_df, label=label)

    # ── Step 2: Feature reduction (learned on build rows only) ───
    result.reducer = FeatureReducer(label=label).fit(result.partition.build)
    result.build = result.reducer.transform(result.partition.build)

    # ── Step 3: Exploratory ranking ──────────────────────────────
    result.ranking = rank_features(result.build, label=label)
    result.working_set = select_top(result.ranking)
    logger.info(f"Working set ({len(result.working_set)}): "
                f"{', '.join(result.working_set)}")

    # ── Step 4: Candidate bank ───────────────────────────────────
    result.bank = fit_candidate_bank(result.build, result.working_set,
                                     label=label)

    # ── Step 5: Stacking ─────────────────────────────────────────
    bases = [result.bank[name].reduced for name in config.STACK_BASE_MODELS]
    result.stacked = fit_stacked_model(bases, result.build, label=label)

    # ── Step 6: Validation ───────────────────────────────────────
    result.validation = result.reducer.transform(
        result.partition.validation, columns=result.working_set
    )
    result.contenders = {base.name: base for base in bases}
    result.contenders[result.stacked.name] = result.stacked
    result.evaluations = evaluate_models(result.contenders,
                                         result.validation, label=label)
    result.candidate_evaluations = evaluate_models(
        result.candidate_models(), result.validation, label=label
    )
    result.selected = select_best(result.evaluations, preferred=preferred)

    # ── Step 7: Test prediction ──────────────────────────────────
    if test_df is not None:
        winner = result.selected_model
        test = result.reducer.transform(test_df,
                                        columns=winner.required_columns)
        result.prediction = predict_test(winner, test)

    return result
