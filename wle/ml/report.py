"""
report.py — Markdown Report and Plots
======================================

Renders one run into a static Markdown document:
- data reduction summary
- exploratory feature importance (bar chart)
- per-feature boxplots of the working set by class
- model-vs-accuracy table (in-sample and validation)
- validation confusion matrices of the contenders
- predicted label distribution for the test rows

Plots are written as PNG files next to the report and linked by
relative path.
"""

import os
import logging
import matplotlib

matplotlib.use("Agg")  # headless
import matplotlib.pyplot as plt
import pandas as pd

from . import config
from .evaluation import accuracy_table

logger = logging.getLogger("ml.report")


def plot_importances(ranking: pd.Series, path: str, top: int = None) -> str:
    """Horizontal bar chart of the top ranked features."""
    top = top or config.TOP_FEATURES
    data = ranking.head(top)[::-1]

    fig, ax = plt.subplots(figsize=(8, max(3, 0.35 * len(data))))
    ax.barh(data.index, data.values, color="#3b75af")
    ax.set_xlabel("Importance")
    ax.set_title(f"Top {len(data)} features — exploratory decision tree")
    fig.tight_layout()
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return path


def plot_boxplots(table: pd.DataFrame, features, label: str,
                  path: str) -> str:
    """One boxplot per feature, values grouped by class."""
    features = list(features)
    n_cols = 4
    n_rows = max(1, -(-len(features) // n_cols))
    fig, axes = plt.subplots(n_rows, n_cols,
                             figsize=(4 * n_cols, 3 * n_rows), squeeze=False)
    classes = sorted(table[label].astype(str).unique())

    for ax, feature in zip(axes.flat, features):
        groups = [table.loc[table[label].astype(str) == c, feature]
                  for c in classes]
        ax.boxplot(groups, showfliers=False)
        ax.set_xticks(range(1, len(classes) + 1))
        ax.set_xticklabels(classes)
        ax.set_title(feature, fontsize=9)
    for ax in list(axes.flat)[len(features):]:
        ax.axis("off")

    fig.suptitle(f"Working-set features by {label}")
    fig.tight_layout()
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return path


def _table(df: pd.DataFrame, index: bool = True) -> str:
    return df.to_markdown(index=index, floatfmt=".4f")


def build_markdown(result, plots: dict) -> str:
    """Assemble the report text from a PipelineResult."""
    reducer = result.reducer
    counts = reducer.summary()
    part = result.partition

    lines = [
        "# Weight Lifting Exercise — Model Selection Report",
        "",
        "## Data",
        "",
        f"- Training rows: {len(part.build) + len(part.validation)} "
        f"({len(part.build)} build / {len(part.validation)} validation, "
        f"stratified, seed {config.PARTITION_SEED})",
        f"- Identifier columns dropped: {counts['identifiers']}",
        f"- Near-zero-variance columns dropped: {counts['near_zero_variance']}",
        f"- Columns missing in ≥{config.MISSING_THRESHOLD:.0%} of rows "
        f"dropped: {counts['mostly_missing']}",
        f"- Predictors kept: {counts['kept']}",
        "",
        "## Feature ranking",
        "",
        f"An exploratory decision tree ranks the {counts['kept']} predictors; "
        f"the top {len(result.working_set)} form the working set.",
        "",
        _table(result.ranking.head(len(result.working_set)).to_frame()),
        "",
        f"![Feature importance]({plots['importance']})",
        "",
        f"![Boxplots]({plots['boxplots']})",
        "",
        "## Candidate models",
        "",
        "Each method is fitted on the working set, then refit on its own "
        f"top {config.REFIT_FEATURES} features.  In-sample accuracy is "
        f"{config.CV_FOLDS}-fold cross-validated (out-of-bag for forests).",
        "",
        _table(accuracy_table(result.candidate_models(),
                              result.candidate_evaluations)),
        "",
        "## Stacking and selection",
        "",
        f"The stacked model is a random forest over the predicted labels of "
        f"{' and '.join(config.STACK_BASE_MODELS)} "
        f"({config.REFIT_FEATURES}-feature fits).",
        "",
        _table(accuracy_table(result.contenders, result.evaluations)),
        "",
        f"Selected model: **{result.selected}** "
        f"(validation accuracy {result.evaluations[result.selected].accuracy:.4f}).",
        "",
    ]

    for name, ev in result.evaluations.items():
        lines += [f"### Validation confusion matrix — {name}", "",
                  _table(ev.confusion), ""]

    if result.prediction is not None:
        lines += [
            "## Test predictions",
            "",
            _table(result.prediction.distribution().to_frame()),
            "",
            _table(result.prediction.to_frame(), index=False),
            "",
        ]

    return "\n".join(lines)


def write_report(result, output_dir: str = None) -> str:
    """
    Write report.md and its plots for a PipelineResult.

    Args:
        result: Completed PipelineResult.
        output_dir: Target directory.  Defaults to config.OUTPUT_DIR.

    Returns:
        Path of the written report.
    """
    output_dir = output_dir or config.OUTPUT_DIR
    plots_dir = os.path.join(output_dir, "plots")
    os.makedirs(plots_dir, exist_ok=True)

    plot_importances(result.ranking,
                     os.path.join(plots_dir, "feature_importance.png"))
    plot_boxplots(result.build, result.working_set, result.reducer.label,
                  os.path.join(plots_dir, "feature_boxplots.png"))
    plots = {
        "importance": "plots/feature_importance.png",
        "boxplots": "plots/feature_boxplots.png",
    }

    path = os.path.join(output_dir, "report.md")
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(build_markdown(result, plots))
    logger.info(f"Report written to {path}")
    return path
