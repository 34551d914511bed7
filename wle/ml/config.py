"""
config.py — Pipeline Configuration Constants
=============================================

Centralizes the data sources, seeds, thresholds and output paths used by
the Weight Lifting Exercise classification pipeline. Tuning these values
changes which columns survive reduction, how many features each model
sees, and where the report is written.

The dataset is the Weight Lifting Exercise (WLE) recording:
- Six subjects performed barbell lifts in five ways (classe A–E)
- Accelerometers on belt, forearm, arm and dumbbell
- Each row is a time window of derived sensor readings
"""

import os

# ═══════════════════════════════════════════════════════════════════
# DATA SOURCES
# ═══════════════════════════════════════════════════════════════════

# Training table (with the classe outcome) and unlabeled test table
# (with problem_id instead).  Local file paths are accepted as well.
TRAIN_URL = os.environ.get(
    "WLE_TRAIN_URL",
    "https://d396qusza40orc.cloudfront.net/predmachlearn/pml-training.csv",
)
TEST_URL = os.environ.get(
    "WLE_TEST_URL",
    "https://d396qusza40orc.cloudfront.net/predmachlearn/pml-testing.csv",
)

# Markers the source CSVs use for missing readings.  "#DIV/0!" comes
# from spreadsheet-derived summary columns (kurtosis, skewness, ...).
NA_VALUES = ["NA", "#DIV/0!", ""]

# ═══════════════════════════════════════════════════════════════════
# TABLE LAYOUT
# ═══════════════════════════════════════════════════════════════════

LABEL_COLUMN = "classe"
ID_COLUMN = "problem_id"

# Leading housekeeping block: row number, subject, timestamps and
# window bookkeeping.  None of these describe the movement itself.
IDENTIFIER_COLUMNS = [
    "X",
    "user_name",
    "raw_timestamp_part_1",
    "raw_timestamp_part_2",
    "cvtd_timestamp",
    "new_window",
    "num_window",
]

# ═══════════════════════════════════════════════════════════════════
# PARTITIONING
# ═══════════════════════════════════════════════════════════════════

# Share of the labeled rows used to build models; the rest is held
# out for validation.
TRAIN_FRACTION = 0.7

# Seed for the stratified split.
PARTITION_SEED = 1240

# ═══════════════════════════════════════════════════════════════════
# FEATURE REDUCTION
# ═══════════════════════════════════════════════════════════════════

# Near-zero variance: a column is flagged when the most common value is
# more than NZV_FREQ_CUT times as frequent as the runner-up AND fewer
# than NZV_UNIQUE_CUT percent of rows carry distinct values.
NZV_FREQ_CUT = 95 / 5
NZV_UNIQUE_CUT = 10

# Columns missing in at least this share of rows are dropped.
MISSING_THRESHOLD = 0.9

# Fill value for the gaps that remain after column filtering.
IMPUTE_VALUE = 0

# ═══════════════════════════════════════════════════════════════════
# MODELLING
# ═══════════════════════════════════════════════════════════════════

# Seed shared by every estimator and by the cross-validation folds.
MODEL_SEED = 58612

# Number of ranked features every candidate model is fitted on, and
# the size of each model's own refit subset.
TOP_FEATURES = 14
REFIT_FEATURES = 5

# Folds used to estimate in-sample accuracy for models without an
# out-of-bag estimate (LDA, tree, boosting).
CV_FOLDS = 5

# Trees per random forest (base and stacked).
N_ESTIMATORS = 100

# Boosting stages.
BOOSTING_STAGES = 100

# Repeats for permutation importance (LDA has no native importances).
PERMUTATION_REPEATS = 5

# Parallel jobs for estimators that support it.
N_JOBS = int(os.environ.get("WLE_N_JOBS", "1"))

# Base models whose predictions feed the stacked meta-model.
STACK_BASE_MODELS = ("random_forest", "boosting")

# Fixed manual model choice for the predictor.  When unset the model
# with the highest validation accuracy is used.
SELECTED_MODEL = os.environ.get("WLE_SELECTED_MODEL") or None

# ═══════════════════════════════════════════════════════════════════
# OUTPUT PATHS
# ═══════════════════════════════════════════════════════════════════

OUTPUT_DIR = os.environ.get("WLE_OUTPUT_DIR", os.path.abspath("output"))

PREDICTIONS_PATH = os.path.join(OUTPUT_DIR, "predictions.csv")

# Serialized winning model (joblib format)
MODEL_PATH = os.path.join(OUTPUT_DIR, "selected_model.pkl")

# ═══════════════════════════════════════════════════════════════════
# LOGGING
# ═══════════════════════════════════════════════════════════════════

# Log level for the pipeline (DEBUG, INFO, WARNING, ERROR, CRITICAL)
LOG_LEVEL = os.environ.get("ML_LOG_LEVEL", "INFO")
