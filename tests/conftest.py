"""
Shared fixtures: synthetic tables laid out like the WLE training and
test CSVs (identifier block, numeric sensor columns, classe / problem_id).
"""

import numpy as np
import pandas as pd
import pytest

from wle.ml import config
from wle.ml.pipeline import run_pipeline

CLASSES = ["A", "B", "C", "D", "E"]
SUBJECTS = ["adelmo", "carlitos", "charles", "eurico", "jeremy", "pedro"]


def make_sensor_frame(n_rows: int, n_features: int, codes: np.ndarray,
                      rng: np.random.Generator) -> pd.DataFrame:
    """Numeric predictors; the first four carry class signal."""
    data = {}
    for i in range(n_features):
        noise = rng.normal(0.0, 1.0, n_rows)
        if i < 4:
            data[f"sensor_{i:02d}"] = codes * (i + 1.5) + noise
        else:
            data[f"sensor_{i:02d}"] = noise
    return pd.DataFrame(data)


def make_training_table(n_rows: int = 100, n_features: int = 20,
                        seed: int = 0, identifiers: bool = True) -> pd.DataFrame:
    """Balanced five-class table with no missing values."""
    rng = np.random.default_rng(seed)
    labels = np.tile(CLASSES, n_rows // len(CLASSES))
    codes = np.array([CLASSES.index(c) for c in labels], dtype=float)

    df = make_sensor_frame(n_rows, n_features, codes, rng)
    if identifiers:
        ident = pd.DataFrame({
            "X": np.arange(1, n_rows + 1),
            "user_name": rng.choice(SUBJECTS, n_rows),
            "raw_timestamp_part_1": 1322489729 + np.arange(n_rows),
            "raw_timestamp_part_2": rng.integers(0, 999999, n_rows),
            "cvtd_timestamp": "28/11/2011 14:15",
            "new_window": "no",
            "num_window": rng.integers(1, 800, n_rows),
        })
        df = pd.concat([ident, df], axis=1)
    df[config.LABEL_COLUMN] = labels
    return df


def make_test_table(n_rows: int = 20, n_features: int = 20,
                    seed: int = 1) -> pd.DataFrame:
    """Unlabeled table with problem_id in place of classe."""
    rng = np.random.default_rng(seed)
    codes = np.tile(np.arange(len(CLASSES), dtype=float),
                    n_rows // len(CLASSES))
    df = make_sensor_frame(n_rows, n_features, codes, rng)
    df.insert(0, "user_name", rng.choice(SUBJECTS, n_rows))
    df.insert(0, "X", np.arange(1, n_rows + 1))
    df[config.ID_COLUMN] = np.arange(1, n_rows + 1)
    return df


@pytest.fixture
def training_table():
    return make_training_table()


@pytest.fixture
def test_table():
    return make_test_table()


@pytest.fixture
def numeric_table():
    """Predictors and outcome only, 100 rows."""
    return make_training_table(identifiers=False)


@pytest.fixture(scope="session")
def pipeline_result():
    """One full run shared by the slower tests."""
    return run_pipeline(make_training_table(), make_test_table())
