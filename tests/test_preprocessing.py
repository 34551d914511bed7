import numpy as np
import pandas as pd
import pytest

from wle.ml import config
from wle.ml.errors import MissingFeatureError, ModelNotFittedError
from wle.ml.preprocessing import (
    FeatureReducer,
    missing_ratio,
    near_zero_variance,
)


def with_gaps(n_rows: int, n_missing: int) -> pd.Series:
    """Distinct positive values with the first `n_missing` rows missing."""
    values = np.arange(1, n_rows + 1, dtype=float)
    values[:n_missing] = np.nan
    return pd.Series(values)


@pytest.fixture
def messy_table(training_table):
    df = training_table.copy()
    df["missing_95"] = with_gaps(100, 95)
    df["missing_90"] = with_gaps(100, 90)
    df["missing_85"] = with_gaps(100, 85)
    df["constant"] = 3.0
    df["mostly_zero"] = [1.0] + [0.0] * 99
    df["kurtosis_text"] = ["#DIV/0!"] * 98 + ["1.5", "2.5"]
    return df


def test_mostly_missing_column_dropped_and_sparse_column_kept(messy_table):
    reducer = FeatureReducer().fit(messy_table)
    assert "missing_95" in reducer.dropped_missing
    assert "missing_85" in reducer.kept_columns


def test_exactly_ninety_percent_missing_is_dropped(messy_table):
    reducer = FeatureReducer().fit(messy_table)
    assert "missing_90" in reducer.dropped_missing
    assert "missing_90" not in reducer.kept_columns


def test_identifier_block_dropped(messy_table):
    reducer = FeatureReducer().fit(messy_table)
    assert set(reducer.dropped_identifiers) == set(config.IDENTIFIER_COLUMNS)
    for col in config.IDENTIFIER_COLUMNS:
        assert col not in reducer.kept_columns


def test_near_zero_variance_columns_dropped(messy_table):
    reducer = FeatureReducer().fit(messy_table)
    assert "constant" in reducer.dropped_near_zero
    assert "mostly_zero" in reducer.dropped_near_zero
    assert "sensor_00" in reducer.kept_columns


def test_near_zero_variance_metrics():
    df = pd.DataFrame({
        "flat": [1.0] * 100,
        "skewed": [0.0] * 98 + [1.0, 1.0],
        "varied": np.arange(100, dtype=float),
    })
    metrics = near_zero_variance(df)
    assert metrics.loc["flat", "zero_var"]
    assert metrics.loc["flat", "nzv"]
    assert metrics.loc["skewed", "freq_ratio"] == pytest.approx(49.0)
    assert metrics.loc["skewed", "percent_unique"] == pytest.approx(2.0)
    assert metrics.loc["skewed", "nzv"]
    assert not metrics.loc["varied", "nzv"]


def test_outcome_never_dropped(messy_table):
    reduced = FeatureReducer().fit_transform(messy_table)
    assert config.LABEL_COLUMN in reduced.columns
    assert config.LABEL_COLUMN not in FeatureReducer().fit(messy_table).kept_columns


def test_transform_is_dense_and_numeric(messy_table):
    reducer = FeatureReducer().fit(messy_table)
    reduced = reducer.transform(messy_table)
    predictors = reduced[reducer.kept_columns]
    assert not predictors.isna().any().any()
    assert all(np.issubdtype(t, np.number) for t in predictors.dtypes)
    assert (reduced["missing_85"].iloc[:85] == 0).all()


def test_surviving_columns_pass_the_same_filters(messy_table):
    reducer = FeatureReducer().fit(messy_table)
    kept = reducer.kept_columns
    assert (missing_ratio(messy_table[kept]) < config.MISSING_THRESHOLD).all()

    reduced = reducer.transform(messy_table)
    assert not near_zero_variance(reduced[kept])["nzv"].any()


def test_transform_does_not_modify_input(messy_table):
    before = messy_table.copy()
    FeatureReducer().fit_transform(messy_table)
    pd.testing.assert_frame_equal(messy_table, before)


def test_transform_missing_kept_column_raises(messy_table):
    reducer = FeatureReducer().fit(messy_table)
    with pytest.raises(MissingFeatureError) as exc:
        reducer.transform(messy_table.drop(columns=["sensor_03"]))
    assert exc.value.missing == ["sensor_03"]


def test_transform_restricted_to_requested_columns(messy_table):
    reducer = FeatureReducer().fit(messy_table)
    narrow = messy_table[["sensor_01", "sensor_02", config.LABEL_COLUMN]]
    out = reducer.transform(narrow, columns=["sensor_02", "sensor_01"])
    assert list(out.columns) == ["sensor_02", "sensor_01", config.LABEL_COLUMN]


def test_transform_rejects_dropped_columns(messy_table):
    reducer = FeatureReducer().fit(messy_table)
    with pytest.raises(ValueError):
        reducer.transform(messy_table, columns=["constant"])


def test_transform_before_fit_raises(messy_table):
    with pytest.raises(ModelNotFittedError):
        FeatureReducer().transform(messy_table)


def test_column_degenerate_after_zero_fill_is_dropped(training_table):
    df = training_table.copy()
    df["sparse_zeros"] = [np.nan] * 85 + [0.0] * 14 + [1.0]
    reducer = FeatureReducer().fit(df)
    assert "sparse_zeros" in reducer.dropped_near_zero
    assert "sparse_zeros" not in reducer.kept_columns

    reduced = reducer.transform(df)
    assert not near_zero_variance(reduced[reducer.kept_columns])["nzv"].any()
