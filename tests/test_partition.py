import numpy as np
import pandas as pd
import pytest

from wle.ml import config
from wle.ml.errors import EmptyTableError
from wle.ml.partition import partition, split_indices, split_positions


def test_split_is_deterministic_for_same_seed(training_table):
    first = split_indices(training_table, seed=1240)
    second = split_indices(training_table, seed=1240)
    np.testing.assert_array_equal(first[0], second[0])
    np.testing.assert_array_equal(first[1], second[1])


def test_split_changes_with_seed(training_table):
    build_a, _ = split_indices(training_table, seed=1240)
    build_b, _ = split_indices(training_table, seed=7)
    assert not np.array_equal(build_a, build_b)


def test_subsets_are_disjoint_and_cover_table(training_table):
    build, validation = split_indices(training_table)
    assert set(build).isdisjoint(validation)
    assert set(build) | set(validation) == set(training_table.index)


def test_seventy_thirty_row_counts(training_table):
    result = partition(training_table, train_fraction=0.7, seed=1240)
    assert len(result.build) == 70
    assert len(result.validation) == 30


def test_split_is_stratified(training_table):
    result = partition(training_table)
    counts = result.build[config.LABEL_COLUMN].value_counts()
    assert (counts == 14).all()
    assert (result.validation[config.LABEL_COLUMN].value_counts() == 6).all()


def test_partition_leaves_source_untouched(training_table):
    before = training_table.copy()
    result = partition(training_table)
    result.build["sensor_00"] = 0.0
    pd.testing.assert_frame_equal(training_table, before)


def test_empty_table_is_fatal():
    empty = pd.DataFrame({config.LABEL_COLUMN: pd.Series(dtype=str)})
    with pytest.raises(EmptyTableError):
        split_indices(empty)


def test_positions_are_disjoint_and_cover_table(training_table):
    build, validation = split_positions(training_table)
    assert set(build).isdisjoint(validation)
    assert sorted(set(build) | set(validation)) == list(range(len(training_table)))


def test_duplicate_index_labels_still_split_every_row_once(training_table):
    stacked = pd.concat([training_table.iloc[:50],
                         training_table.iloc[50:].reset_index(drop=True)])
    assert not stacked.index.is_unique

    result = partition(stacked)
    assert len(result.build) + len(result.validation) == len(stacked)
    assert len(result.build) == 70
    rows = pd.concat([result.build, result.validation])
    assert sorted(rows["X"]) == sorted(stacked["X"])
