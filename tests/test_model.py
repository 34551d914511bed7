import numpy as np
import pytest

from conftest import make_training_table
from wle.ml import config
from wle.ml.errors import MissingFeatureError, ModelNotFittedError
from wle.ml.features import FeatureSubset
from wle.ml.model import (
    BoostingModel,
    ClassifierModel,
    ForestModel,
    LDAModel,
    MODEL_TYPES,
    TreeModel,
    fit_candidate_bank,
)
from wle.ml.ranking import rank_features, select_top


@pytest.fixture(scope="module")
def working_table():
    return make_training_table(identifiers=False)


@pytest.fixture(scope="module")
def working_set(working_table):
    return select_top(rank_features(working_table), 14)


@pytest.fixture(scope="module")
def bank(working_table, working_set):
    return fit_candidate_bank(working_table, working_set)


def test_bank_has_every_method_in_order(bank):
    assert list(bank) == ["lda", "tree", "random_forest", "boosting"]
    assert isinstance(bank["lda"].full, LDAModel)
    assert isinstance(bank["tree"].full, TreeModel)
    assert isinstance(bank["random_forest"].full, ForestModel)
    assert isinstance(bank["boosting"].full, BoostingModel)


@pytest.mark.parametrize("name", list(MODEL_TYPES))
def test_refit_uses_strict_subset_of_own_features(bank, working_set, name):
    pair = bank[name]
    assert pair.full.features == working_set
    assert len(pair.reduced.features) == 5
    assert pair.reduced.features.issubset(pair.full.features)
    assert list(pair.reduced.features) == list(pair.full.importances().index[:5])


@pytest.mark.parametrize("name", list(MODEL_TYPES))
def test_refit_is_a_new_model(bank, name):
    pair = bank[name]
    assert pair.reduced is not pair.full
    assert pair.reduced.estimator is not pair.full.estimator
    assert len(pair.full.features) == 14
    assert type(pair.reduced) is type(pair.full)


@pytest.mark.parametrize("name", list(MODEL_TYPES))
def test_in_sample_accuracy_in_unit_interval(bank, working_table, name):
    for model in bank[name]:
        assert 0.0 <= model.in_sample_accuracy <= 1.0
        assert model.in_sample_confusion.to_numpy().sum() == len(working_table)
        assert model.n_train_rows == len(working_table)


def test_in_sample_accuracy_matches_confusion_diagonal(bank):
    model = bank["random_forest"].full
    grid = model.in_sample_confusion.to_numpy()
    assert model.in_sample_accuracy == pytest.approx(np.trace(grid) / grid.sum())


def test_importances_are_descending(bank):
    for pair in bank.values():
        scores = pair.full.importances()
        assert scores.is_monotonic_decreasing
        assert set(scores.index) == set(pair.full.features)


def test_predict_returns_known_classes(bank, working_table):
    predicted = bank["boosting"].reduced.predict(working_table)
    assert len(predicted) == len(working_table)
    assert set(predicted) <= set(working_table[config.LABEL_COLUMN])


def test_predict_before_fit_raises(working_table):
    with pytest.raises(ModelNotFittedError):
        TreeModel().predict(working_table)


def test_fit_missing_feature_raises(working_table):
    with pytest.raises(MissingFeatureError):
        TreeModel().fit(working_table, FeatureSubset(["sensor_00", "nope"]))


def test_save_and_load_round_trip(bank, working_table, tmp_path):
    model = bank["random_forest"].reduced
    path = tmp_path / "model.pkl"
    model.save_model(str(path))
    loaded = ClassifierModel.load_model(str(path))
    assert loaded.features == model.features
    np.testing.assert_array_equal(loaded.predict(working_table),
                                  model.predict(working_table))


def test_rows_never_out_of_bag_use_forest_prediction(working_table, working_set,
                                                     monkeypatch):
    monkeypatch.setattr(config, "N_ESTIMATORS", 2)
    model = ForestModel().fit(working_table, working_set)
    votes = model.estimator.oob_decision_function_
    never_oob = ~np.isfinite(votes).all(axis=1) | (votes.sum(axis=1) == 0)
    assert never_oob.any()

    X = working_set.select(working_table)
    y = working_table[config.LABEL_COLUMN].astype(str)
    predicted = model._in_sample_predictions(X, y)
    fallback = model.estimator.predict(X[never_oob])
    np.testing.assert_array_equal(predicted[never_oob], fallback)
