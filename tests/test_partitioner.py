import pandas as pd
import pytest
from survey_ml.ml.datasets import EvaluationSet, TrainingSet
from survey_ml.ml.partitioner import SplitFractions, split, stratification_deviation
from survey_ml.utils.exceptions import InsufficientDataError, InvalidFractionError
from tests.helpers import make_survey_frame


def test_split_sizes_64_16_20(survey_frame):
    result = split(survey_frame, "remote", fractions=SplitFractions(train=0.64, validation=0.16, test=0.20), seed=42)
    assert result.sizes() == {"train": 640, "validation": 160, "test": 200}


def test_split_is_deterministic(survey_frame):
    first = split(survey_frame, "remote", seed=11)
    second = split(survey_frame, "remote", seed=11)
    for name in ("train", "validation", "test"):
        assert list(first.subsets()[name].index) == list(second.subsets()[name].index)


def test_different_seed_changes_split(survey_frame):
    first = split(survey_frame, "remote", seed=1)
    second = split(survey_frame, "remote", seed=2)
    assert set(first.test.index) != set(second.test.index)


def test_subsets_are_disjoint_and_complete(survey_frame):
    result = split(survey_frame, "remote", seed=5)
    train, validation, test = (set(subset.index) for subset in result.subsets().values())
    assert not train & validation
    assert not train & test
    assert not validation & test
    assert train | validation | test == set(survey_frame.index)


def test_stratification_within_tolerance(survey_frame):
    result = split(survey_frame, "remote", seed=3)
    deviations = stratification_deviation(survey_frame["remote"], result)
    assert set(deviations) == {"train", "validation", "test"}
    assert all(deviation <= 0.02 for deviation in deviations.values())


def test_subset_types_enforce_balancing_boundary(survey_frame):
    result = split(survey_frame, "remote", seed=3)
    assert isinstance(result.train, TrainingSet)
    assert isinstance(result.validation, EvaluationSet)
    assert isinstance(result.test, EvaluationSet)
    assert not hasattr(result.validation, "balance")
    assert not hasattr(result.test, "balance")
    assert result.train.classes == ("Not remote", "Remote")


def test_refit_set_excludes_test(survey_frame):
    result = split(survey_frame, "remote", seed=3)
    refit = result.refit_set()
    assert isinstance(refit, TrainingSet)
    assert len(refit) == 800
    assert not set(refit.index) & set(result.test.index)


def test_default_fractions_leave_twenty_percent_for_test():
    fractions = SplitFractions(train=0.64, validation=0.16)
    assert fractions.test == pytest.approx(0.2)
    assert fractions.validation_share == pytest.approx(0.2)


def test_fractions_below_one_are_normalised(survey_frame):
    result = split(survey_frame, "remote", fractions=SplitFractions(train=0.4, validation=0.1, test=0.1), seed=0)
    assert sum(result.sizes().values()) == len(survey_frame)
    assert result.sizes()["test"] == 167


@pytest.mark.parametrize("fractions", [
    dict(train=0.7, validation=0.2, test=0.2),
    dict(train=0.9, validation=0.1),
    dict(train=-0.1, validation=0.2, test=0.2),
    dict(train=0.5, validation=0.0, test=0.2),
])
def test_invalid_fractions(fractions):
    with pytest.raises(InvalidFractionError):
        SplitFractions(**fractions)


def test_tiny_class_raises_insufficient_data():
    frame = make_survey_frame(n_records=50, n_remote=48)
    with pytest.raises(InsufficientDataError):
        split(frame, "remote", seed=0)


def test_too_small_to_stratify_raises_insufficient_data():
    # the validation carve of a four-record pool is one record, too few for two labels
    frame = make_survey_frame(n_records=6, n_remote=3)
    with pytest.raises(InsufficientDataError):
        split(frame, "remote", seed=0)


def test_class_missing_from_a_subset_raises_insufficient_data():
    # three minority records pass the size check, but rounding gives validation none of them
    frame = make_survey_frame(n_records=1000, n_remote=997)
    with pytest.raises(InsufficientDataError, match="validation"):
        split(frame, "remote", seed=0)


def test_every_class_reaches_every_subset(small_survey_frame):
    result = split(small_survey_frame, "remote", seed=0)
    for subset in result.subsets().values():
        assert set(subset.y) == {"Remote", "Not remote"}


def test_empty_dataset_raises_insufficient_data():
    frame = make_survey_frame().iloc[0:0]
    with pytest.raises(InsufficientDataError):
        split(frame, "remote")


def test_duplicate_index_rejected(survey_frame):
    duplicated = pd.concat([survey_frame, survey_frame.iloc[:5]])
    with pytest.raises(ValueError):
        split(duplicated, "remote")


def test_original_index_is_preserved(survey_frame):
    shifted = survey_frame.set_index(survey_frame.index + 10_000)
    result = split(shifted, "remote", seed=4)
    assert result.train.index.min() >= 10_000
    assert set(result.train.frame.columns) == set(shifted.columns)
