import pytest
from unittest.mock import patch
from survey_ml.ml import balancer
from survey_ml.ml.final_fitter import finalize
from survey_ml.ml.model_record import CandidateResult
from survey_ml.utils.exceptions import FitError
from tests.dummy_model import BrokenTreeFamily


def test_finalize_scores_test_partition(survey_split, forest_family, roc_auc):
    report = finalize(survey_split, {"max_depth": 5}, forest_family, roc_auc, seed=1)
    assert report.metric_name == "roc_auc"
    assert 0.5 < report.test_metric <= 1.0
    assert report.model.params == {"max_depth": 5}
    assert 0.0 <= report.summary["accuracy"] <= 1.0
    assert report.summary["confusion_matrix"].sum() == len(survey_split.test)


def test_finalize_accepts_candidate_result(survey_split, tree_family, roc_auc):
    selected = CandidateResult(3, {"max_depth": 3, "min_samples_leaf": 5}, 0.9)
    report = finalize(survey_split, selected, tree_family, roc_auc)
    assert report.model.params == {"max_depth": 3, "min_samples_leaf": 5}
    assert report.model.estimator.get_depth() <= 3


def test_refit_uses_train_and_validation_only(survey_split, tree_family, roc_auc):
    with patch("survey_ml.ml.balancer.downsample", wraps=balancer.downsample) as spy:
        finalize(survey_split, {"max_depth": 3}, tree_family, roc_auc, balance=True)
    spy.assert_called_once()
    refit_index = set(spy.call_args.args[0].index)
    assert refit_index == set(survey_split.train.index) | set(survey_split.validation.index)
    assert not refit_index & set(survey_split.test.index)


def test_unbalanced_refit_skips_balancer(survey_split, tree_family, roc_auc):
    with patch("survey_ml.ml.balancer.downsample", wraps=balancer.downsample) as spy:
        finalize(survey_split, {"max_depth": 3}, tree_family, roc_auc, balance=False)
    spy.assert_not_called()


def test_importances_are_ranked_by_source_field(survey_split, forest_family, roc_auc):
    report = finalize(survey_split, {"max_depth": 6}, forest_family, roc_auc)
    importances = report.importances
    assert set(importances.index) == {"age", "commute_minutes", "industry", "region"}
    assert importances.sum() == pytest.approx(1.0)
    assert list(importances) == sorted(importances, reverse=True)
    assert importances.index[0] in {"commute_minutes", "industry"}


def test_refit_failure_propagates(survey_split, roc_auc):
    family = BrokenTreeFamily(positive_label="Remote")
    with pytest.raises(FitError):
        finalize(survey_split, {"max_depth": 3}, family, roc_auc)
