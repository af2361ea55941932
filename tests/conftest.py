import pytest
from survey_ml.ml.model_families import DecisionTreeFamily, RandomForestFamily
from survey_ml.ml.partitioner import SplitFractions, split
from survey_ml.ml.tune_config import HyperparameterGrid
from survey_ml.utils.evaluation import get_metric
from config import ModelArchitecture
from tests.helpers import make_survey_frame


@pytest.fixture
def survey_frame():
    """1000 records, 800 Remote and 200 Not remote."""
    return make_survey_frame()


@pytest.fixture
def small_survey_frame():
    return make_survey_frame(n_records=300, n_remote=220, seed=3)


@pytest.fixture
def survey_split(small_survey_frame):
    return split(small_survey_frame, "remote", fractions=SplitFractions(0.64, 0.16, 0.20), seed=7)


@pytest.fixture
def roc_auc():
    return get_metric("roc_auc")


@pytest.fixture
def tree_family():
    return DecisionTreeFamily(ModelArchitecture(family="decision_tree", random_state=0), positive_label="Remote")


@pytest.fixture
def forest_family():
    architecture = ModelArchitecture(family="random_forest", random_state=0, n_jobs=1, params={"n_estimators": 15})
    return RandomForestFamily(architecture, positive_label="Remote")


@pytest.fixture
def tree_grid():
    return HyperparameterGrid.exhaustive("decision_tree", {"max_depth": [1, 3, 5], "min_samples_leaf": [1, 10]})


@pytest.fixture
def forest_grid():
    return HyperparameterGrid.from_combinations("random_forest", [
        {"max_depth": 3, "max_features": "sqrt"},
        {"max_depth": None, "max_features": None},
    ])
