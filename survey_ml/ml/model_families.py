from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional
import numpy as np
import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.ensemble import RandomForestClassifier
from sklearn.impute import SimpleImputer
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder
from sklearn.tree import DecisionTreeClassifier
from config import ModelArchitecture, settings
from survey_ml.ml.datasets import LabeledData, TrainingSet
from survey_ml.ml.tune_config import HyperparameterGrid, TuneConfig
from survey_ml.utils.exceptions import FitError


def categorical_columns(X: pd.DataFrame) -> List[str]:
    return X.select_dtypes(include=["object", "category"]).columns.tolist()


def build_preprocessor(categorical: List[str], numeric: List[str]) -> ColumnTransformer:
    """One-hot encode categorical fields and median-impute numeric ones, fitted on training data only."""
    transformers = []
    if categorical:
        transformers.append((
            "categorical",
            Pipeline([
                ("impute", SimpleImputer(strategy="constant", fill_value="missing")),
                ("onehot", OneHotEncoder(handle_unknown="ignore")),
            ]),
            categorical,
        ))
    if numeric:
        transformers.append(("numeric", SimpleImputer(strategy="median", keep_empty_features=True), numeric))
    return ColumnTransformer(transformers)


class FittedModel:
    """A fitted preprocessing + estimator pipeline for one hyperparameter combination."""

    def __init__(self, family_name: str, pipeline: Pipeline, params: Mapping[str, Any], positive_label,
                 categorical: List[str], numeric: List[str]) -> None:
        self.family_name = family_name
        self.pipeline = pipeline
        self.params = dict(params)
        self.positive_label = positive_label
        self.categorical = categorical
        self.numeric = numeric
        classes = list(self.estimator.classes_)
        if positive_label not in classes:
            raise FitError(f"Positive label {positive_label!r} not seen during fit, classes were {classes}")
        self.positive_index = classes.index(positive_label)

    @property
    def estimator(self):
        return self.pipeline.named_steps["model"]

    def predict(self, data: LabeledData) -> pd.Series:
        """Positive-class probability for every record, indexed by record id."""
        probas = self.pipeline.predict_proba(data.X)[:, self.positive_index]
        return pd.Series(probas, index=data.index, name="score")

    def predict_label(self, data: LabeledData, threshold: float = 0.5) -> pd.Series:
        negatives = [label for label in self.estimator.classes_ if label != self.positive_label]
        scores = self.predict(data)
        return scores.map(lambda score: self.positive_label if score >= threshold else negatives[0])

    def source_fields(self) -> List[str]:
        """Original field name behind every encoded column, in encoded order."""
        fields = []
        if self.categorical:
            encoder = self.pipeline.named_steps["preprocess"].named_transformers_["categorical"].named_steps["onehot"]
            for column, categories in zip(self.categorical, encoder.categories_):
                fields.extend([column] * len(categories))
        fields.extend(self.numeric)
        return fields

    def feature_importances(self) -> Optional[pd.Series]:
        """Impurity importances summed back onto source fields, largest first."""
        importances = getattr(self.estimator, "feature_importances_", None)
        if importances is None:
            return None
        encoded = pd.Series(np.asarray(importances), index=self.source_fields())
        ranking = encoded.groupby(level=0, sort=False).sum().sort_values(ascending=False, kind="stable")
        ranking.name = "importance"
        return ranking


class ModelFamily(ABC):
    """Capability to fit one kind of classifier from a hyperparameter combination."""

    name: str = ""

    def __init__(self, architecture: Optional[ModelArchitecture] = None, positive_label=settings.positive_label) -> None:
        if architecture is None:
            architecture = settings.model_architectures.get(
                self.name, ModelArchitecture(family=self.name, random_state=settings.random_state)
            )
        self.architecture = architecture
        self.positive_label = positive_label

    @abstractmethod
    def build_estimator(self, params: Mapping[str, Any]):
        pass

    @abstractmethod
    def default_grid(self, tune_config: TuneConfig) -> HyperparameterGrid:
        pass

    def estimator_kwargs(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        kwargs = {"random_state": self.architecture.random_state}
        kwargs.update(self.architecture.params)
        kwargs.update(params)
        return kwargs

    def fit(self, data: TrainingSet, params: Mapping[str, Any]) -> FittedModel:
        X = data.X
        categorical = categorical_columns(X)
        numeric = [col for col in X.columns if col not in categorical]
        try:
            pipeline = Pipeline([
                ("preprocess", build_preprocessor(categorical, numeric)),
                ("model", self.build_estimator(params)),
            ])
            pipeline.fit(X, data.y)
        except Exception as exc:
            raise FitError(f"{self.name} failed to fit with {dict(params)}: {exc}") from exc
        return FittedModel(self.name, pipeline, params, self.positive_label, categorical, numeric)


class DecisionTreeFamily(ModelFamily):
    name = "decision_tree"

    def build_estimator(self, params):
        return DecisionTreeClassifier(**self.estimator_kwargs(params))

    def default_grid(self, tune_config: TuneConfig) -> HyperparameterGrid:
        return HyperparameterGrid.exhaustive(self.name, tune_config.param_grid())


class RandomForestFamily(ModelFamily):
    name = "random_forest"

    def estimator_kwargs(self, params):
        kwargs = super().estimator_kwargs(params)
        kwargs.setdefault("n_jobs", self.architecture.n_jobs)
        return kwargs

    def build_estimator(self, params):
        return RandomForestClassifier(**self.estimator_kwargs(params))

    def default_grid(self, tune_config: TuneConfig) -> HyperparameterGrid:
        """The forest space is too large to enumerate, so a fixed-size sample is drawn once."""
        return HyperparameterGrid.sampled_from(
            self.name,
            tune_config.param_distributions(),
            n_iter=tune_config.n_iter,
            random_state=tune_config.random_state,
        )


class ModelFamilyFactory:
    families = {
        DecisionTreeFamily.name: DecisionTreeFamily,
        RandomForestFamily.name: RandomForestFamily,
    }

    @staticmethod
    def create(name: str, positive_label=settings.positive_label) -> ModelFamily:
        if name not in ModelFamilyFactory.families:
            raise ValueError(f"Unknown model family {name!r}, expected one of {sorted(ModelFamilyFactory.families)}")
        architecture = settings.model_architectures.get(name)
        return ModelFamilyFactory.families[name](architecture, positive_label=positive_label)
