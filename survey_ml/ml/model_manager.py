import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence
import joblib
import pandas as pd
from config import PROJECT_ROOT, settings
from survey_ml.ml.dataset_preparation import DatasetPreparation
from survey_ml.ml.datasets import Split
from survey_ml.ml.experiment import ClassifierExperiment
from survey_ml.ml.model_families import ModelFamilyFactory
from survey_ml.ml.model_record import ModelRecord
from survey_ml.ml.partitioner import SplitFractions, split
from survey_ml.ml.selector import leaderboard
from survey_ml.ml.tune_config import HyperparameterGrid, TuneConfig
from survey_ml.utils.evaluation import get_metric
from survey_ml.utils.exceptions import PipelineStateError
from survey_ml.utils.log_utils import setup_logging

logger = logging.getLogger(__name__)


class Manager:
    """Runs every configured model family on one shared split and compares them on the test partition."""

    def __init__(self, families: Sequence[str] = tuple(settings.model_families), manager_name="model_comparison",
                 output_directory=None, loading_directory=None, metric_name: str = settings.metric,
                 tune_config: Optional[TuneConfig] = None, grids: Optional[Dict[str, HyperparameterGrid]] = None,
                 seed: int = settings.random_state, n_jobs: int = settings.n_jobs):
        self.data_prep = DatasetPreparation()
        self.families = [ModelFamilyFactory.create(name, positive_label=self.data_prep.positive_label) for name in families]
        self.metric = get_metric(metric_name)
        self.tune_config = tune_config if tune_config is not None else TuneConfig()
        self.grids = grids if grids is not None else {}
        self.random_state = seed
        self.n_jobs = n_jobs
        self.records: List[ModelRecord] = []
        self.output_directory = output_directory if output_directory is not None else settings.models_directory
        self.loading_directory = loading_directory
        self.manager_name = manager_name
        self.model_directory = None
        self.dataset: Optional[pd.DataFrame] = None
        self.split: Optional[Split] = None

    def load_dataset(self, path=None) -> pd.DataFrame:
        if path is None:
            path = Path(PROJECT_ROOT) / settings.dataset_path
        self.dataset = self.data_prep.load(str(path))
        return self.dataset

    def set_dataset(self, df: pd.DataFrame) -> pd.DataFrame:
        self.dataset = self.data_prep.prepare_df(df)
        return self.dataset

    def prepare_split(self, fractions: Optional[SplitFractions] = None) -> Split:
        if self.dataset is None:
            raise PipelineStateError("Dataset has not been loaded")
        self.split = split(self.dataset, self.data_prep.label_field, fractions=fractions, seed=self.random_state)
        return self.split

    def train_family(self, family) -> ModelRecord:
        experiment = ClassifierExperiment(
            family,
            self.split,
            self.metric,
            grid=self.grids.get(family.name),
            tune_config=self.tune_config,
            seed=self.random_state,
            n_jobs=self.n_jobs,
        )
        record = experiment.run()
        self.records.append(record)
        return record

    def train_all(self):
        if self.split is None:
            raise PipelineStateError("Dataset has not been split")
        for family in self.families:
            self.train_family(family)
        logger.info("Training complete for %s", [record.name for record in self.records])

    def compare(self) -> pd.DataFrame:
        """One row per family, best test score first."""
        if not self.records:
            raise PipelineStateError("No model families have been trained")
        rows = []
        for record in self.records:
            rows.append({
                "family": record.name,
                "candidates": len(record.results),
                "failed_candidates": sum(result.failed for result in record.results),
                f"validation_{self.metric.name}": record.selected.metric_value,
                f"test_{self.metric.name}": record.final.test_metric,
                "params": record.selected.params,
            })
        table = pd.DataFrame(rows)
        return table.sort_values(f"test_{self.metric.name}", ascending=not self.metric.greater_is_better,
                                 kind="stable").reset_index(drop=True)

    def create_model_directory(self) -> Path:
        """Creates <output>/<date>/<manager_name>N, leaving N empty for the day's first run."""
        date_directory = Path(self.output_directory) / datetime.today().strftime("%Y-%m-%d")
        date_directory.mkdir(parents=True, exist_ok=True)
        previous_runs = sum(1 for _ in date_directory.iterdir())
        suffix = str(previous_runs) if previous_runs else ""
        model_directory = date_directory / f"{self.manager_name}{suffix}"
        model_directory.mkdir()
        self.model_directory = str(model_directory)
        logger.info("Writing artifacts to %s", model_directory)
        return model_directory

    def save_evaluation(self, record: ModelRecord):
        evaluation = record.evaluation
        with open(f"{self.model_directory}/z_evaluation.txt", 'a') as file:
            file.write(f"\n=== {record.name} ===\n")
            file.write(f"selected params: {record.selected.params}\n")
            file.write(f"validation {self.metric.name}: {evaluation['validation_score']}\n")
            file.write(f"test {self.metric.name}: {evaluation['test_score']}\n")
            file.write(f"test accuracy: {evaluation['test_accuracy']}\n")
            file.write(f"report:\n{evaluation['report']}\n")
            file.write(f"confusion_matrix:\n{evaluation['confusion_matrix']}")
            file.write("\n")

    def save_classifier(self, record: ModelRecord):
        if self.model_directory is None:
            self.create_model_directory()
        name = record.name
        joblib.dump(record.final.model, f"{self.model_directory}/{name}.pkl")
        logger.info("saved %s to %s/%s.pkl", name, self.model_directory, name)
        self.save_evaluation(record)
        leaderboard(record.results, self.metric).to_csv(f"{self.model_directory}/leaderboard_{name}.csv", index=False)
        if record.final.importances is not None:
            record.final.importances.to_csv(f"{self.model_directory}/importances_{name}.csv")

    def save_all(self):
        if os.path.isfile(self.output_directory):
            raise ValueError("output_directory is a file")
        if not self.records:
            raise PipelineStateError("No model families have been trained")
        self.create_model_directory()
        for record in self.records:
            self.save_classifier(record)
        self.compare().to_csv(f"{self.model_directory}/comparison.csv", index=False)

    def load_model(self):
        if self.loading_directory is None:
            raise ValueError("Loading directory has not been specified")
        if not os.path.exists(self.loading_directory):
            raise FileNotFoundError("Model has to be saved before it is loaded")
        return {file[:-len(".pkl")]: joblib.load(f"{self.loading_directory}/{file}")
                for file in sorted(os.listdir(self.loading_directory)) if file.endswith(".pkl")}


def main():
    setup_logging(settings.log_level, settings.log_file)
    manager = Manager()
    manager.load_dataset()
    manager.prepare_split()
    manager.train_all()
    print(manager.compare().to_string(index=False))
    manager.save_all()


if __name__ == "__main__":
    main()
