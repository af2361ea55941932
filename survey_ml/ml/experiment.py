import logging
from typing import List, Optional
import pandas as pd
from config import settings
from survey_ml.ml.datasets import Split
from survey_ml.ml.evaluator import CandidateEvaluator
from survey_ml.ml.final_fitter import FinalReport, finalize
from survey_ml.ml.model_families import ModelFamily
from survey_ml.ml.model_record import CandidateResult, ModelRecord
from survey_ml.ml.selector import leaderboard, select_best, top_n
from survey_ml.ml.tune_config import HyperparameterGrid, TuneConfig
from survey_ml.utils.evaluation import Metric
from survey_ml.utils.exceptions import FitError, PipelineStateError

logger = logging.getLogger(__name__)


class ClassifierExperiment:
    """Tunes one model family on a shared split, then refits the winner and scores it on test data."""

    def __init__(self, family: ModelFamily, split: Split, metric: Metric, grid: Optional[HyperparameterGrid] = None,
                 tune_config: Optional[TuneConfig] = None, seed: int = settings.random_state,
                 n_jobs: int = settings.n_jobs, balance_final: bool = settings.balance_final_fit) -> None:
        self.family = family
        self.split = split
        self.metric = metric
        self.tune_config = tune_config if tune_config is not None else TuneConfig()
        self.grid = grid
        self.seed = seed
        self.balance_final = balance_final
        self.evaluator = CandidateEvaluator(seed=seed, n_jobs=n_jobs)
        self.results: List[CandidateResult] = []
        self.selected: Optional[CandidateResult] = None
        self.report: Optional[FinalReport] = None

    @property
    def name(self) -> str:
        return self.family.name

    def tune(self) -> CandidateResult:
        if self.grid is None:
            self.grid = self.family.default_grid(self.tune_config)
        self.results = self.evaluator.evaluate(
            self.split.train, self.split.validation, self.family, self.grid, self.metric
        )
        self.selected = select_best(self.results, self.metric)[0]
        if self.selected.failed:
            raise FitError(f"Every {self.name} candidate failed to fit or score; last error: {self.selected.error}")
        logger.info("Selected %s candidate %d with validation %s=%.4f: %s", self.name, self.selected.index,
                    self.metric.name, self.selected.metric_value, self.selected.params)
        return self.selected

    def finalize(self) -> FinalReport:
        if self.selected is None:
            raise PipelineStateError("Hyperparameters have not been tuned")
        self.report = finalize(self.split, self.selected, self.family, self.metric,
                               seed=self.seed, balance=self.balance_final)
        return self.report

    def run(self) -> ModelRecord:
        self.tune()
        self.finalize()
        return self.to_record()

    def leaderboard(self, n: Optional[int] = None) -> pd.DataFrame:
        if not self.results:
            raise PipelineStateError("No candidates have been evaluated")
        results = self.results if n is None else top_n(self.results, n, self.metric)
        return leaderboard(results, self.metric)

    def to_record(self) -> ModelRecord:
        if self.report is None:
            raise PipelineStateError("Final model has not been fitted")
        return ModelRecord(
            name=self.name,
            grid=self.grid,
            results=list(self.results),
            selected=self.selected,
            final=self.report,
            evaluation={
                "validation_score": self.selected.metric_value,
                "test_score": self.report.test_metric,
                "test_accuracy": self.report.summary["accuracy"],
                "report": self.report.summary["report"],
                "confusion_matrix": self.report.summary["confusion_matrix"],
            },
        )
