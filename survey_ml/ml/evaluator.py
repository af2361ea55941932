import logging
import math
from typing import Any, Dict, List
from joblib import Parallel, delayed
from config import settings
from survey_ml.ml import balancer
from survey_ml.ml.datasets import EvaluationSet, TrainingSet
from survey_ml.ml.model_families import ModelFamily
from survey_ml.ml.model_record import CandidateResult
from survey_ml.ml.tune_config import HyperparameterGrid
from survey_ml.utils.evaluation import Metric
from survey_ml.utils.exceptions import FitError

logger = logging.getLogger(__name__)


def evaluate_candidate(index: int, params: Dict[str, Any], train: TrainingSet, validation: EvaluationSet,
                       family: ModelFamily, metric: Metric, seed: int) -> CandidateResult:
    """Balance, fit and score a single grid point. Fit failures become a sentinel score."""
    balanced = train.balance(seed)
    try:
        model = family.fit(balanced, params)
    except FitError as exc:
        logger.warning("Candidate %d of %s failed, recording worst score: %s", index, family.name, exc)
        return CandidateResult(index, params, metric.worst, error=str(exc))

    scores = model.predict(validation)
    try:
        value = metric.score(validation.y, scores, family.positive_label)
    except ValueError as exc:
        # roc_auc is undefined when validation holds a single label
        logger.warning("Candidate %d of %s could not be scored: %s", index, family.name, exc)
        return CandidateResult(index, params, metric.worst, predictions=scores, error=f"undefined {metric.name}: {exc}")
    if not math.isfinite(value):
        logger.warning("Candidate %d of %s produced a non-finite %s", index, family.name, metric.name)
        return CandidateResult(index, params, metric.worst, predictions=scores, error=f"non-finite {metric.name}")
    logger.debug("Candidate %d of %s: %s=%.4f params=%s", index, family.name, metric.name, value, params)
    return CandidateResult(index, params, value, predictions=scores)


class CandidateEvaluator:
    """Fits one model per grid point on a fresh balanced training subset and scores it on validation data."""

    def __init__(self, seed: int = settings.random_state, n_jobs: int = settings.n_jobs) -> None:
        self.seed = seed
        self.n_jobs = n_jobs

    def evaluate(self, train: TrainingSet, validation: EvaluationSet, family: ModelFamily,
                 grid: HyperparameterGrid, metric: Metric) -> List[CandidateResult]:
        if not isinstance(train, TrainingSet):
            raise TypeError(f"train must be a TrainingSet, not {type(train)}")
        if not isinstance(validation, EvaluationSet):
            raise TypeError(f"validation must be an EvaluationSet, not {type(validation)}")
        balancer.validate_classes(train.frame, train.label_field, train.classes or None)

        logger.info("Evaluating %d %s candidates on %d training / %d validation records",
                    len(grid), family.name, len(train), len(validation))
        # joblib returns results in submission order, which is grid order
        results = Parallel(n_jobs=self.n_jobs)(
            delayed(evaluate_candidate)(index, params, train, validation, family, metric, self.seed + index)
            for index, params in enumerate(grid)
        )
        failed = sum(result.failed for result in results)
        if failed:
            logger.warning("%d of %d %s candidates failed to fit or score", failed, len(results), family.name)
        return list(results)
