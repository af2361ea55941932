import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
import pandas as pd
from config import settings
from survey_ml.ml.datasets import Split
from survey_ml.ml.model_families import FittedModel, ModelFamily
from survey_ml.utils.evaluation import Metric, classification_summary

logger = logging.getLogger(__name__)


@dataclass
class FinalReport:
    model: FittedModel
    metric_name: str
    test_metric: float
    importances: Optional[pd.Series] = None
    summary: Dict[str, Any] = field(default_factory=dict)


def finalize(split: Split, selected, family: ModelFamily, metric: Metric,
             seed: Optional[int] = None, balance: bool = settings.balance_final_fit) -> FinalReport:
    """Refit the selected hyperparameters on train + validation and score the test partition once.

    `selected` is either a CandidateResult or a plain mapping of hyperparameters.
    A FitError here is not caught: there is no fallback configuration.
    """
    params: Mapping[str, Any] = getattr(selected, "params", selected)
    seed = settings.random_state if seed is None else seed

    refit_set = split.refit_set()
    if balance:
        refit_set = refit_set.balance(seed)
    model = family.fit(refit_set, params)

    scores = model.predict(split.test)
    test_metric = metric.score(split.test.y, scores, family.positive_label)
    summary = classification_summary(split.test.y, scores, family.positive_label)
    importances = model.feature_importances()

    logger.info("Final %s fit on %d records: test %s=%.4f, accuracy=%.4f",
                family.name, len(refit_set), metric.name, test_metric, summary["accuracy"])
    return FinalReport(model, metric.name, test_metric, importances, summary)
