from typing import List, Optional, Sequence
import pandas as pd
from survey_ml.ml.model_record import CandidateResult
from survey_ml.utils.evaluation import Metric, get_metric


def rank(results: Sequence[CandidateResult], metric: Optional[Metric] = None) -> List[CandidateResult]:
    """Best first. Ties keep grid order, so the first-seen candidate wins."""
    metric = metric if metric is not None else get_metric("roc_auc")
    return sorted(results, key=lambda result: (-metric.oriented(result.metric_value), result.index))


def select_best(results: Sequence[CandidateResult], metric: Optional[Metric] = None, k: int = 1) -> List[CandidateResult]:
    if len(results) == 0:
        raise ValueError("No candidate results to select from")
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")
    return rank(results, metric)[:k]


def top_n(results: Sequence[CandidateResult], n: int, metric: Optional[Metric] = None) -> List[CandidateResult]:
    return select_best(results, metric, k=n)


def leaderboard(results: Sequence[CandidateResult], metric: Optional[Metric] = None) -> pd.DataFrame:
    metric = metric if metric is not None else get_metric("roc_auc")
    rows = []
    for position, result in enumerate(rank(results, metric), start=1):
        row = {"rank": position, "grid_index": result.index}
        row.update(result.params)
        row[metric.name] = result.metric_value
        row["failed"] = result.failed
        row["error"] = result.error
        rows.append(row)
    return pd.DataFrame(rows)
