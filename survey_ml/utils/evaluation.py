from dataclasses import dataclass
from typing import Any, Callable, Dict
import numpy as np
from sklearn.metrics import (
    accuracy_score,
    average_precision_score,
    balanced_accuracy_score,
    brier_score_loss,
    classification_report,
    confusion_matrix,
    f1_score,
    roc_auc_score,
)

DEFAULT_THRESHOLD = 0.5


@dataclass(frozen=True)
class Metric:
    """Scores positive-class probabilities against true labels."""
    name: str
    func: Callable
    greater_is_better: bool = True
    needs_threshold: bool = False

    @property
    def worst(self) -> float:
        """Sentinel value that ranks below every real score."""
        return float("-inf") if self.greater_is_better else float("inf")

    def oriented(self, value: float) -> float:
        return value if self.greater_is_better else -value

    def score(self, y_true, scores, positive_label) -> float:
        y_binary = binarize_labels(y_true, positive_label)
        values = np.asarray(scores, dtype=float)
        if self.needs_threshold:
            values = (values >= DEFAULT_THRESHOLD).astype(int)
        return float(self.func(y_binary, values))


METRICS: Dict[str, Metric] = {
    "roc_auc": Metric("roc_auc", roc_auc_score),
    "average_precision": Metric("average_precision", average_precision_score),
    "balanced_accuracy": Metric("balanced_accuracy", balanced_accuracy_score, needs_threshold=True),
    "f1": Metric("f1", f1_score, needs_threshold=True),
    "brier": Metric("brier", brier_score_loss, greater_is_better=False),
}


def get_metric(name: str) -> Metric:
    if name not in METRICS:
        raise ValueError(f"Unknown metric {name!r}, expected one of {sorted(METRICS)}")
    return METRICS[name]


def binarize_labels(y_true, positive_label) -> np.ndarray:
    return (np.asarray(y_true) == positive_label).astype(int)


def classification_summary(y_true, scores, positive_label, threshold: float = DEFAULT_THRESHOLD) -> Dict[str, Any]:
    """Accuracy, text report and confusion matrix at a fixed decision threshold."""
    y_binary = binarize_labels(y_true, positive_label)
    y_pred = (np.asarray(scores, dtype=float) >= threshold).astype(int)
    target_names = [f"not {positive_label}", str(positive_label)]
    return {
        "accuracy": accuracy_score(y_binary, y_pred),
        "report": classification_report(y_binary, y_pred, labels=[0, 1], target_names=target_names, zero_division=0),
        "confusion_matrix": confusion_matrix(y_binary, y_pred, labels=[0, 1]),
    }

