from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import pandas as pd
from survey_ml.ml.final_fitter import FinalReport
from survey_ml.ml.tune_config import HyperparameterGrid


@dataclass(frozen=True, eq=False)
class CandidateResult:
    """One evaluated grid point: its hyperparameters, validation score and validation predictions."""
    index: int
    params: Dict[str, Any]
    metric_value: float
    predictions: Optional[pd.Series] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class ModelRecord:
    """Container for one model family's grid, candidates, selection and final evaluation."""
    name: str
    grid: Optional[HyperparameterGrid] = None
    results: List[CandidateResult] = field(default_factory=list)
    selected: Optional[CandidateResult] = None
    final: Optional[FinalReport] = None
    evaluation: Optional[Dict[str, Any]] = field(default_factory=dict)
