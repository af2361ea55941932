from dataclasses import dataclass
from typing import Dict, Tuple
import pandas as pd
from survey_ml.ml import balancer
from survey_ml.utils.exceptions import DataLeakageError


@dataclass(frozen=True, eq=False)
class LabeledData:
    """A read-only view of labeled survey records."""
    frame: pd.DataFrame
    label_field: str
    classes: Tuple = ()

    @property
    def X(self) -> pd.DataFrame:
        return self.frame.drop(columns=[self.label_field])

    @property
    def y(self) -> pd.Series:
        return self.frame[self.label_field]

    @property
    def index(self) -> pd.Index:
        return self.frame.index

    def __len__(self) -> int:
        return len(self.frame)


@dataclass(frozen=True, eq=False)
class TrainingSet(LabeledData):
    def balance(self, seed: int) -> "TrainingSet":
        """Return a new, downsampled training set; the original is left untouched."""
        classes = self.classes or None
        balanced = balancer.downsample(self.frame, self.label_field, seed, classes=classes)
        return TrainingSet(balanced, self.label_field, self.classes)


@dataclass(frozen=True, eq=False)
class EvaluationSet(LabeledData):
    pass


@dataclass(frozen=True, eq=False)
class Split:
    train: TrainingSet
    validation: EvaluationSet
    test: EvaluationSet
    seed: int

    def subsets(self) -> Dict[str, LabeledData]:
        return {"train": self.train, "validation": self.validation, "test": self.test}

    def sizes(self) -> Dict[str, int]:
        return {name: len(subset) for name, subset in self.subsets().items()}

    def check_leakage(self) -> None:
        subsets = self.subsets()
        names = list(subsets)
        for i, first in enumerate(names):
            for second in names[i + 1:]:
                overlap = subsets[first].index.intersection(subsets[second].index)
                if len(overlap) > 0:
                    raise DataLeakageError(
                        f"Data leakage detected between {first} and {second} data: {list(overlap[:10])}"
                    )

    def refit_set(self) -> TrainingSet:
        """Train and validation records combined for the final fit. Test records never join."""
        combined = pd.concat([self.train.frame, self.validation.frame])
        return TrainingSet(combined, self.train.label_field, self.train.classes)
