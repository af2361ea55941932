import logging
from dataclasses import dataclass
from typing import Dict, Optional
import pandas as pd
from sklearn.model_selection import train_test_split
from config import settings
from survey_ml.ml.datasets import EvaluationSet, Split, TrainingSet
from survey_ml.utils.exceptions import InsufficientDataError, InvalidFractionError

logger = logging.getLogger(__name__)

MIN_RECORDS_PER_CLASS = 3  # one per subset


@dataclass(frozen=True)
class SplitFractions:
    """Shares of the whole dataset given to each subset.

    `test` defaults to whatever train and validation leave over. Fractions that
    sum to less than one are normalised, so every record still lands in a subset.
    """
    train: float = settings.train_fraction
    validation: float = settings.validation_fraction
    test: Optional[float] = None

    def __post_init__(self):
        if self.test is None:
            object.__setattr__(self, "test", round(1.0 - self.train - self.validation, 10))
        for name in ("train", "validation", "test"):
            value = getattr(self, name)
            if not 0.0 < value < 1.0:
                raise InvalidFractionError(f"{name} fraction must be between 0 and 1, got {value}")
        if self.total > 1.0 + 1e-9:
            raise InvalidFractionError(
                f"Split fractions must sum to at most 1, got {self.train} + {self.validation} + {self.test} = {self.total}"
            )

    @property
    def total(self) -> float:
        return self.train + self.validation + self.test

    @property
    def test_share(self) -> float:
        return round(self.test / self.total, 10)

    @property
    def validation_share(self) -> float:
        """Share of the train pool (everything but test) held out for validation."""
        return round(self.validation / (self.train + self.validation), 10)


def _verify_dataset(dataset: pd.DataFrame, label_field: str) -> None:
    if label_field not in dataset.columns:
        raise ValueError(f"Label column {label_field!r} not found in {list(dataset.columns)}")
    if not dataset.index.is_unique:
        raise ValueError("Dataset index must uniquely identify records")
    if dataset.empty:
        raise InsufficientDataError("Cannot split an empty dataset")
    if dataset[label_field].isna().any():
        raise ValueError(f"Label column {label_field!r} contains missing values")


def split(dataset: pd.DataFrame, label_field: str, fractions: Optional[SplitFractions] = None,
          stratify: bool = True, seed: Optional[int] = None, tolerance: Optional[float] = None) -> Split:
    """Carve test off the dataset, then validation off the remaining pool.

    Both stages stratify by label independently. Record identity is the
    DataFrame index, which is carried through unchanged.
    """
    fractions = fractions if fractions is not None else SplitFractions()
    seed = settings.random_state if seed is None else seed
    tolerance = settings.stratification_tolerance if tolerance is None else tolerance
    _verify_dataset(dataset, label_field)

    labels = dataset[label_field]
    counts = labels.value_counts()
    if stratify:
        too_small = counts[counts < MIN_RECORDS_PER_CLASS]
        if not too_small.empty:
            raise InsufficientDataError(
                f"Label classes {too_small.to_dict()} have fewer than {MIN_RECORDS_PER_CLASS} records"
            )

    try:
        pool, test = train_test_split(
            dataset,
            test_size=fractions.test_share,
            random_state=seed,
            stratify=labels if stratify else None,
        )
        train, validation = train_test_split(
            pool,
            test_size=fractions.validation_share,
            random_state=seed,
            stratify=pool[label_field] if stratify else None,
        )
    except ValueError as exc:
        raise InsufficientDataError(f"Cannot split {len(dataset)} records: {exc}") from exc

    classes = tuple(sorted(counts.index, key=str))
    result = Split(
        train=TrainingSet(train, label_field, classes),
        validation=EvaluationSet(validation, label_field, classes),
        test=EvaluationSet(test, label_field, classes),
        seed=seed,
    )
    result.check_leakage()
    if stratify:
        _verify_class_coverage(result, classes)
    logger.info("Split %d records into %s (seed=%d)", len(dataset), result.sizes(), seed)

    if stratify:
        for name, deviation in stratification_deviation(labels, result).items():
            if deviation > tolerance:
                logger.warning("Label proportions in %s drift %.3f from the full dataset (tolerance %.3f)",
                               name, deviation, tolerance)
    return result


def _verify_class_coverage(split_result: Split, classes) -> None:
    """Raise when any label seen in the dataset has no records in one of the subsets."""
    for name, subset in split_result.subsets().items():
        present = set(subset.y.unique())
        missing = [label for label in classes if label not in present]
        if missing:
            raise InsufficientDataError(
                f"Label classes {missing} have no records in the {name} subset; "
                f"counts there are {subset.y.value_counts().to_dict()}"
            )


def stratification_deviation(labels: pd.Series, split_result: Split) -> Dict[str, float]:
    """Largest absolute gap between a label's share in a subset and in the full dataset."""
    overall = labels.value_counts(normalize=True)
    deviations = {}
    for name, subset in split_result.subsets().items():
        shares = subset.y.value_counts(normalize=True).reindex(overall.index, fill_value=0.0)
        deviations[name] = float((shares - overall).abs().max())
    return deviations
