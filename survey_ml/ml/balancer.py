import logging
from typing import Iterable, Optional
import numpy as np
import pandas as pd
from imblearn.under_sampling import RandomUnderSampler
from survey_ml.utils.exceptions import EmptyClassError

logger = logging.getLogger(__name__)


def validate_classes(records: pd.DataFrame, label_field: str, classes: Optional[Iterable] = None) -> pd.Series:
    """Return per-label counts, failing if any expected label has no records."""
    if label_field not in records.columns:
        raise KeyError(f"Label column {label_field!r} not found")
    counts = records[label_field].value_counts()
    expected = list(classes) if classes is not None else list(counts.index)
    empty = [label for label in expected if counts.get(label, 0) == 0]
    if empty:
        raise EmptyClassError(f"No records for label(s) {empty} in {label_field!r}")
    present = counts[counts > 0]
    if len(present) < 2:
        raise EmptyClassError(f"Downsampling needs at least two label values, found {list(present.index)}")
    return present


def downsample(records: pd.DataFrame, label_field: str, seed: int, classes: Optional[Iterable] = None) -> pd.DataFrame:
    """Undersample every label to the size of the smallest one.

    The sampler runs on row positions rather than on the features, so the
    returned frame is a copy of the selected input rows with their original
    index (record identity) intact. Rows come out grouped by label.
    """
    counts = validate_classes(records, label_field, classes)

    sampler = RandomUnderSampler(sampling_strategy="not minority", random_state=seed)
    positions = np.arange(len(records)).reshape(-1, 1)
    sampler.fit_resample(positions, records[label_field].to_numpy())
    balanced = records.iloc[sampler.sample_indices_].copy()

    logger.debug("Downsampled %s to %d records per label (seed=%d)", counts.to_dict(), counts.min(), seed)
    return balanced
