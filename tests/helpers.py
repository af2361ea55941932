import numpy as np
import pandas as pd

INDUSTRIES = ["Tech", "Finance", "Retail", "Health"]
REGIONS = ["North", "South", "East", "West"]


def make_survey_frame(n_records: int = 1000, n_remote: int = 800, seed: int = 0,
                      label_field: str = "remote") -> pd.DataFrame:
    """Synthetic survey where remote workers commute further and skew towards tech."""
    rng = np.random.default_rng(seed)
    labels = np.array(["Remote"] * n_remote + ["Not remote"] * (n_records - n_remote), dtype=object)
    rng.shuffle(labels)
    remote = labels == "Remote"

    commute = np.where(remote, rng.normal(55, 15, n_records), rng.normal(25, 10, n_records)).round(1)
    commute[rng.random(n_records) < 0.05] = np.nan
    industry = np.where(
        remote,
        rng.choice(INDUSTRIES, n_records, p=[0.55, 0.25, 0.1, 0.1]),
        rng.choice(INDUSTRIES, n_records, p=[0.1, 0.2, 0.35, 0.35]),
    ).astype(object)
    region = rng.choice(REGIONS, n_records).astype(object)
    region[rng.random(n_records) < 0.05] = np.nan

    return pd.DataFrame({
        "age": rng.integers(20, 65, n_records),
        "commute_minutes": commute,
        "industry": industry,
        "region": region,
        label_field: labels,
    })


def label_counts(frame: pd.DataFrame, label_field: str = "remote") -> dict:
    return frame[label_field].value_counts().to_dict()
