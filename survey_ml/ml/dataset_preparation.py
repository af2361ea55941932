import logging
from typing import List, Optional
import numpy as np
import pandas as pd
from config import settings
from survey_ml.utils.exceptions import InsufficientDataError
from survey_ml.utils.file_utils import unpack_features

logger = logging.getLogger(__name__)


class DatasetPreparation:
    def __init__(self, label_field: str = settings.label_field, positive_label: str = settings.positive_label,
                 features: Optional[List[str]] = None, feature_menu_path: Optional[str] = settings.feature_menu_path) -> None:
        self.label_field = label_field
        self.positive_label = positive_label
        if features is None and feature_menu_path is not None:
            features = unpack_features(feature_menu_path)
        self.features = features

    def load(self, path: str) -> pd.DataFrame:
        return self.prepare_df(pd.read_csv(path))

    def prune_features(self, df: pd.DataFrame) -> pd.DataFrame:
        if self.features is None:
            return df.copy()
        missing = [col for col in self.features if col not in df.columns]
        if missing:
            raise ValueError(f"Feature menu lists columns not in the dataset: {missing}")
        return df[self.features + [self.label_field]].copy()

    def clean_up(self, df: pd.DataFrame) -> pd.DataFrame:
        if df is None or df.empty:
            raise InsufficientDataError("Survey DataFrame is empty")
        if self.label_field not in df.columns:
            raise ValueError(f"Label column {self.label_field!r} not found in {list(df.columns)}")

        before_rows = len(df)
        df = df.dropna(subset=[self.label_field]).reset_index(drop=True)
        if len(df) < before_rows:
            logger.warning("Dropped %d rows with a missing %r label.", before_rows - len(df), self.label_field)

        # OneHotEncoder and SimpleImputer expect object columns with NaN as the missing marker
        for col in df.columns:
            if col != self.label_field and not pd.api.types.is_numeric_dtype(df[col]):
                df[col] = df[col].astype(object).where(df[col].notna(), np.nan)

        labels = df[self.label_field].unique()
        if len(labels) != 2:
            raise ValueError(f"Expected a binary label, found {len(labels)} values: {list(labels)}")
        if self.positive_label not in labels:
            raise ValueError(f"Positive label {self.positive_label!r} not among {list(labels)}")
        return df

    def prepare_df(self, df: pd.DataFrame) -> pd.DataFrame:
        prepared = self.clean_up(self.prune_features(df))
        logger.info("Prepared %d records with %d features; label distribution %s",
                    len(prepared), prepared.shape[1] - 1, self.label_distribution(prepared).round(3).to_dict())
        return prepared

    def label_distribution(self, df: pd.DataFrame) -> pd.Series:
        return df[self.label_field].value_counts(normalize=True)
