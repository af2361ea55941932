from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence, Tuple
import numpy as np
from scipy.stats import randint
from sklearn.model_selection import ParameterGrid, ParameterSampler
from config import settings


def _plain(value: Any) -> Any:
    return value.item() if isinstance(value, np.generic) else value


@dataclass(frozen=True)
class HyperparameterGrid:
    """Ordered, read-only hyperparameter combinations for one model family."""
    family: str
    combinations: Tuple[Dict[str, Any], ...]
    sampled: bool = False

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return (dict(params) for params in self.combinations)

    def __len__(self) -> int:
        return len(self.combinations)

    def __getitem__(self, index: int) -> Dict[str, Any]:
        return dict(self.combinations[index])

    @classmethod
    def from_combinations(cls, family: str, combinations: Sequence[Mapping[str, Any]]) -> "HyperparameterGrid":
        if len(combinations) == 0:
            raise ValueError(f"Hyperparameter grid for {family} is empty")
        return cls(family, tuple(dict(params) for params in combinations))

    @classmethod
    def exhaustive(cls, family: str, param_grid: Mapping[str, Sequence]) -> "HyperparameterGrid":
        """Full Cartesian product of the listed values."""
        return cls.from_combinations(family, list(ParameterGrid(dict(param_grid))))

    @classmethod
    def sampled_from(cls, family: str, param_distributions: Mapping[str, Any], n_iter: int, random_state: int) -> "HyperparameterGrid":
        """N combinations drawn once, with a fixed seed, from lists or scipy distributions."""
        sampler = ParameterSampler(dict(param_distributions), n_iter=n_iter, random_state=random_state)
        combinations = [{key: _plain(value) for key, value in params.items()} for params in sampler]
        grid = cls.from_combinations(family, combinations)
        return cls(grid.family, grid.combinations, sampled=True)


@dataclass
class TuneConfig:
    """Search spaces for the decision tree grid and the random forest random search."""
    n_iter: int = settings.random_search_iterations
    estimator_range: tuple[int, int] = (100, 500)
    max_depth_range: tuple[int, int, int] = (5, 31, 5)
    min_samples_split_range: tuple[int, int] = (2, 20)
    min_samples_leaf_range: tuple[int, int] = (1, 10)
    max_features: tuple[Optional[str], ...] = ("sqrt", "log2", None)
    tree_max_depth: tuple[Optional[int], ...] = (2, 4, 6, 8, 10, 15, None)
    tree_min_samples_split: tuple[int, ...] = (2, 10, 20)
    tree_min_samples_leaf: tuple[int, ...] = (1, 5, 10)
    criterion: tuple[str, ...] = ("gini", "entropy")
    random_state: int = settings.random_state

    def param_distributions(self) -> dict:
        """Return the random forest parameter distributions for ParameterSampler."""
        return {
            "n_estimators": randint(*self.estimator_range),
            "max_depth": [None] + list(range(*self.max_depth_range)),
            "min_samples_split": randint(*self.min_samples_split_range),
            "min_samples_leaf": randint(*self.min_samples_leaf_range),
            "max_features": list(self.max_features),
        }

    def param_grid(self) -> dict:
        """Return the exhaustive decision tree grid."""
        return {
            "max_depth": list(self.tree_max_depth),
            "min_samples_split": list(self.tree_min_samples_split),
            "min_samples_leaf": list(self.tree_min_samples_leaf),
            "criterion": list(self.criterion),
        }
