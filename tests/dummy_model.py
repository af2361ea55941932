from survey_ml.ml.model_families import DecisionTreeFamily
from survey_ml.utils.exceptions import FitError


class FlakyTreeFamily(DecisionTreeFamily):
    """Decision tree family whose fit fails for chosen max_depth values."""

    def __init__(self, failing_depths=(), **kwargs):
        super().__init__(**kwargs)
        self.failing_depths = set(failing_depths)

    def fit(self, data, params):
        if params.get("max_depth") in self.failing_depths:
            raise FitError(f"did not converge with {params}")
        return super().fit(data, params)


class BrokenTreeFamily(DecisionTreeFamily):
    """Decision tree family that never fits."""

    def fit(self, data, params):
        raise FitError("refit failed")
