"""
File containing custom errors related strictly to the model comparison pipeline.
"""

class InvalidFractionError(ValueError):
    """Raised when the requested split fractions are out of range or sum to more than one."""
    pass

class InsufficientDataError(ValueError):
    """Raised when a dataset or label class is too small to be stratified into every subset."""
    pass

class EmptyClassError(ValueError):
    """Raised when a label value that should be balanced has no records."""
    pass

class FitError(RuntimeError):
    """Raised when a model family fails to fit a hyperparameter combination."""
    pass

class DataLeakageError(Exception):
    """Raised when data leakage is detected in the dataset or pipeline."""
    pass

class PipelineStateError(Exception):
    """Raised when the pipeline is a state which has not initialized the attributes necessary for running a specific method"""
    pass
