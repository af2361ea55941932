from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parent

class ModelArchitecture(BaseModel):
    family: str
    random_state: int
    n_jobs: Optional[int] = None
    params: Dict[str, Any] = {}

class Settings(BaseSettings):
    model_config = SettingsConfigDict(protected_namespaces=())

    dataset_path: str = "data/survey.csv"
    feature_menu_path: Optional[str] = None
    models_directory: str = "models"
    label_field: str = "remote"
    positive_label: str = "Remote"
    train_fraction: float = 0.64
    validation_fraction: float = 0.16
    stratification_tolerance: float = 0.02
    metric: str = "roc_auc"
    model_families: List[str] = ["decision_tree", "random_forest"]
    model_architectures: Dict[str, ModelArchitecture] = {
        "decision_tree": ModelArchitecture(
            family="decision_tree",
            random_state=42,
        ),
        "random_forest": ModelArchitecture(
            family="random_forest",
            random_state=42,
            n_jobs=2,
        ),
    }
    random_search_iterations: int = 25
    random_state: int = 42
    n_jobs: int = 1
    balance_final_fit: bool = True
    log_level: str = "INFO"
    log_file: Optional[str] = None

settings = Settings()
