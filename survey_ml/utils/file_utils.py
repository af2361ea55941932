import yaml
from typing import List

def unpack_features(feature_menu_path: str) -> List[str]:
    """Read the feature columns listed as `- Feature: <name>` blocks in a YAML menu."""
    with open(feature_menu_path, "r") as f:
        data = yaml.safe_load(f) or []

    features = []
    for block in data:
        if isinstance(block, dict) and "Feature" in block:
            features.append(str(block["Feature"]))
    return features
