# ddxtree/__init__.py
"""
ddxtree: interpretable gain-ratio decision trees for categorical triage data.

Exports:
    - DecisionTree, Leaf, Branch
    - MultiTargetPredictor, Prediction
    - CategoricalTreeClassifier
    - TreeParams, TargetField
"""
from .config import TreeParams, load_params, save_params
from .estimator import CategoricalTreeClassifier
from .exceptions import ConfigError, DataError
from .predictor import MultiTargetPredictor, Prediction
from .records import ATTRIBUTES, TARGETS, Record, TargetField, make_record, read_records, write_predictions
from .tree import Branch, DecisionTree, Leaf, entropy, gain_ratio

__all__ = [
    "ATTRIBUTES", "TARGETS", "Branch", "CategoricalTreeClassifier", "ConfigError", "DataError",
    "DecisionTree", "Leaf", "MultiTargetPredictor", "Prediction", "Record", "TargetField",
    "TreeParams", "entropy", "gain_ratio", "load_params", "make_record", "read_records",
    "save_params", "write_predictions",
]
__version__ = "0.1.0"
