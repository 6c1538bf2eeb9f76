"""
ddxtree.estimator
=================

scikit-learn style wrapper around :class:`ddxtree.tree.DecisionTree`, so
the categorical tree can be used with ``fit``/``predict``/``score`` on plain
arrays and data frames.
"""
from __future__ import annotations

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, ClassifierMixin

from .config import TreeParams
from .records import make_record
from .tree import DecisionTree

# Record key the class label is stored under; never a user feature name
_TARGET = "__target__"


class CategoricalTreeClassifier(ClassifierMixin, BaseEstimator):
    """
    Gain-ratio decision tree classifier for categorical features.

    Every feature is treated as categorical: values are compared as strings
    and letter case is ignored at prediction time.  ``None``, ``NaN`` and
    ``pd.NA`` mark missing values.

    Parameters
    ----------
    max_depth : int, default=10
        Maximum depth of the tree.
    min_samples_leaf : int, default=1
        Minimum number of samples a node must hold to be split further.
    min_gain_ratio : float, default=0.0
        Minimum gain ratio required to accept a split.
    feature_names : list[str] or None, default=None
        Names of the input columns.  Taken from the columns of a DataFrame
        when omitted, otherwise ``f0``, ``f1``, ...

    Attributes
    ----------
    tree_ : DecisionTree
        The fitted tree.
    classes_ : ndarray
        Distinct non-missing labels seen in ``fit``.
    feature_names_ : list[str]
        Feature names used as split attributes.
    """

    def __init__(self, *, max_depth: int = 10, min_samples_leaf: int = 1,
                 min_gain_ratio: float = 0.0, feature_names: list[str] | None = None):
        self.max_depth = max_depth
        self.min_samples_leaf = min_samples_leaf
        self.min_gain_ratio = min_gain_ratio
        self.feature_names = feature_names

    def _resolve_feature_names(self, X, n_features: int) -> list[str]:
        if self.feature_names is not None:
            names = [str(n) for n in self.feature_names]
        elif isinstance(X, pd.DataFrame):
            names = [str(c) for c in X.columns]
        else:
            names = [f"f{i}" for i in range(n_features)]
        if len(names) != n_features:
            raise ValueError("feature_names length must match X.shape[1]")
        if _TARGET in names:
            raise ValueError(f"{_TARGET!r} is reserved and cannot be a feature name")
        return names

    def _to_records(self, X, names: list[str], y=None) -> list:
        rows = np.asarray(X, dtype=object)
        if rows.ndim != 2:
            raise ValueError("X must be 2-dimensional")
        fields = names + [_TARGET]
        records = []
        for i, row in enumerate(rows):
            values = dict(zip(names, row))
            if y is not None:
                values[_TARGET] = y[i]
            records.append(make_record(values, fields=fields))
        return records

    def fit(self, X, y):
        """
        Build the tree from ``X`` and ``y``.

        Parameters
        ----------
        X : array-like or DataFrame of shape (n_samples, n_features)
            Categorical training data.
        y : array-like of shape (n_samples,)
            Class labels.  Missing labels are ignored.

        Returns
        -------
        self
        """
        y = np.asarray(y, dtype=object)
        n_features = np.asarray(X, dtype=object).shape[1]
        if len(y) != len(X):
            raise ValueError("X and y must have the same number of samples")
        self.feature_names_ = self._resolve_feature_names(X, n_features)
        self.n_features_in_ = n_features
        params = TreeParams(max_depth=int(self.max_depth),
                            min_samples_leaf=int(self.min_samples_leaf),
                            min_gain_ratio=float(self.min_gain_ratio))
        records = self._to_records(X, self.feature_names_, y)
        known = [v for v, r in zip(y, records) if r[_TARGET] is not None]
        self.classes_ = np.unique(np.array(known)) if known else np.array([])
        # Labels are trained as strings; map predictions back to the caller's labels
        self._labels = {str(v).strip(): v for v in known}
        self.tree_ = DecisionTree.build(records, _TARGET, params, attributes=self.feature_names_)
        return self

    def _check_fitted(self):
        if getattr(self, "tree_", None) is None:
            raise ValueError("Estimator not fitted. Call fit(...) first.")

    def predict(self, X):
        """
        Predict class labels for the provided samples.

        Returns
        -------
        ndarray of shape (n_samples,)
            Predicted labels.  Rows that reach a node where training saw no
            label get the string ``"unknown"``; the array is then of object
            dtype so the other labels keep their type.
        """
        self._check_fitted()
        records = self._to_records(X, self.feature_names_)
        raw = self.tree_.predict_many(records)
        preds = [self._labels.get(p, p) for p in raw]
        if all(p in self._labels for p in raw):
            return np.array(preds)
        # "unknown" leaves would turn numeric labels into strings
        out = np.empty(len(preds), dtype=object)
        out[:] = preds
        return out

    def export_rules(self) -> list[str]:
        self._check_fitted()
        return self.tree_.export_rules()

    def print_tree(self):
        self._check_fitted()
        self.tree_.print_tree()

    def export_graphviz(self, filename: str | None = None, *, format: str = "dot") -> str:
        self._check_fitted()
        return self.tree_.export_graphviz(filename, format=format)
