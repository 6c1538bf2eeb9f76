"""
ddxtree.predictor
=================

One decision tree per target field, behind a single facade.

The five trees share nothing but the (read-only) training records, so they
can be grown in parallel; ``n_jobs`` hands the builds to joblib's thread
backend.  The result is the same as a serial build.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Iterable, Optional, Sequence

from joblib import Parallel, delayed
from sklearn.metrics import accuracy_score

from .config import TreeParams
from .records import ATTRIBUTES, Record, TargetField
from .tree import DecisionTree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Prediction:
    """Predicted value of every target field for one record."""
    clinician: Optional[str] = None
    gpt4_0: Optional[str] = None
    llama: Optional[str] = None
    gemini: Optional[str] = None
    ddx_snomed: Optional[str] = None

    def __getitem__(self, target) -> Optional[str]:
        return getattr(self, TargetField(target).value)

    def as_dict(self) -> dict[str, Optional[str]]:
        return asdict(self)


class MultiTargetPredictor:
    """
    Five independent :class:`DecisionTree` models, one per :class:`TargetField`.

    Parameters
    ----------
    trees : dict
        Mapping from every :class:`TargetField` to its built tree.

    Notes
    -----
    Use :meth:`build` rather than the constructor to train a predictor.
    """

    def __init__(self, trees: dict):
        self.trees_ = {TargetField(t): tree for t, tree in trees.items()}
        missing = [t.value for t in TargetField if t not in self.trees_]
        if missing:
            raise ValueError(f"No tree given for target(s): {', '.join(missing)}")

    @classmethod
    def build(cls, records: Iterable[Record], params: TreeParams | None = None, *,
              attributes: Sequence[str] = ATTRIBUTES,
              n_jobs: int | None = None) -> "MultiTargetPredictor":
        """
        Train one tree per target field on the same records.

        Parameters
        ----------
        records : iterable of Record
            Deduplicated, normalised training records.
        params : TreeParams or None, default=None
            Shared pruning controls.
        attributes : sequence of str, default=ATTRIBUTES
            Candidate split attributes for every tree.
        n_jobs : int or None, default=None
            Number of threads used to build the trees.  ``None`` or ``1``
            builds them one after the other.

        Returns
        -------
        MultiTargetPredictor
        """
        params = params if params is not None else TreeParams()
        records = list(records)
        targets = list(TargetField)
        if n_jobs is None or n_jobs == 1:
            built = [DecisionTree.build(records, t, params, attributes) for t in targets]
        else:
            built = Parallel(n_jobs=n_jobs, prefer="threads")(
                delayed(DecisionTree.build)(records, t, params, attributes) for t in targets
            )
        predictor = cls(dict(zip(targets, built)))
        logger.info(f"Trained {len(targets)} trees on {len(records)} records "
                    f"(max_depth={params.max_depth}, min_samples_leaf={params.min_samples_leaf}, "
                    f"min_gain_ratio={params.min_gain_ratio})")
        return predictor

    def tree(self, target) -> DecisionTree:
        return self.trees_[TargetField(target)]

    def predict(self, record: Record) -> Prediction:
        """Predict every target field for one record."""
        return Prediction(**{t.value: tree.predict(record) for t, tree in self.trees_.items()})

    def predict_many(self, records: Iterable[Record]) -> list[Prediction]:
        return [self.predict(r) for r in records]

    def score(self, records: Iterable[Record]) -> dict[str, float]:
        """
        Accuracy of each tree on labelled records.

        Only records whose true value of a target is present count towards
        that target; targets without any labelled record are left out.

        Returns
        -------
        dict[str, float]
            Target name to accuracy in [0, 1].
        """
        records = list(records)
        scores = {}
        for t, tree in self.trees_.items():
            labelled = [r for r in records if r.get(t.value) is not None]
            if not labelled:
                continue
            y_true = [r[t.value] for r in labelled]
            y_pred = tree.predict_many(labelled)
            scores[t.value] = float(accuracy_score(y_true, y_pred))
        return scores
