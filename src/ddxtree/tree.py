# -*- coding: utf-8 -*-
"""
ddxtree.tree
============

This module implements a multiway, gain-ratio decision tree over categorical
attributes in the spirit of Quinlan's ID3/C4.5.  Each internal node splits on
one attribute and gets one child per value seen in training; pruning is done
up front via ``max_depth``, ``min_samples_leaf`` and ``min_gain_ratio``.

Records are plain read-only mappings (see :mod:`ddxtree.records`), so a tree
can be trained on any set of string-valued fields.  Missing values (``None``)
are skipped while growing the tree; at prediction time they are looked up as
the ``"missing"`` category and otherwise resolved by the majority class
stored on every branch.

Every choice that could depend on hash ordering is made deterministic:
attributes are evaluated in sorted order, class ties go to the smallest
value and children are stored in sorted key order.

Besides :class:`DecisionTree` the module exposes the attribute statistics it
is built on (:func:`entropy`, :func:`gain_ratio` and friends).
"""

# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence, Union

import numpy as np

from .config import TreeParams
from .records import ATTRIBUTES, Record

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"
MISSING = "missing"


def _name(field) -> str:
    # TargetField members hash by member name, so always look records up by value
    return getattr(field, "value", field)


# -----------------------------------------------------------------------------
# Attribute statistics
# -----------------------------------------------------------------------------
def _entropy(dist_vec) -> float:
    dist = np.asarray(dist_vec, dtype=float)
    tot = dist.sum()
    if tot <= 0:
        return 0.0
    p = dist / tot
    p = p[p > 0]
    return float(-np.sum(p * np.log2(p)))


def class_counts(records: Iterable[Record], target) -> Counter:
    """Histogram of the non-missing values of ``target``."""
    key = _name(target)
    return Counter(v for v in (r.get(key) for r in records) if v is not None)


def majority_class(records: Iterable[Record], target) -> str:
    """Most frequent non-missing ``target`` value.

    Ties go to the lexicographically smallest value; ``"unknown"`` is
    returned when no record carries a value.
    """
    counts = class_counts(records, target)
    if not counts:
        return UNKNOWN
    return min(counts.items(), key=lambda kv: (-kv[1], kv[0]))[0]


def entropy(records: Sequence[Record], target) -> float:
    """Shannon entropy (bits) of the ``target`` values in ``records``.

    Records whose target is missing are left out entirely, so the class
    probabilities are taken over the labelled records only.  An empty set, or
    one without any labelled record, has entropy 0.
    """
    counts = class_counts(records, target)
    return _entropy(list(counts.values()))


def partition(records: Iterable[Record], attribute: str) -> dict[str, list[Record]]:
    """Group ``records`` by their value of ``attribute``.

    Records with the attribute missing belong to no group.  Groups are
    returned in sorted key order.
    """
    groups: dict[str, list[Record]] = {}
    for r in records:
        v = r.get(attribute)
        if v is not None:
            groups.setdefault(v, []).append(r)
    return {k: groups[k] for k in sorted(groups)}


def _split_info(sizes: Sequence[int]) -> float:
    return _entropy(sizes)


def gain_ratio(records: Sequence[Record], attribute: str, target,
               base_entropy: float) -> float:
    """Information gain ratio of splitting ``records`` on ``attribute``.

    Parameters
    ----------
    records : sequence of Record
        The record set at the node being split.
    attribute : str
        Candidate split attribute.  Records where it is missing are ignored.
    target : str or TargetField
        Class field.
    base_entropy : float
        :func:`entropy` of ``records``; passed in so that a node computes it
        once for all candidate attributes.

    Returns
    -------
    float
        ``(base_entropy - info_attr) / split_info``, or ``0.0`` when the
        split information is zero (a single partition, or none at all).
    """
    groups = partition(records, attribute)
    sizes = [len(g) for g in groups.values()]
    s = _split_info(sizes)
    if s <= 0:
        return 0.0
    n_known = float(sum(sizes))
    info_attr = sum(len(g) / n_known * entropy(g, target) for g in groups.values())
    return float((base_entropy - info_attr) / s)


def best_attribute(records: Sequence[Record], attributes: Iterable[str],
                   target) -> tuple[str | None, float]:
    """Return the attribute with the greatest gain ratio and that ratio.

    Attributes are evaluated in sorted order and only a strictly greater
    ratio replaces the current best, so ties go to the smallest name.
    """
    base = entropy(records, target)
    best_attr, best_gr = None, float("-inf")
    for a in sorted(attributes):
        gr = gain_ratio(records, a, target, base)
        if gr > best_gr:
            best_attr, best_gr = a, gr
    return best_attr, best_gr


# -----------------------------------------------------------------------------
# Nodes
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Leaf:
    """Terminal node predicting a single class value."""
    value: str

    @property
    def depth(self) -> int:
        return 0

    @property
    def n_leaves(self) -> int:
        return 1

    @property
    def n_nodes(self) -> int:
        return 1


@dataclass(frozen=True)
class Branch:
    """Internal node splitting on ``attribute``.

    ``children`` maps each training value of the attribute (original casing)
    to its subtree.  ``majority`` is the majority class of the records that
    reached this node and answers every lookup the children cannot.
    """
    attribute: str
    children: Mapping[str, "TreeNode"]
    majority: str

    def __post_init__(self):
        object.__setattr__(self, "children", MappingProxyType(dict(self.children)))

    @property
    def depth(self) -> int:
        return 1 + max((ch.depth for ch in self.children.values()), default=0)

    @property
    def n_leaves(self) -> int:
        return sum(ch.n_leaves for ch in self.children.values())

    @property
    def n_nodes(self) -> int:
        return 1 + sum(ch.n_nodes for ch in self.children.values())

    def child_for(self, value: str | None) -> "TreeNode | None":
        """Case-insensitive child lookup; ``None`` is looked up as ``"missing"``.

        Children are scanned in insertion order, which the builder makes sorted.
        """
        key = MISSING if value is None else str(value).lower()
        for k, child in self.children.items():
            if k.lower() == key:
                return child
        return None


TreeNode = Union[Leaf, Branch]


# -----------------------------------------------------------------------------
# Tree
# -----------------------------------------------------------------------------
class DecisionTree:
    """
    Categorical gain-ratio decision tree for a single target field.

    Build one with :meth:`DecisionTree.build`; the tree is immutable
    afterwards and :meth:`predict` only reads it.

    Parameters
    ----------
    root : Leaf or Branch
        Root node of an already built tree.
    target : str or TargetField
        Field the tree predicts.
    attributes : sequence of str, default=ATTRIBUTES
        Fields the tree was allowed to split on.
    params : TreeParams or None, default=None
        Parameters the tree was grown with.

    Examples
    --------
    >>> from ddxtree.records import make_record
    >>> recs = [make_record(clinical_panel=p, clinician=c)
    ...         for p, c in [("A", "X"), ("A", "X"), ("B", "Y"), ("B", "Y")]]
    >>> tree = DecisionTree.build(recs, "clinician")
    >>> tree.predict(make_record(clinical_panel="a"))
    'X'
    """

    def __init__(self, root: TreeNode, target, attributes: Sequence[str] = ATTRIBUTES,
                 params: TreeParams | None = None):
        self.root = root
        self.target = _name(target)
        self.attributes = tuple(sorted(attributes))
        self.params = params if params is not None else TreeParams()

    def __repr__(self):
        return (f"DecisionTree(target={self.target!r}, depth={self.depth}, "
                f"n_leaves={self.n_leaves})")

    @classmethod
    def build(cls, records: Iterable[Record], target, params: TreeParams | None = None,
              attributes: Sequence[str] = ATTRIBUTES) -> "DecisionTree":
        """
        Grow a tree predicting ``target`` from ``records``.

        Parameters
        ----------
        records : iterable of Record
            Training records.  They are read, never modified.
        target : str or TargetField
            Field to predict.
        params : TreeParams or None, default=None
            Pruning controls; the defaults of :class:`TreeParams` if omitted.
        attributes : sequence of str, default=ATTRIBUTES
            Candidate split attributes.

        Returns
        -------
        DecisionTree
            The built tree.  An empty training set gives a single
            ``Leaf("unknown")``.
        """
        params = params if params is not None else TreeParams()
        records = list(records)
        attrs = tuple(sorted(attributes))
        root = cls._build_node(records, _name(target), attrs, 0, params)
        tree = cls(root, target, attrs, params)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Built {tree.target} tree from {len(records)} records: "
                         f"{root.n_nodes} nodes, depth {root.depth}")
        return tree

    @classmethod
    def _build_node(cls, records: list[Record], target: str, attributes: tuple[str, ...],
                    depth: int, params: TreeParams) -> TreeNode:
        """
        Recursively build the subtree for ``records``.

        Stopping rules are checked in a fixed order: empty set, depth and
        size limits, purity, exhausted attributes, then the gain ratio of
        the best split.
        """
        majority = majority_class(records, target)
        if not records:
            return Leaf(UNKNOWN)
        # Pruning by depth/size wins over purity
        if depth >= params.max_depth or len(records) < params.min_samples_leaf:
            return Leaf(majority)
        counts = class_counts(records, target)
        if len(counts) == 1:
            return Leaf(next(iter(counts)))
        if not attributes:
            return Leaf(majority)

        attr, gr = best_attribute(records, attributes, target)
        if attr is None or gr < params.min_gain_ratio:
            return Leaf(majority)
        groups = partition(records, attr)
        if not groups:
            return Leaf(majority)

        remaining = tuple(a for a in attributes if a != attr)
        children: dict[str, TreeNode] = {}
        for value, subset in groups.items():
            if len(subset) < params.min_samples_leaf:
                # Parent majority, not the partition's
                children[value] = Leaf(majority)
            else:
                children[value] = cls._build_node(subset, target, remaining, depth + 1, params)
        return Branch(attr, children, majority)

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------
    def predict(self, record: Record) -> str:
        """
        Predict the target value for one record.

        Branch lookups ignore letter case.  A missing attribute is looked up
        as ``"missing"``; when no child matches, the branch's majority class
        is returned, so the result is never ``None``.
        """
        value = self._traverse(self.root, record)
        return value if value is not None else UNKNOWN

    def _traverse(self, node: TreeNode, record: Record) -> str | None:
        if isinstance(node, Leaf):
            return node.value
        child = node.child_for(record.get(node.attribute))
        if child is None:
            return node.majority
        value = self._traverse(child, record)
        return value if value is not None else node.majority

    def predict_many(self, records: Iterable[Record]) -> list[str]:
        return [self.predict(r) for r in records]

    @property
    def depth(self) -> int:
        return self.root.depth

    @property
    def n_leaves(self) -> int:
        return self.root.n_leaves

    @property
    def n_nodes(self) -> int:
        return self.root.n_nodes

    # ------------------------------------------------------------------
    # Rule export / Graphviz / printing helpers
    # ------------------------------------------------------------------
    def export_rules(self) -> list[str]:
        """
        Export every decision path as a human-readable rule.

        Each rule has the form ``attr = value AND ... => class``.  Every
        branch also contributes an ``attr unmatched => majority`` rule for
        values it has no child for.

        Returns
        -------
        list[str]
            List of rule strings, in sorted key order.
        """
        rules: list[str] = []
        self._collect_rules(self.root, [], rules)
        return rules

    def _collect_rules(self, node: TreeNode, parts: list[str], rules: list[str]):
        if isinstance(node, Leaf):
            body = " AND ".join(parts) if parts else "<root>"
            rules.append(f"{body} => {node.value}")
            return
        for value, child in node.children.items():
            self._collect_rules(child, parts + [f"{node.attribute} = {value}"], rules)
        body = " AND ".join(parts + [f"{node.attribute} unmatched"])
        rules.append(f"{body} => {node.majority}")

    def print_tree(self):
        """Pretty-print the tree to ``stdout``."""
        print(f"# target: {self.target}")
        self._print_node(self.root, "")

    def _print_node(self, node: TreeNode, indent: str = ""):
        if isinstance(node, Leaf):
            print(f"{indent}Predict {node.value}")
            return
        for value, child in node.children.items():
            print(f"{indent}if {node.attribute} = {value}:")
            self._print_node(child, indent + "  ")
        print(f"{indent}else:")
        print(f"{indent}  Predict {node.majority}")

    def export_graphviz(self, filename: str | None = None, *, format: str = "dot") -> str:
        """
        Export the tree structure in Graphviz format.

        Parameters
        ----------
        filename : str or None, default=None
            Basename of the output file.  If None, the DOT source is returned
            and nothing is written.
        format : str, default="dot"
            Output format.  ``'dot'`` writes the DOT source directly; other
            formats (``'png'``, ``'pdf'``, ``'svg'``) need the ``dot`` binary
            and fall back to a ``.dot`` file when it is missing.

        Returns
        -------
        str
            Path to the written file, or the DOT source if filename is None.

        Raises
        ------
        RuntimeError
            If the ``graphviz`` package is not installed.
        """
        try:
            import graphviz
        except ImportError:
            raise RuntimeError("Graphviz is required for export_graphviz but not installed.")
        dot = graphviz.Digraph(format=format)
        self._add_graph_nodes(dot, self.root, "0")

        if filename is None:
            return dot.source
        if format.lower() == "dot":
            path = f"{filename}.dot"
            dot.save(path)
            return path
        try:
            dot.render(filename, cleanup=True)
            return f"{filename}.{format}"
        except graphviz.ExecutableNotFound:
            fallback_path = f"{filename}.dot"
            dot.save(fallback_path)
            return fallback_path

    def _add_graph_nodes(self, dot, node: TreeNode, name: str):
        if isinstance(node, Leaf):
            dot.node(name, f"{self.target}={node.value}",
                     shape="box", style="filled", color="lightgrey")
            return
        dot.node(name, f"{node.attribute}\n(majority={node.majority})",
                 shape="ellipse", style="filled", color="lightblue")
        for i, (value, child) in enumerate(node.children.items()):
            child_id = f"{name}_{i}"
            self._add_graph_nodes(dot, child, child_id)
            dot.edge(name, child_id, label=str(value))
