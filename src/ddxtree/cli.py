#!/usr/bin/env python3
"""Command-line driver: train the five target trees on a CSV and apply them."""
from __future__ import annotations

import argparse
import logging
import sys

from .config import TreeParams, load_params
from .exceptions import ConfigError, DataError
from .predictor import MultiTargetPredictor
from .records import TARGETS, read_records, write_predictions
from .tree import DecisionTree

logger = logging.getLogger("ddxtree")


def _add_common(ap: argparse.ArgumentParser):
    ap.add_argument("--train", required=True, help="training CSV")
    ap.add_argument("--config", help="YAML file with tree parameters")
    ap.add_argument("--max-depth", type=int)
    ap.add_argument("--min-samples-leaf", type=int)
    ap.add_argument("--min-gain-ratio", type=float)
    ap.add_argument("--no-normalize", action="store_true",
                    help="keep the original letter case of values")
    ap.add_argument("-v", "--verbose", action="store_true")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="ddxtree", description=__doc__)
    sub = ap.add_subparsers(dest="command", required=True)

    tp = sub.add_parser("train-predict", help="train on --train and predict --input")
    _add_common(tp)
    tp.add_argument("--input", help="CSV to predict (defaults to --train)")
    tp.add_argument("--output", default="predictions.csv")
    tp.add_argument("--jobs", type=int, default=None, help="threads for tree building")

    rp = sub.add_parser("rules", help="print the rules of one target tree")
    _add_common(rp)
    rp.add_argument("--target", choices=TARGETS, default="clinician")
    return ap


def _params(args) -> TreeParams:
    params = load_params(args.config) if args.config else TreeParams()
    return params.updated(max_depth=args.max_depth,
                          min_samples_leaf=args.min_samples_leaf,
                          min_gain_ratio=args.min_gain_ratio)


def run(args) -> int:
    params = _params(args)
    normalize = not args.no_normalize
    train = read_records(args.train, normalize=normalize)

    if args.command == "rules":
        tree = DecisionTree.build(train, args.target, params)
        for rule in tree.export_rules():
            print(rule)
        return 0

    predictor = MultiTargetPredictor.build(train, params, n_jobs=args.jobs)
    for target, acc in predictor.score(train).items():
        logger.info(f"Training accuracy {target}: {acc:.3f}")
    # Rows to predict are never deduplicated: one output row per input row
    inputs = train if args.input is None else read_records(
        args.input, normalize=normalize, deduplicate=False)
    predictions = predictor.predict_many(inputs)
    out = write_predictions(args.output, inputs, predictions)
    print(f"Saved predictions: {out}")
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return run(args)
    except (DataError, ConfigError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
