"""Command line front end: reads a labeled dataset, builds a tree, classifies one point.

Without ``--csv`` the input is read from stdin as whitespace separated numbers,
in this order: number of data points, number of features, every data point
(feature values followed by its 0/1 label), the feature indices available
for splitting (one per feature), and finally the features of the point to
classify.
"""
from __future__ import annotations

import argparse
import logging
import sys

import numpy as np
import pandas as pd

from dataset import as_dataset
from errors import CARTError, DataError
from split_search import SplitSearchParams
from tree import classify
from tree_builder import TreeBuilder, TreeBuilderParams

logger = logging.getLogger(__name__)


def _tokens(stream):
    for line in stream:
        yield from line.split()


class _InputReader:
    def __init__(self, stream, prompt_stream=None) -> None:
        self.tokens = _tokens(stream)
        self.prompt_stream = prompt_stream

    def prompt(self, message: str) -> None:
        if self.prompt_stream is not None:
            self.prompt_stream.write(message)
            self.prompt_stream.flush()

    def take(self, cast, what: str):
        try:
            token = next(self.tokens)
        except StopIteration:
            raise DataError(f"unexpected end of input while reading {what}") from None
        try:
            return cast(token)
        except ValueError as e:
            raise DataError(f"invalid {what}: {token!r}") from e


def read_interactive(stream, prompt_stream=None) -> tuple[np.ndarray, list[int], np.ndarray]:
    reader = _InputReader(stream, prompt_stream)

    reader.prompt("Enter the number of data points: ")
    n_points = reader.take(int, "number of data points")
    reader.prompt("Enter the number of features: ")
    n_features = reader.take(int, "number of features")
    if n_points < 0 or n_features < 0:
        raise DataError("counts must not be negative")

    reader.prompt(
        "Enter the dataset (each row should contain features followed by the class label):\n"
    )
    rows = []
    for i in range(n_points):
        reader.prompt(f"Data point {i + 1}: ")
        rows.append([reader.take(float, "data value") for _ in range(n_features + 1)])

    reader.prompt("Enter the features available for splitting (0-based indices): ")
    features = [reader.take(int, "feature index") for _ in range(n_features)]

    reader.prompt("Enter the features of a new data point for classification:\n")
    point = []
    for j in range(n_features):
        reader.prompt(f"Feature {j + 1}: ")
        point.append(reader.take(float, "feature value"))

    return as_dataset(rows), features, np.asarray(point)


def read_csv_dataset(path: str, target_col: str | None = None) -> tuple[np.ndarray, list[str]]:
    try:
        df = pd.read_csv(path)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DataError(f"cannot read {path}: {e}") from e

    target = target_col if target_col is not None else df.columns[-1]
    if target not in df.columns:
        raise DataError(f"target column '{target}' not found in {path}")

    X_df = df.drop(columns=[target]).apply(pd.to_numeric, errors="coerce")
    y = pd.to_numeric(df[target], errors="coerce").to_numpy(dtype=np.float64)
    dataset = as_dataset(np.column_stack([X_df.to_numpy(dtype=np.float64), y]))
    return dataset, [str(c) for c in X_df.columns]


def _parse_list(text: str, cast, what: str) -> list:
    try:
        return [cast(v) for v in text.split(",") if v.strip()]
    except ValueError as e:
        raise DataError(f"invalid {what}: {text!r}") from e


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Build a Gini CART tree and classify a data point"
    )
    parser.add_argument("--csv", type=str, default=None, help="Read the dataset from a CSV file")
    parser.add_argument(
        "--target-col",
        type=str,
        default=None,
        help="Label column of the CSV file (default: last column)",
    )
    parser.add_argument(
        "--features",
        type=str,
        default=None,
        help="Comma-separated feature indices available for splitting (CSV mode, default: all)",
    )
    parser.add_argument(
        "--point",
        type=str,
        default=None,
        help="Comma-separated feature values to classify (CSV mode)",
    )
    parser.add_argument(
        "--strategy",
        type=str,
        default="prefix",
        choices=["prefix", "partition"],
        help="Split search strategy",
    )
    parser.add_argument("--n-jobs", type=int, default=1)
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail instead of using a majority leaf when no split separates a node",
    )
    parser.add_argument("--show-tree", action="store_true", help="Print the built tree")
    parser.add_argument("--log-level", type=str, default="warning")

    args = parser.parse_args(argv)
    if args.n_jobs <= 0:
        parser.error("--n-jobs must be positive")
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    params = TreeBuilderParams(
        on_no_split="raise" if args.strict else "majority",
        split_search=SplitSearchParams(strategy=args.strategy, n_jobs=args.n_jobs),
    )

    try:
        if args.csv is not None:
            dataset, columns = read_csv_dataset(args.csv, args.target_col)
            logger.info(f"Loaded {dataset.shape[0]} rows with columns {columns} from {args.csv}")
            if args.features is not None:
                features = _parse_list(args.features, int, "feature indices")
            else:
                features = list(range(len(columns)))
            point = None
            if args.point is not None:
                point = np.asarray(_parse_list(args.point, float, "data point"))
        else:
            prompt_stream = sys.stderr if sys.stdin.isatty() else None
            dataset, features, point = read_interactive(sys.stdin, prompt_stream)

        tree = TreeBuilder(params).build_tree(dataset, features)
        if args.show_tree:
            print(tree.describe())

        if point is None:
            preds = tree.predict_batch(dataset[:, :-1])
            accuracy = float(np.mean(preds == dataset[:, -1].astype(np.int64)))
            print(f"Training accuracy: {accuracy:.4f}")
        else:
            print(f"Predicted class for the new data point: {classify(tree, point)}")
    except CARTError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
