from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from dataset import from_xy, n_features_of
from split_search import SplitSearchParams
from tree import DecisionTree
from tree_builder import TreeBuildMetrics, TreeBuilder, TreeBuilderParams


@dataclass
class CARTParams:
    on_no_split: str = "majority"  # one of: majority, raise
    split_strategy: str = "prefix"  # one of: prefix, partition
    n_jobs: int = 1


class CARTClassifier:
    """Binary Gini CART classifier with a fit/predict interface over numpy arrays."""

    def __init__(self, params: CARTParams | None = None) -> None:
        self.params = params or CARTParams()
        self.tree_: DecisionTree | None = None
        self.metrics: TreeBuildMetrics | None = None

    def fit(self, X: np.ndarray, y: np.ndarray, features=None) -> "CARTClassifier":
        dataset = from_xy(X, y)
        if features is None:
            features = range(n_features_of(dataset))

        builder = TreeBuilder(
            TreeBuilderParams(
                on_no_split=self.params.on_no_split,
                split_search=SplitSearchParams(
                    strategy=self.params.split_strategy,
                    n_jobs=self.params.n_jobs,
                ),
            )
        )
        self.tree_ = builder.build_tree(dataset, features)
        self.metrics = builder.metrics
        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        if self.tree_ is None:
            raise RuntimeError("Model must be fitted before prediction")
        return self.tree_.predict_batch(X)

    def score(self, X: np.ndarray, y: np.ndarray) -> float:
        y = np.asarray(y).astype(np.int64)
        return float(np.mean(self.predict(X) == y))
