from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
import logging

import numpy as np

from dataset import as_dataset, labels_of, majority_label, n_features_of, validate_features
from errors import NoSplitFoundError
from partition import partition
from split_search import SplitSearchParams, find_best_split
from tree import DecisionTree, InternalNode, Leaf, Node

logger = logging.getLogger(__name__)


@dataclass
class TreeBuildMetrics:
    nodes_visited: int = 0
    nodes_split: int = 0
    leaves: int = 0
    no_split_fallbacks: int = 0
    split_search_time_sec: float = 0.0
    node_metrics: list[dict] = field(default_factory=list)


@dataclass
class TreeBuilderParams:
    on_no_split: str = "majority"  # one of: majority, raise
    split_search: SplitSearchParams = field(default_factory=SplitSearchParams)

    def __post_init__(self) -> None:
        if self.on_no_split not in {"majority", "raise"}:
            raise ValueError("on_no_split must be one of: majority, raise")


class TreeBuilder:
    def __init__(self, params: TreeBuilderParams | None = None) -> None:
        self.params = params or TreeBuilderParams()
        self.metrics = TreeBuildMetrics()

    def _leaf(self, label: int, rows: np.ndarray, depth: int) -> Leaf:
        self.metrics.leaves += 1
        logger.debug(f"Leaf at depth {depth}: label={label} samples={rows.shape[0]}")
        return Leaf(label=int(label), n_samples=int(rows.shape[0]))

    def _terminal_leaf(self, rows: np.ndarray, features: tuple[int, ...], depth: int) -> Leaf | None:
        labels = labels_of(rows)
        first = labels[0]
        if np.all(labels == first):
            return self._leaf(int(first), rows, depth)

        if not features:
            return self._leaf(majority_label(labels), rows, depth)

        return None

    def build_tree(self, dataset, features) -> DecisionTree:
        """Grow a Gini CART tree on ``dataset`` using the feature indices in ``features``.

        The same feature list is offered at every node; a feature can be
        split on again further down. Nodes are expanded from an explicit stack
        and assembled bottom-up, so depth is limited by the number of rows only.
        """
        data = as_dataset(dataset)
        n_features = n_features_of(data)
        features = validate_features(features, n_features)
        self.metrics = TreeBuildMetrics()

        n_jobs = self.params.split_search.n_jobs
        if n_jobs > 1 and len(features) > 1:
            with ThreadPoolExecutor(max_workers=n_jobs) as pool:
                root = self._grow(data, features, pool)
        else:
            root = self._grow(data, features, None)

        logger.info(
            f"Built tree on {data.shape[0]} rows: {self.metrics.nodes_split} splits, "
            f"{self.metrics.leaves} leaves"
        )
        return DecisionTree(root=root, n_features=n_features)

    def _grow(
        self,
        data: np.ndarray,
        features: tuple[int, ...],
        executor: Executor | None,
    ) -> Node:
        # Children are visited after their parent, so reversed visit order is bottom-up.
        stack: list[tuple[int, np.ndarray, int]] = [(0, data, 0)]
        leaves: dict[int, Leaf] = {}
        splits: dict[int, tuple[int, float, float, int, int, int]] = {}
        visit_order: list[int] = []
        next_id = 1

        while stack:
            node_id, rows, depth = stack.pop()
            visit_order.append(node_id)
            self.metrics.nodes_visited += 1

            leaf = self._terminal_leaf(rows, features, depth)
            if leaf is not None:
                leaves[node_id] = leaf
                continue

            try:
                result = find_best_split(rows, features, self.params.split_search, executor)
            except NoSplitFoundError:
                if self.params.on_no_split == "raise":
                    raise
                self.metrics.no_split_fallbacks += 1
                logger.warning(
                    f"No separating split for {rows.shape[0]} rows at depth {depth}; "
                    "using the majority label"
                )
                leaves[node_id] = self._leaf(majority_label(labels_of(rows)), rows, depth)
                continue

            split = result.split
            self.metrics.split_search_time_sec += result.metrics.time_spent_sec
            self.metrics.node_metrics.append(
                {
                    "depth": depth,
                    "node_size": int(rows.shape[0]),
                    "feature": split.feature,
                    "threshold": split.threshold,
                    "score": result.score,
                    "candidates": result.metrics.candidates_evaluated,
                    "degenerate_candidates": result.metrics.degenerate_candidates,
                }
            )

            left_rows, right_rows = partition(rows, split.feature, split.threshold)
            left_id, right_id = next_id, next_id + 1
            next_id += 2
            splits[node_id] = (
                split.feature,
                split.threshold,
                result.score,
                int(rows.shape[0]),
                left_id,
                right_id,
            )
            self.metrics.nodes_split += 1

            stack.append((right_id, right_rows, depth + 1))
            stack.append((left_id, left_rows, depth + 1))

        built: dict[int, Node] = {}
        for node_id in reversed(visit_order):
            if node_id in leaves:
                built[node_id] = leaves[node_id]
                continue
            feature, threshold, score, n_samples, left_id, right_id = splits[node_id]
            built[node_id] = InternalNode(
                feature=feature,
                threshold=threshold,
                left=built.pop(left_id),
                right=built.pop(right_id),
                score=score,
                n_samples=n_samples,
            )
        return built[0]


def build_tree(dataset, features, params: TreeBuilderParams | None = None) -> DecisionTree:
    return TreeBuilder(params).build_tree(dataset, features)
