from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import numpy as np

from errors import DataError, OutOfRangeError


@dataclass(frozen=True)
class Leaf:
    label: int
    n_samples: int = 0


@dataclass(frozen=True)
class InternalNode:
    feature: int
    threshold: float
    left: "Node"
    right: "Node"
    score: float = 0.0
    n_samples: int = 0


Node = Union[Leaf, InternalNode]


class DecisionTree:
    """A built CART tree. Immutable; nodes are owned by their parent only."""

    def __init__(self, root: Node, n_features: int) -> None:
        self.root = root
        self.n_features = n_features

    def classify(self, point) -> int:
        point = np.asarray(point, dtype=np.float64).reshape(-1)
        node = self.root
        while isinstance(node, InternalNode):
            if node.feature >= point.size:
                raise OutOfRangeError(
                    f"data point has {point.size} values but the tree tests feature {node.feature}"
                )
            node = node.left if point[node.feature] < node.threshold else node.right
        return node.label

    def predict_batch(self, X) -> np.ndarray:
        X = np.asarray(X, dtype=np.float64)
        if X.ndim != 2:
            raise DataError("X must be a 2D array")
        preds = np.zeros(X.shape[0], dtype=np.int64)
        for i in range(X.shape[0]):
            preds[i] = self.classify(X[i])
        return preds

    def _walk(self):
        stack = [(self.root, 0)]
        while stack:
            node, depth = stack.pop()
            yield node, depth
            if isinstance(node, InternalNode):
                stack.append((node.right, depth + 1))
                stack.append((node.left, depth + 1))

    @property
    def depth(self) -> int:
        return max(depth for _, depth in self._walk())

    @property
    def n_leaves(self) -> int:
        return sum(1 for node, _ in self._walk() if isinstance(node, Leaf))

    @property
    def required_length(self) -> int:
        """Minimum data point length that every path through the tree accepts."""
        features = [n.feature for n, _ in self._walk() if isinstance(n, InternalNode)]
        return max(features) + 1 if features else 0

    def describe(self) -> str:
        lines = []
        for node, depth in self._walk():
            indent = "  " * depth
            if isinstance(node, Leaf):
                lines.append(f"{indent}Leaf(label={node.label}, samples={node.n_samples})")
            else:
                lines.append(
                    f"{indent}[Feature {node.feature} < {node.threshold:.4f}]"
                    f" gini={node.score:.4f} samples={node.n_samples}"
                )
        return "\n".join(lines)


def classify(tree: DecisionTree, point) -> int:
    """Label predicted by ``tree`` for ``point``; raises ``OutOfRangeError`` if it is too short."""
    return tree.classify(point)
