from __future__ import annotations

import numpy as np

from errors import InvalidLabelError

N_CLASSES = 2


def gini_from_counts(n0, n1):
    """Gini impurity of a two-class label multiset given its class counts.

    Works elementwise on numpy arrays. An empty multiset has impurity 0.0.
    """
    n0 = np.asarray(n0, dtype=np.float64)
    n1 = np.asarray(n1, dtype=np.float64)
    size = n0 + n1
    with np.errstate(divide="ignore", invalid="ignore"):
        p0 = n0 / size
        p1 = n1 / size
        gini = 1.0 - p0 * p0 - p1 * p1
    gini = np.where(size > 0, gini, 0.0)
    if gini.ndim == 0:
        return float(gini)
    return gini


def class_indices(labels) -> np.ndarray:
    """Truncate labels to integer class indices, rejecting anything outside {0, 1}."""
    labels = np.asarray(labels, dtype=np.float64).reshape(-1)
    if labels.size == 0:
        return np.empty(0, dtype=np.int64)

    if not np.all(np.isfinite(labels)):
        raise InvalidLabelError("labels must be finite")

    classes = np.trunc(labels).astype(np.int64)
    bad = (classes < 0) | (classes >= N_CLASSES)
    if np.any(bad):
        raise InvalidLabelError(
            f"label {labels[np.argmax(bad)]!r} is not a binary class label (0 or 1)"
        )
    return classes


def class_counts(labels) -> np.ndarray:
    return np.bincount(class_indices(labels), minlength=N_CLASSES)


def gini_impurity(labels) -> float:
    """Gini impurity ``1 - sum(p_i ** 2)`` of a multiset of binary labels."""
    counts = class_counts(labels)
    return gini_from_counts(counts[0], counts[1])
