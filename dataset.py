from __future__ import annotations

from collections.abc import Iterable

import numpy as np

from errors import DataError, EmptyDatasetError, OutOfRangeError
from impurity import class_counts, class_indices


def as_dataset(rows) -> np.ndarray:
    """Materialise rows (feature values followed by a label) as a float64 matrix.

    Labels are truncated to class indices. Raises ``EmptyDatasetError`` for a
    dataset without rows, ``InvalidLabelError`` for labels outside {0, 1} and
    ``DataError`` for ragged rows or non-finite feature values.
    """
    try:
        data = np.array(rows, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise DataError("dataset rows must be numeric and of equal length") from e

    if data.ndim in (1, 2) and data.shape[0] == 0:
        raise EmptyDatasetError("cannot build a tree from an empty dataset")
    if data.ndim != 2:
        raise DataError("dataset must be a 2D table of rows")
    if data.shape[1] == 0:
        raise DataError("each row must end with a class label")

    if not np.all(np.isfinite(data[:, :-1])):
        raise DataError("feature values must be finite; missing values are not supported")

    data[:, -1] = class_indices(data[:, -1])
    return data


def from_xy(X, y) -> np.ndarray:
    """Join a feature matrix and a label vector into a single dataset."""
    X = np.asarray(X, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if X.ndim != 2:
        raise DataError("X must be 2D")
    if y.ndim != 1 or y.shape[0] != X.shape[0]:
        raise DataError("y must be a 1D array with the same number of rows as X")
    return as_dataset(np.column_stack([X, y]))


def n_features_of(dataset: np.ndarray) -> int:
    return int(dataset.shape[1]) - 1


def labels_of(dataset: np.ndarray) -> np.ndarray:
    return dataset[:, -1]


def validate_features(features: Iterable[int], n_features: int) -> tuple[int, ...]:
    checked = []
    for feature in features:
        index = int(feature)
        if index != feature:
            raise DataError(f"feature index {feature!r} is not an integer")
        if not 0 <= index < n_features:
            raise OutOfRangeError(
                f"feature index {index} out of range for {n_features} features"
            )
        checked.append(index)
    return tuple(checked)


def majority_label(labels) -> int:
    """Most frequent label; ties go to the smallest label value."""
    # argmax returns the first maximum, i.e. the lowest class index.
    return int(np.argmax(class_counts(labels)))
