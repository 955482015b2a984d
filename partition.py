from __future__ import annotations

import numpy as np

from errors import OutOfRangeError


def partition(
    dataset: np.ndarray,
    feature: int,
    threshold: float,
) -> tuple[np.ndarray, np.ndarray]:
    """Split rows on ``row[feature] < threshold``.

    Rows satisfying the test go left, all others go right; both keep the
    source order and are independent copies.
    """
    dataset = np.asarray(dataset, dtype=np.float64)
    n_features = dataset.shape[1] - 1
    if not 0 <= feature < n_features:
        raise OutOfRangeError(
            f"feature index {feature} out of range for {n_features} features"
        )

    left_mask = dataset[:, feature] < threshold
    return dataset[left_mask], dataset[~left_mask]
