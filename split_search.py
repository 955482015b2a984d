from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
import time

import numpy as np

from dataset import as_dataset, labels_of, n_features_of, validate_features
from errors import NoSplitFoundError
from impurity import class_indices, gini_from_counts, gini_impurity
from partition import partition


@dataclass(frozen=True)
class Split:
    feature: int
    threshold: float


@dataclass
class SplitSearchMetrics:
    features_searched: int = 0
    candidates_evaluated: int = 0
    degenerate_candidates: int = 0
    time_spent_sec: float = 0.0


@dataclass
class SplitSearchResult:
    split: Split | None
    score: float
    metrics: SplitSearchMetrics


@dataclass
class SplitSearchParams:
    strategy: str = "prefix"  # one of: prefix, partition
    n_jobs: int = 1

    def __post_init__(self) -> None:
        if self.strategy not in {"prefix", "partition"}:
            raise ValueError("strategy must be one of: prefix, partition")
        if self.n_jobs <= 0:
            raise ValueError("n_jobs must be positive")


@dataclass
class _FeatureSweep:
    feature: int
    threshold: float | None
    score: float
    candidates: int
    degenerate: int


def midpoints(values: np.ndarray) -> np.ndarray:
    """Thresholds between adjacent sorted values.

    Each threshold lies strictly above the lower value whenever the pair is
    distinct, so rows on both sides get separated. Pairs too close for a
    representable midpoint use the upper value; equal pairs give that value.
    """
    values = np.asarray(values, dtype=np.float64)
    lo = values[:-1]
    hi = values[1:]
    with np.errstate(over="ignore", invalid="ignore"):
        mids = lo + (hi - lo) / 2.0
    overflow = ~np.isfinite(mids)
    if np.any(overflow):
        mids[overflow] = lo[overflow] / 2.0 + hi[overflow] / 2.0
    return np.where((mids <= lo) & (hi > lo), hi, mids)


class BestSplitSearch:
    """Exhaustive Gini split search over every adjacent midpoint of every feature.

    A candidate threshold leaving one side empty (equal adjacent values) is
    counted as degenerate and never selected. Ties keep the first candidate
    seen, scanning features in the given order and thresholds in ascending
    order.
    """

    def __init__(
        self,
        dataset: np.ndarray,
        candidate_features,
        params: SplitSearchParams | None = None,
        executor: Executor | None = None,
    ) -> None:
        self.dataset = as_dataset(dataset)
        self.params = params or SplitSearchParams()
        self.executor = executor
        self.candidate_features = validate_features(
            candidate_features, n_features_of(self.dataset)
        )

        self.n_rows = int(self.dataset.shape[0])
        self.classes = class_indices(labels_of(self.dataset))

    def _sorted_order(self, feature: int) -> np.ndarray:
        return np.argsort(self.dataset[:, feature], kind="stable")

    def _sweep_partition(self, feature: int) -> _FeatureSweep:
        n = self.n_rows
        sorted_rows = self.dataset[self._sorted_order(feature)]
        thresholds = midpoints(sorted_rows[:, feature])

        best_score = float("inf")
        best_threshold = None
        degenerate = 0
        for threshold in thresholds:
            left, right = partition(sorted_rows, feature, threshold)
            if left.shape[0] == 0 or right.shape[0] == 0:
                degenerate += 1
                continue

            score = (left.shape[0] / n) * gini_impurity(labels_of(left)) + (
                right.shape[0] / n
            ) * gini_impurity(labels_of(right))
            if score < best_score:
                best_score = score
                best_threshold = float(threshold)

        return _FeatureSweep(
            feature=feature,
            threshold=best_threshold,
            score=best_score,
            candidates=max(n - 1, 0),
            degenerate=degenerate,
        )

    def _sweep_prefix(self, feature: int) -> _FeatureSweep:
        n = self.n_rows
        order = self._sorted_order(feature)
        values = self.dataset[order, feature]
        ones_prefix = np.concatenate(([0], np.cumsum(self.classes[order])))

        thresholds = midpoints(values)
        # Rows strictly below the threshold are exactly a prefix of the sorted column.
        n_left = np.searchsorted(values, thresholds, side="left")
        n_right = n - n_left
        ones_left = ones_prefix[n_left]
        ones_right = ones_prefix[n] - ones_left

        scores = (n_left / n) * gini_from_counts(n_left - ones_left, ones_left) + (
            n_right / n
        ) * gini_from_counts(n_right - ones_right, ones_right)

        valid = (n_left > 0) & (n_right > 0)
        degenerate = int(thresholds.size - np.count_nonzero(valid))
        if not np.any(valid):
            return _FeatureSweep(feature, None, float("inf"), int(thresholds.size), degenerate)

        best = int(np.argmin(np.where(valid, scores, np.inf)))
        return _FeatureSweep(
            feature=feature,
            threshold=float(thresholds[best]),
            score=float(scores[best]),
            candidates=int(thresholds.size),
            degenerate=degenerate,
        )

    def _sweep(self, feature: int) -> _FeatureSweep:
        if self.params.strategy == "partition":
            return self._sweep_partition(feature)
        return self._sweep_prefix(feature)

    def search(self) -> SplitSearchResult:
        start = time.perf_counter()
        metrics = SplitSearchMetrics()

        if self.executor is not None and len(self.candidate_features) > 1:
            sweeps = list(self.executor.map(self._sweep, self.candidate_features))
        elif self.params.n_jobs > 1 and len(self.candidate_features) > 1:
            with ThreadPoolExecutor(max_workers=self.params.n_jobs) as pool:
                sweeps = list(pool.map(self._sweep, self.candidate_features))
        else:
            sweeps = [self._sweep(feature) for feature in self.candidate_features]

        best_split = None
        best_score = float("inf")
        for sweep in sweeps:
            metrics.features_searched += 1
            metrics.candidates_evaluated += sweep.candidates
            metrics.degenerate_candidates += sweep.degenerate
            if sweep.threshold is not None and sweep.score < best_score:
                best_score = sweep.score
                best_split = Split(feature=sweep.feature, threshold=sweep.threshold)

        metrics.time_spent_sec = time.perf_counter() - start
        return SplitSearchResult(best_split, best_score, metrics)


def find_best_split(
    dataset: np.ndarray,
    features,
    params: SplitSearchParams | None = None,
    executor: Executor | None = None,
) -> SplitSearchResult:
    """Best Gini split of ``dataset`` over ``features``.

    Raises ``NoSplitFoundError`` when no threshold puts rows on both sides,
    e.g. a single row or a column of identical values. A caller growing a
    whole tree can pass a long-lived ``executor`` for the per-feature sweeps
    instead of paying for a new thread pool at every node.
    """
    result = BestSplitSearch(dataset, features, params, executor).search()
    if result.split is None:
        raise NoSplitFoundError(
            f"no threshold separates {len(dataset)} rows on features {list(features)}"
        )
    return result
