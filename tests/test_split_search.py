from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from errors import DataError, NoSplitFoundError, OutOfRangeError
from split_search import (
    BestSplitSearch,
    Split,
    SplitSearchParams,
    find_best_split,
    midpoints,
)

STRATEGIES = ["prefix", "partition"]


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_single_feature_perfect_separation(strategy):
    data = [[1, 0], [2, 0], [3, 1], [4, 1]]
    result = find_best_split(data, [0], SplitSearchParams(strategy=strategy))

    assert result.split == Split(feature=0, threshold=2.5)
    assert result.score == 0.0
    assert result.metrics.features_searched == 1
    assert result.metrics.candidates_evaluated == 3
    assert result.metrics.degenerate_candidates == 0


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_identical_feature_values_report_no_split(strategy):
    params = SplitSearchParams(strategy=strategy)
    with pytest.raises(NoSplitFoundError):
        find_best_split([[1, 0], [1, 1]], [0], params)

    result = BestSplitSearch(np.array([[1.0, 0], [1.0, 1]]), [0], params).search()
    assert result.split is None
    assert result.score == float("inf")
    assert result.metrics.candidates_evaluated == 1
    assert result.metrics.degenerate_candidates == 1


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_single_row_reports_no_split(strategy):
    with pytest.raises(NoSplitFoundError):
        find_best_split([[1, 0]], [0], SplitSearchParams(strategy=strategy))


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_degenerate_candidates_are_skipped_not_selected(strategy):
    # Thresholds: 1.0 (degenerate, left side empty), 1.5, 2.5.
    data = [[1, 0], [1, 0], [2, 1], [3, 1]]
    result = find_best_split(data, [0], SplitSearchParams(strategy=strategy))

    assert result.split == Split(feature=0, threshold=1.5)
    assert result.score == 0.0
    assert result.metrics.degenerate_candidates == 1


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_ties_keep_first_threshold_and_first_feature(strategy):
    params = SplitSearchParams(strategy=strategy)

    # 1.5 and 2.5 both score 1/3; the lower threshold is seen first.
    result = find_best_split([[1, 0], [2, 1], [3, 0]], [0], params)
    assert result.split == Split(feature=0, threshold=1.5)

    # Identical columns: the feature listed first wins.
    data = [[1, 1, 0], [2, 2, 1]]
    assert find_best_split(data, [1, 0], params).split.feature == 1
    assert find_best_split(data, [0, 1], params).split.feature == 0


def test_strategies_agree_on_random_datasets_with_duplicates():
    rng = np.random.default_rng(5)
    for _ in range(20):
        X = rng.integers(0, 5, size=(30, 3)).astype(np.float64)
        y = rng.integers(0, 2, size=30).astype(np.float64)
        data = np.column_stack([X, y])

        prefix = BestSplitSearch(data, [0, 1, 2], SplitSearchParams(strategy="prefix")).search()
        reference = BestSplitSearch(
            data, [0, 1, 2], SplitSearchParams(strategy="partition")
        ).search()

        assert prefix.split == reference.split
        assert prefix.score == reference.score
        assert prefix.metrics.candidates_evaluated == reference.metrics.candidates_evaluated
        assert prefix.metrics.degenerate_candidates == reference.metrics.degenerate_candidates


def test_parallel_search_matches_serial_search():
    rng = np.random.default_rng(13)
    X = rng.normal(size=(200, 6))
    y = (X[:, 2] + 0.3 * X[:, 4] > 0.1).astype(np.float64)
    data = np.column_stack([X, y])
    features = [5, 4, 3, 2, 1, 0]

    serial = find_best_split(data, features, SplitSearchParams(n_jobs=1))
    parallel = find_best_split(data, features, SplitSearchParams(n_jobs=4))

    assert parallel.split == serial.split
    assert parallel.score == serial.score
    assert parallel.metrics.features_searched == 6


def test_split_search_rejects_unknown_features():
    with pytest.raises(OutOfRangeError):
        find_best_split([[1, 0], [2, 1]], [1])


def test_split_search_params_validation():
    with pytest.raises(ValueError):
        SplitSearchParams(strategy="bandit")
    with pytest.raises(ValueError):
        SplitSearchParams(n_jobs=0)


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_adjacent_floats_one_ulp_apart_are_separated(strategy):
    upper = float(np.nextafter(1.0, 2.0))
    result = find_best_split([[1.0, 0], [upper, 1]], [0], SplitSearchParams(strategy=strategy))

    assert 1.0 < result.split.threshold <= upper
    assert result.score == 0.0
    assert result.metrics.degenerate_candidates == 0


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_huge_values_do_not_overflow_the_threshold(strategy):
    params = SplitSearchParams(strategy=strategy)
    with np.errstate(over="raise"):
        result = find_best_split([[1e308, 0], [1.5e308, 1]], [0], params)
        assert result.split.feature == 0
        assert 1e308 < result.split.threshold < 1.5e308
        assert result.score == 0.0

        result = find_best_split([[-1.5e308, 0], [1.5e308, 1]], [0], params)
        assert np.isfinite(result.split.threshold)
        assert -1.5e308 < result.split.threshold < 1.5e308


def test_midpoints_stay_strictly_above_the_lower_value():
    upper = float(np.nextafter(1.0, 2.0))
    values = np.array([-1.5e308, 1.0, upper, upper, 3.0, 1.5e308])
    mids = midpoints(values)

    assert mids[0] > values[0]
    assert mids[1] == upper
    assert mids[2] == upper
    assert 1.0 < mids[3] < 3.0
    assert np.all(np.isfinite(mids))


def test_parallel_search_keeps_first_feature_on_ties():
    data = [[1, 1, 0], [2, 2, 1]]
    params = SplitSearchParams(n_jobs=2)

    assert find_best_split(data, [1, 0], params).split.feature == 1
    assert find_best_split(data, [0, 1], params).split.feature == 0


def test_shared_executor_matches_serial_search():
    rng = np.random.default_rng(17)
    X = rng.integers(0, 4, size=(50, 4)).astype(np.float64)
    y = (X[:, 1] > 1).astype(np.float64)
    data = np.column_stack([X, y])

    serial = find_best_split(data, [0, 1, 2, 3])
    with ThreadPoolExecutor(max_workers=3) as pool:
        shared = find_best_split(data, [0, 1, 2, 3], executor=pool)

    assert shared.split == serial.split
    assert shared.score == serial.score


def test_split_search_rejects_malformed_datasets():
    with pytest.raises(DataError):
        find_best_split([1.0, 0.0], [0])
    with pytest.raises(DataError):
        find_best_split([[1.0, 0], [2.0, 3.0, 1]], [0])
