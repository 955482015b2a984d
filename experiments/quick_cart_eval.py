import argparse
import time
import sys
from pathlib import Path

import numpy as np

# Allow running as: python experiments/quick_cart_eval.py
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cart_classifier import CARTClassifier, CARTParams


def _holdout_split(X, y, test_size, random_state):
    """Hold out ``test_size`` of each class so both labels appear in the test rows."""
    rng = np.random.default_rng(random_state)
    labels = y.astype(np.int64)
    test_mask = np.zeros(labels.shape[0], dtype=bool)
    for label in (0, 1):
        rows = np.flatnonzero(labels == label)
        if rows.size == 0:
            continue
        n_test = max(1, int(round(rows.size * test_size)))
        test_mask[rng.permutation(rows)[:n_test]] = True
    return X[~test_mask], X[test_mask], y[~test_mask], y[test_mask]


def load_dataset(name: str, random_state: int, max_samples: int | None):
    rng = np.random.default_rng(random_state)
    key = name.lower()

    if key == "breast_cancer":
        try:
            from sklearn.datasets import load_breast_cancer
        except ModuleNotFoundError as e:
            raise ModuleNotFoundError(
                "Dataset requires scikit-learn, which is not installed. "
                "Use synthetic_clf or install the experiments extra."
            ) from e
        ds = load_breast_cancer()
        X, y = ds.data.astype(np.float64), ds.target.astype(np.float64)
    elif key == "synthetic_clf":
        n_samples = 1000
        n_features = 8
        X = rng.normal(size=(n_samples, n_features))
        w = rng.normal(size=n_features)
        logits = X @ w + 0.5 * rng.normal(size=n_samples)
        probs = 1.0 / (1.0 + np.exp(-logits))
        y = (rng.uniform(size=n_samples) < probs).astype(np.float64)
    elif key == "synthetic_axis":
        n_samples = 1000
        X = rng.uniform(-1.0, 1.0, size=(n_samples, 4))
        y = ((X[:, 0] > 0.2) ^ (X[:, 2] < -0.3)).astype(np.float64)
    else:
        raise ValueError(
            f"Unknown dataset '{name}'. Choose from: breast_cancer, synthetic_clf, synthetic_axis"
        )

    if max_samples is not None and X.shape[0] > max_samples:
        keep = np.sort(rng.permutation(X.shape[0])[:max_samples])
        X, y = X[keep], y[keep]
    return X, y


def evaluate_one(X_train, X_test, y_train, y_test, strategy, n_jobs):
    model = CARTClassifier(CARTParams(split_strategy=strategy, n_jobs=n_jobs))
    t0 = time.perf_counter()
    model.fit(X_train, y_train)
    fit_time = time.perf_counter() - t0

    return {
        "fit_time_sec": fit_time,
        "split_search_time_sec": model.metrics.split_search_time_sec,
        "train_accuracy": model.score(X_train, y_train),
        "test_accuracy": model.score(X_test, y_test),
        "depth": model.tree_.depth,
        "leaves": model.tree_.n_leaves,
        "predictions": model.predict(X_test),
    }


def main():
    parser = argparse.ArgumentParser(description="Quick Gini CART checks on small datasets")
    parser.add_argument(
        "--datasets",
        type=str,
        default="synthetic_axis,synthetic_clf",
        help="Comma-separated: synthetic_axis, synthetic_clf, breast_cancer",
    )
    parser.add_argument("--max-samples", type=int, default=600)
    parser.add_argument("--n-jobs", type=int, default=1)
    parser.add_argument("--random-state", type=int, default=42)
    parser.add_argument(
        "--partition",
        action="store_true",
        help="Also run the partition-based reference split search (slower)",
    )
    parser.add_argument(
        "--sklearn",
        action="store_true",
        help="Also fit sklearn's DecisionTreeClassifier(criterion='gini')",
    )

    args = parser.parse_args()

    datasets = [d.strip() for d in args.datasets.split(",") if d.strip()]
    if not datasets:
        raise ValueError("No datasets provided")

    for ds_name in datasets:
        X, y = load_dataset(ds_name, args.random_state, args.max_samples)
        X_train, X_test, y_train, y_test = _holdout_split(
            X, y, test_size=0.2, random_state=args.random_state
        )
        print(f"\nDataset={ds_name} n={X.shape[0]} d={X.shape[1]}")

        prefix_out = evaluate_one(X_train, X_test, y_train, y_test, "prefix", args.n_jobs)
        print(
            "CART-prefix"
            f" time={prefix_out['fit_time_sec']:.3f}s"
            f" split_search_time={prefix_out['split_search_time_sec']:.3f}s"
            f" train_acc={prefix_out['train_accuracy']:.4f}"
            f" test_acc={prefix_out['test_accuracy']:.4f}"
            f" depth={prefix_out['depth']} leaves={prefix_out['leaves']}"
        )

        if args.partition:
            part_out = evaluate_one(X_train, X_test, y_train, y_test, "partition", args.n_jobs)
            agree = np.array_equal(part_out["predictions"], prefix_out["predictions"])
            print(
                "CART-partition"
                f" time={part_out['fit_time_sec']:.3f}s"
                f" test_acc={part_out['test_accuracy']:.4f}"
                f" identical_predictions={agree}"
            )

        if args.sklearn:
            from sklearn.tree import DecisionTreeClassifier

            sk = DecisionTreeClassifier(criterion="gini", random_state=args.random_state)
            t0 = time.perf_counter()
            sk.fit(X_train, y_train)
            sk_time = time.perf_counter() - t0
            sk_pred = sk.predict(X_test).astype(np.int64)
            agreement = float(np.mean(sk_pred == prefix_out["predictions"]))
            print(
                "sklearn"
                f" time={sk_time:.3f}s"
                f" test_acc={float(np.mean(sk_pred == y_test.astype(np.int64))):.4f}"
                f" agreement={agreement * 100:.2f}%"
            )


if __name__ == "__main__":
    main()
