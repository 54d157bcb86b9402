import argparse
import logging
import time
import sys
from pathlib import Path

import numpy as np

# Allow running as: python experiments/quick_gbdt_eval.py
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from gbdt_trainer import GBDTParams, GBDTTrainer


def _train_test_split(X, y, test_size, random_state):
    rng = np.random.default_rng(random_state)
    idx = np.arange(X.shape[0])
    rng.shuffle(idx)
    n_test = max(1, int(round(X.shape[0] * test_size)))
    test_idx = idx[:n_test]
    train_idx = idx[n_test:]
    return X[train_idx], X[test_idx], y[train_idx], y[test_idx]


def _rmse(y_true, y_pred):
    return float(np.sqrt(np.mean((y_true - y_pred) ** 2)))


def _binary_auc(y_true, y_score):
    y = y_true.astype(int)
    pos = y == 1
    neg = y == 0
    n_pos = int(np.sum(pos))
    n_neg = int(np.sum(neg))
    if n_pos == 0 or n_neg == 0:
        return float("nan")

    order = np.argsort(y_score)
    ranks = np.empty_like(order, dtype=np.float64)
    ranks[order] = np.arange(1, y_score.size + 1, dtype=np.float64)
    rank_sum_pos = float(np.sum(ranks[pos]))
    return float((rank_sum_pos - n_pos * (n_pos + 1) / 2.0) / (n_pos * n_neg))


def load_dataset(name: str, n_samples: int, n_features: int, random_state: int):
    rng = np.random.default_rng(random_state)
    X = rng.normal(size=(n_samples, n_features))
    w = rng.normal(size=n_features)

    key = name.lower()
    if key == "synthetic_reg":
        y = X @ w + np.sin(3.0 * X[:, 0]) + rng.normal(scale=0.5, size=n_samples)
        return X, y, "regression"
    if key == "synthetic_clf":
        logits = X @ w + 0.5 * rng.normal(size=n_samples)
        probs = 1.0 / (1.0 + np.exp(-logits))
        y = (rng.uniform(size=n_samples) < probs).astype(np.float64)
        return X, y, "classification"

    raise ValueError(f"Unknown dataset '{name}'. Choose from: synthetic_reg, synthetic_clf")


def evaluate_one(X, y, task, params):
    X_train, X_test, y_train, y_test = _train_test_split(
        X, y, test_size=0.2, random_state=params.random_state
    )

    model = GBDTTrainer(params)
    t0 = time.perf_counter()
    model.fit(X_train, y_train)
    fit_time = time.perf_counter() - t0

    pred = model.predict(X_test)
    if task == "classification":
        acc = float(np.mean((pred >= 0.5).astype(int) == y_test.astype(int)))
        metrics = {"accuracy": acc, "auc": _binary_auc(y_test, pred)}
    else:
        metrics = {"rmse": _rmse(y_test, pred), "baseline_rmse": _rmse(y_test, np.mean(y_train))}

    return {
        "fit_time_sec": fit_time,
        "metrics": metrics,
        "histograms_built": model.metrics["histograms_built"],
        "candidates_evaluated": model.metrics["candidates_evaluated"],
        "feature_importances": model.feature_importances_,
    }


def main():
    parser = argparse.ArgumentParser(description="Quick best-first GBDT checks on synthetic data")
    parser.add_argument(
        "--datasets",
        type=str,
        default="synthetic_reg,synthetic_clf",
        help="Comma-separated: synthetic_reg, synthetic_clf",
    )
    parser.add_argument("--n-samples", type=int, default=20000)
    parser.add_argument("--n-features", type=int, default=20)
    parser.add_argument("--n-estimators", type=int, default=30)
    parser.add_argument("--learning-rate", type=float, default=0.1)
    parser.add_argument("--num-leaves", type=int, default=8)
    parser.add_argument("--max-bins", type=int, default=64)
    parser.add_argument("--min-leaf-examples", type=int, default=256)
    parser.add_argument("--example-sampling-rate", type=float, default=0.8)
    parser.add_argument("--feature-sampling-rate", type=float, default=0.8)
    parser.add_argument("--random-state", type=int, default=42)
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        help="Logging level for the training modules (e.g. INFO, DEBUG)",
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    datasets = [d.strip() for d in args.datasets.split(",") if d.strip()]
    if not datasets:
        raise ValueError("No datasets provided")

    for ds_name in datasets:
        X, y, task = load_dataset(ds_name, args.n_samples, args.n_features, args.random_state)
        print(f"\nDataset={ds_name} task={task} n={X.shape[0]} d={X.shape[1]}")

        params = GBDTParams(
            n_estimators=args.n_estimators,
            learning_rate=args.learning_rate,
            num_leaves=args.num_leaves,
            max_bins=args.max_bins,
            min_leaf_examples=args.min_leaf_examples,
            example_sampling_rate=args.example_sampling_rate,
            feature_sampling_rate=args.feature_sampling_rate,
            loss="logistic" if task == "classification" else "squared_error",
            random_state=args.random_state,
        )
        out = evaluate_one(X, y, task, params)
        print(
            "GBDT"
            f" time={out['fit_time_sec']:.3f}s"
            f" candidates={out['candidates_evaluated']}"
            f" histograms={out['histograms_built']}"
            f" metrics={out['metrics']}"
        )
        top = np.argsort(-out["feature_importances"])[:5]
        print("  top features " + " ".join(f"f{i}={out['feature_importances'][i]:.3g}" for i in top))


if __name__ == "__main__":
    main()
