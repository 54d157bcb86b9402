from __future__ import annotations

from dataclasses import dataclass
import logging

import numpy as np

from data_structures.dataset import EncodedDataset
from data_structures.tree import TreeNode, predict_dataset
from objective import ObjectiveConfig, make_objective
from tree_builder import MIN_LEAF_EXAMPLES, TreeRegressor, TreeRegressorParams

logger = logging.getLogger(__name__)


@dataclass
class GBDTParams:
    n_estimators: int = 100
    learning_rate: float = 0.1
    num_leaves: int = 8

    max_bins: int = 255
    min_leaf_examples: int = MIN_LEAF_EXAMPLES

    example_sampling_rate: float = 1.0
    feature_sampling_rate: float = 1.0

    loss: str = "squared_error"  # one of: squared_error, logistic

    random_state: int = 0

    def __post_init__(self) -> None:
        if self.n_estimators < 0:
            raise ValueError("n_estimators must be >= 0")
        if self.learning_rate <= 0.0:
            raise ValueError("learning_rate must be positive")
        if self.num_leaves < 1:
            raise ValueError("num_leaves must be at least 1")
        if not (0.0 < self.example_sampling_rate <= 1.0):
            raise ValueError("example_sampling_rate must be in (0, 1]")
        if not (0.0 <= self.feature_sampling_rate <= 1.0):
            raise ValueError("feature_sampling_rate must be in [0, 1]")


class GBDTTrainer:
    """Gradient boosting over best-first histogram regression trees."""

    def __init__(self, params: GBDTParams | None = None) -> None:
        self.params = params or GBDTParams()
        self.rng = np.random.default_rng(self.params.random_state)
        self.objective = make_objective(ObjectiveConfig(loss=self.params.loss))

        self.dataset: EncodedDataset | None = None
        self.trees: list[TreeNode] = []
        self.base_score: float = 0.0
        self.feature_importances_: np.ndarray | None = None
        self.train_prediction_: np.ndarray | None = None
        self.metrics: dict = {}

    def fit(self, X: np.ndarray, y: np.ndarray) -> "GBDTTrainer":
        X = np.asarray(X, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        if X.ndim != 2:
            raise ValueError("X must be 2D")
        if y.ndim != 1 or y.shape[0] != X.shape[0]:
            raise ValueError("y must be a 1D array with the same number of rows as X")

        self.dataset = EncodedDataset.from_array(X, max_bins=self.params.max_bins)
        tree_params = TreeRegressorParams(min_leaf_examples=self.params.min_leaf_examples)

        self.base_score = self.objective.initial_value(y)
        pred = np.full(X.shape[0], self.base_score, dtype=np.float64)

        self.trees = []
        self.feature_importances_ = np.zeros(self.dataset.num_features, dtype=np.float64)
        self.metrics = {
            "candidates_evaluated": 0,
            "histograms_built": 0,
            "tree_metrics": [],
        }

        for tree_idx in range(self.params.n_estimators):
            residuals = self.objective.pseudo_residuals(y, pred)
            regressor = TreeRegressor(
                dataset=self.dataset,
                targets=residuals,
                fun=self.objective,
                params=tree_params,
                rng=self.rng,
            )
            tree = regressor.get_tree(
                num_leaves=self.params.num_leaves,
                example_sampling_rate=self.params.example_sampling_rate,
                feature_sampling_rate=self.params.feature_sampling_rate,
                importances=self.feature_importances_,
            )
            self.trees.append(tree)

            pred += self.params.learning_rate * predict_dataset(tree, self.dataset)

            self.metrics["candidates_evaluated"] += regressor.metrics.candidates_evaluated
            self.metrics["histograms_built"] += regressor.metrics.histograms_built
            self.metrics["tree_metrics"].append(
                {
                    "tree_idx": tree_idx,
                    "nodes_split": regressor.metrics.nodes_split,
                    "num_leaves": tree.num_leaves(),
                    "depth": tree.depth(),
                }
            )
            if logger.isEnabledFor(logging.INFO):
                logger.info(
                    "tree %d: leaves=%d depth=%d train_residual_rms=%.6f",
                    tree_idx,
                    tree.num_leaves(),
                    tree.depth(),
                    float(np.sqrt(np.mean(residuals * residuals))),
                )

        self.train_prediction_ = pred
        return self

    def predict_raw(self, X: np.ndarray) -> np.ndarray:
        if self.dataset is None:
            raise RuntimeError("Model must be fitted before prediction")

        encoded = self.dataset.encode(X)
        pred = np.full(encoded.num_examples, self.base_score, dtype=np.float64)

        for tree in self.trees:
            pred += self.params.learning_rate * predict_dataset(tree, encoded)

        return pred

    def predict(self, X: np.ndarray) -> np.ndarray:
        return self.objective.transform(self.predict_raw(X))
