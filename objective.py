from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import numpy as np


@dataclass
class ObjectiveConfig:
    loss: str = "squared_error"
    prob_clip: float = 1e-6
    denom_epsilon: float = 1e-12

    def __post_init__(self) -> None:
        if self.loss not in {"squared_error", "logistic"}:
            raise ValueError(f"Unsupported loss: {self.loss}")
        if not (0.0 < self.prob_clip < 0.5):
            raise ValueError("prob_clip must be in (0, 0.5)")
        if self.denom_epsilon <= 0.0:
            raise ValueError("denom_epsilon must be positive")


class LeafValueFunction(Protocol):
    def leaf_value(self, subset: np.ndarray, targets: np.ndarray) -> float:
        ...


class LeastSquaresFun:
    """Squared-error boosting: residuals are ``y - f``, leaves predict the mean."""

    def __init__(self, config: ObjectiveConfig | None = None) -> None:
        self.config = config or ObjectiveConfig()

    def initial_value(self, y: np.ndarray) -> float:
        return float(np.mean(y))

    def pseudo_residuals(self, y: np.ndarray, pred: np.ndarray) -> np.ndarray:
        return (np.asarray(y, dtype=np.float64) - pred).astype(np.float64)

    def leaf_value(self, subset: np.ndarray, targets: np.ndarray) -> float:
        return float(np.mean(targets[subset]))

    def transform(self, raw: np.ndarray) -> np.ndarray:
        return raw


class LogisticFun:
    """Binomial deviance for labels in {0, 1}.

    Leaves take a single Newton step, ``sum(r) / sum(|r| * (1 - |r|))``, where
    ``r = y - p`` is the residual handed to the tree.
    """

    def __init__(self, config: ObjectiveConfig | None = None) -> None:
        self.config = config or ObjectiveConfig(loss="logistic")

    def initial_value(self, y: np.ndarray) -> float:
        clip = self.config.prob_clip
        p = float(np.clip(np.mean(y), clip, 1.0 - clip))
        return float(np.log(p / (1.0 - p)))

    def pseudo_residuals(self, y: np.ndarray, pred: np.ndarray) -> np.ndarray:
        return (np.asarray(y, dtype=np.float64) - self.transform(pred)).astype(np.float64)

    def leaf_value(self, subset: np.ndarray, targets: np.ndarray) -> float:
        r = targets[subset]
        abs_r = np.abs(r)
        denom = float(np.sum(abs_r * (1.0 - abs_r)))
        return float(np.sum(r)) / max(denom, self.config.denom_epsilon)

    def transform(self, raw: np.ndarray) -> np.ndarray:
        return 1.0 / (1.0 + np.exp(-raw))


def make_objective(config: ObjectiveConfig) -> LeastSquaresFun | LogisticFun:
    if config.loss == "squared_error":
        return LeastSquaresFun(config)
    if config.loss == "logistic":
        return LogisticFun(config)
    raise ValueError(f"Unsupported loss: {config.loss}")
