from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np

from binning import build_transitions, encode_column

MAX_BYTE_BINS = 256
MAX_SHORT_BINS = 65536


class FeatureEncoding(Enum):
    EMPTY = "empty"
    BYTE = "byte"
    SHORT = "short"

    @property
    def dtype(self) -> np.dtype | None:
        if self is FeatureEncoding.BYTE:
            return np.dtype(np.uint8)
        if self is FeatureEncoding.SHORT:
            return np.dtype(np.uint16)
        return None

    @classmethod
    def for_num_bins(cls, num_bins: int) -> FeatureEncoding:
        if num_bins <= 1:
            return cls.EMPTY
        if num_bins <= MAX_BYTE_BINS:
            return cls.BYTE
        if num_bins <= MAX_SHORT_BINS:
            return cls.SHORT
        raise ValueError(f"{num_bins} bins do not fit a 16-bit encoding")


@dataclass(frozen=True)
class EncodedFeature:
    encoding: FeatureEncoding
    transitions: np.ndarray
    codes: np.ndarray | None = None

    @property
    def num_bins(self) -> int:
        return int(self.transitions.size) + 1

    @classmethod
    def from_column(cls, column: np.ndarray, max_bins: int = 255) -> EncodedFeature:
        transitions = build_transitions(column, max_bins=max_bins)
        encoding = FeatureEncoding.for_num_bins(transitions.size + 1)
        if encoding is FeatureEncoding.EMPTY:
            return cls(encoding=encoding, transitions=transitions)
        return cls(
            encoding=encoding,
            transitions=transitions,
            codes=encode_column(column, transitions, dtype=encoding.dtype),
        )


class EncodedDataset:
    """Columnar, per-feature encoded training data."""

    def __init__(self, num_examples: int, features: list[EncodedFeature]) -> None:
        for fid, feature in enumerate(features):
            if feature.encoding is FeatureEncoding.EMPTY:
                continue
            if feature.codes is None or feature.codes.shape != (num_examples,):
                raise ValueError(f"feature {fid} must hold one code per example")
        self.num_examples = int(num_examples)
        self.features = list(features)

    @property
    def num_features(self) -> int:
        return len(self.features)

    @classmethod
    def from_array(cls, X: np.ndarray, max_bins: int = 255) -> EncodedDataset:
        X = np.asarray(X, dtype=np.float64)
        if X.ndim != 2:
            raise ValueError("X must be a 2D array")

        features = [
            EncodedFeature.from_column(X[:, fid], max_bins=max_bins)
            for fid in range(X.shape[1])
        ]
        return cls(X.shape[0], features)

    def encode(self, X: np.ndarray) -> EncodedDataset:
        """Encode new rows with this dataset's transitions."""
        X = np.asarray(X, dtype=np.float64)
        if X.ndim != 2:
            raise ValueError("X must be a 2D array")
        if X.shape[1] != self.num_features:
            raise ValueError("X must have the same number of features as the training data")

        features = []
        for fid, feature in enumerate(self.features):
            if feature.encoding is FeatureEncoding.EMPTY:
                features.append(feature)
                continue
            codes = encode_column(X[:, fid], feature.transitions, dtype=feature.encoding.dtype)
            features.append(
                EncodedFeature(encoding=feature.encoding, transitions=feature.transitions, codes=codes)
            )
        return EncodedDataset(X.shape[0], features)
