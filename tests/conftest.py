import sys
from pathlib import Path

import numpy as np
import pytest

# Allow running the suite from a plain checkout.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from data_structures.dataset import EncodedDataset, EncodedFeature, FeatureEncoding


def make_byte_feature(codes, transitions):
    return EncodedFeature(
        encoding=FeatureEncoding.BYTE,
        transitions=np.asarray(transitions, dtype=np.float64),
        codes=np.asarray(codes, dtype=np.uint8),
    )


@pytest.fixture
def two_bin_dataset():
    """1000 rows on one feature: bin 0 has target 1.0, bin 2 has target -1.0."""
    codes = np.array([0] * 500 + [2] * 500, dtype=np.uint8)
    rng = np.random.default_rng(5)
    rng.shuffle(codes)
    targets = np.where(codes == 0, 1.0, -1.0)
    dataset = EncodedDataset(1000, [make_byte_feature(codes, [10.0, 20.0])])
    return dataset, targets


@pytest.fixture
def random_dataset():
    rng = np.random.default_rng(17)
    X = rng.normal(size=(4000, 5))
    y = 2.0 * (X[:, 0] > 0.3) - 1.5 * (X[:, 1] > -0.5) + 0.5 * X[:, 2] + 0.1 * rng.normal(size=4000)
    return EncodedDataset.from_array(X, max_bins=32), y
