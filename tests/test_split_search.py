import numpy as np
import pytest

from conftest import make_byte_feature
from data_structures.dataset import EncodedFeature, FeatureEncoding
from data_structures.histogram import Histogram
from errors import InvariantError
from split_search import best_split_from_histogram, build_histogram, split_gain


def _hist(cnt, sumy):
    cnt = np.asarray(cnt, dtype=np.int64)
    sumy = np.asarray(sumy, dtype=np.float64)
    return Histogram(cnt=cnt, sumy=sumy, total_cnt=int(cnt.sum()), total_sum=float(sumy.sum()))


def test_build_histogram_counts_and_sums_only_subset_rows():
    codes = np.array([0, 1, 2, 1, 0, 2, 2], dtype=np.uint8)
    targets = np.array([1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0])
    feature = make_byte_feature(codes, [0.5, 1.5])
    subset = np.array([0, 1, 3, 6])

    hist = build_histogram(subset, feature, targets, total_sum=float(targets[subset].sum()))

    assert hist.num == 3
    assert hist.cnt.tolist() == [1, 2, 1]
    assert np.allclose(hist.sumy, [1.0, 6.0, 7.0])
    assert hist.total_cnt == 4
    assert hist.total_sum == pytest.approx(14.0)


def test_build_histogram_keeps_trailing_empty_bins():
    feature = make_byte_feature([0, 0, 1], [1.0, 2.0, 3.0])
    hist = build_histogram(np.arange(3), feature, np.ones(3), total_sum=3.0)
    assert hist.cnt.tolist() == [2, 1, 0, 0]


def test_build_histogram_rejects_encoding_mismatch():
    feature = EncodedFeature(
        encoding=FeatureEncoding.BYTE,
        transitions=np.array([0.5]),
        codes=np.array([0, 1], dtype=np.uint16),
    )
    with pytest.raises(InvariantError):
        build_histogram(np.arange(2), feature, np.ones(2), total_sum=2.0)


def test_build_histogram_rejects_empty_feature():
    feature = EncodedFeature(encoding=FeatureEncoding.EMPTY, transitions=np.array([]))
    with pytest.raises(InvariantError):
        build_histogram(np.arange(2), feature, np.ones(2), total_sum=2.0)


def test_best_split_finds_separating_boundary():
    hist = _hist([500, 0, 500], [500.0, 0.0, -500.0])
    idx, gain = best_split_from_histogram(hist, min_leaf_examples=100)
    # idx 0 and idx 1 tie; the lower index wins.
    assert idx == 0
    assert gain == pytest.approx(1000.0)


def test_best_split_respects_min_leaf_and_stops_early():
    hist = _hist([50, 50, 50, 50], [10.0, 10.0, -10.0, -10.0])
    idx, gain = best_split_from_histogram(hist, min_leaf_examples=100)
    assert idx == 1
    assert gain == pytest.approx(8.0)

    idx, gain = best_split_from_histogram(hist, min_leaf_examples=101)
    assert (idx, gain) == (-1, 0.0)


def test_best_split_reports_none_for_constant_targets():
    hist = _hist([30, 40, 30], [30.0, 40.0, 30.0])
    assert best_split_from_histogram(hist, min_leaf_examples=1) == (-1, 0.0)


def test_best_split_single_bin_has_no_split():
    hist = _hist([10], [3.0])
    assert best_split_from_histogram(hist, min_leaf_examples=1) == (-1, 0.0)


def test_best_split_rejects_histogram_without_bins():
    hist = _hist([], [])
    with pytest.raises(InvariantError):
        best_split_from_histogram(hist, min_leaf_examples=1)


def test_loss_identity_holds_for_every_boundary():
    rng = np.random.default_rng(0)
    cnt = rng.integers(1, 40, size=12)
    sumy = rng.normal(size=12) * cnt
    hist = _hist(cnt, sumy)

    loss_before = -hist.total_sum**2 / hist.total_cnt
    for idx in range(hist.num - 1):
        n_left = cnt[: idx + 1].sum()
        s_left = sumy[: idx + 1].sum()
        n_right = hist.total_cnt - n_left
        s_right = hist.total_sum - s_left
        loss_after = -(s_left**2) / n_left - (s_right**2) / n_right
        assert loss_before == pytest.approx(loss_after + split_gain(hist, idx), rel=1e-9, abs=1e-9)

    idx, gain = best_split_from_histogram(hist, min_leaf_examples=1)
    assert gain == pytest.approx(max(split_gain(hist, i) for i in range(hist.num - 1)))
    assert gain == pytest.approx(split_gain(hist, idx))
