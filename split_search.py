from __future__ import annotations

import numpy as np

from data_structures.dataset import EncodedFeature, FeatureEncoding
from data_structures.histogram import Histogram
from errors import check


def build_histogram(
    subset: np.ndarray,
    feature: EncodedFeature,
    targets: np.ndarray,
    total_sum: float,
) -> Histogram:
    """Aggregate example count and target sum per bin over ``subset``."""
    check(feature.encoding is not FeatureEncoding.EMPTY, "cannot build a histogram for an empty feature")
    check(
        feature.codes is not None and feature.codes.dtype == feature.encoding.dtype,
        f"feature codes must be {feature.encoding.dtype} for {feature.encoding.value} encoding",
    )

    num = feature.num_bins
    codes = feature.codes[subset]
    cnt = np.bincount(codes, minlength=num).astype(np.int64)
    sumy = np.bincount(codes, weights=targets[subset], minlength=num).astype(np.float64)
    check(cnt.size == num, f"bin code out of range for a {num}-bin feature")

    return Histogram(cnt=cnt, sumy=sumy, total_cnt=int(subset.size), total_sum=float(total_sum))


def _loss(sum_: float, cnt: int) -> float:
    # Sum of squares of y is the same for every split, so it is left out.
    return -1.0 * sum_ * sum_ / cnt


def split_gain(hist: Histogram, idx: int) -> float:
    """Loss reduction from splitting between bins ``idx`` and ``idx + 1``."""
    cnt_left = int(np.sum(hist.cnt[: idx + 1]))
    sum_left = float(np.sum(hist.sumy[: idx + 1]))
    cnt_right = hist.total_cnt - cnt_left
    sum_right = hist.total_sum - sum_left
    loss_after = _loss(sum_left, cnt_left) + _loss(sum_right, cnt_right)
    return _loss(hist.total_sum, hist.total_cnt) - loss_after


def best_split_from_histogram(hist: Histogram, min_leaf_examples: int) -> tuple[int, float]:
    """Return ``(idx, gain)`` for the best bin boundary, or ``(-1, 0.0)``.

    Rows with bin code ``<= idx`` form the left child. Only splits that leave
    at least ``min_leaf_examples`` rows on each side and strictly beat not
    splitting are reported; ties keep the lowest index.
    """
    check(hist.num >= 1, "histogram must have at least one bin")

    loss_before = _loss(hist.total_sum, hist.total_cnt)
    cnt_prefix = np.cumsum(hist.cnt)
    sum_prefix = np.cumsum(hist.sumy)

    best_gain = 0.0
    best_idx = -1

    for i in range(hist.num - 1):
        cnt_left = int(cnt_prefix[i])
        sum_left = float(sum_prefix[i])
        cnt_right = hist.total_cnt - cnt_left
        sum_right = hist.total_sum - sum_left

        if cnt_left < min_leaf_examples:
            continue
        # cnt_right only shrinks from here on.
        if cnt_right < min_leaf_examples:
            break

        loss_after = _loss(sum_left, cnt_left) + _loss(sum_right, cnt_right)
        gain = loss_before - loss_after
        if gain > best_gain:
            best_gain = gain
            best_idx = i

    return best_idx, best_gain
