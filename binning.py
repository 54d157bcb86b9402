import numpy as np


def build_transitions(column: np.ndarray, max_bins: int = 255) -> np.ndarray:
    """Build the ascending bin boundaries ("transitions") for one feature.

    A column with ``k`` bins gets ``k - 1`` transitions. Constant columns get
    none and are later stored as empty features.
    """
    if max_bins < 2:
        raise ValueError("max_bins must be at least 2")

    column = np.asarray(column, dtype=np.float64)
    if column.ndim != 1:
        raise ValueError("column must be a 1D array")
    if not np.all(np.isfinite(column)):
        raise ValueError("column contains non-finite values")

    values = np.unique(column)
    if values.size <= 1:
        return np.array([], dtype=np.float64)

    if values.size <= max_bins:
        # Midpoints between adjacent unique values define exact ordered bins.
        mids = (values[:-1] + values[1:]) * 0.5
    else:
        quantiles = np.linspace(0.0, 1.0, max_bins + 1)[1:-1]
        mids = np.quantile(column, quantiles, method="linear")
        mids = np.unique(mids)
        # A cut at the minimum would leave bin 0 empty forever.
        mids = mids[mids > values[0]]

    return np.asarray(mids, dtype=np.float64)


def encode_column(
    column: np.ndarray,
    transitions: np.ndarray,
    dtype: np.dtype | type = np.uint16,
) -> np.ndarray:
    """Map raw values to bin codes; ``code <= fv`` iff ``value < transitions[fv]``."""
    column = np.asarray(column, dtype=np.float64)
    if not np.all(np.isfinite(column)):
        raise ValueError("column contains non-finite values")

    codes = np.searchsorted(transitions, column, side="right")
    return np.ascontiguousarray(codes.astype(dtype))
