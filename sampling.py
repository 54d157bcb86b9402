import numpy as np


def biased_coin_flip(rng: np.random.Generator, probability_of_true: float) -> bool:
    """Return True with probability ``probability_of_true``.

    Not safe to share ``rng`` between concurrent tree growths; each growth
    call should own its generator.
    """
    return bool(rng.random() < probability_of_true)


def sample_rows(rng: np.random.Generator, num_examples: int, rate: float) -> np.ndarray:
    """Keep each row independently with probability ``rate``, in row order."""
    if rate >= 1.0:
        return np.arange(num_examples, dtype=np.int64)
    keep = rng.random(num_examples) < rate
    return np.flatnonzero(keep).astype(np.int64)
