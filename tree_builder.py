from __future__ import annotations

from dataclasses import dataclass, field
import logging

import numpy as np

from data_structures.dataset import EncodedDataset, FeatureEncoding
from data_structures.tree import LeafNode, PartitionNode, TreeNode
from errors import check
from objective import LeafValueFunction
from sampling import biased_coin_flip, sample_rows
from split_search import best_split_from_histogram, build_histogram

logger = logging.getLogger(__name__)

# Minimum number of examples routed to any leaf.
MIN_LEAF_EXAMPLES = 256


@dataclass
class SplitNode:
    """Split candidate owning one row subset.

    ``left``/``right`` are arena indices, ``-1`` while the node is a leaf.
    """

    subset: np.ndarray
    fid: int = -1
    fv: int = 0
    gain: float = 0.0
    selected: bool = False
    left: int = -1
    right: int = -1


@dataclass
class TreeBuildMetrics:
    candidates_created: int = 0
    candidates_evaluated: int = 0
    histograms_built: int = 0
    nodes_split: int = 0
    expansions: list[dict] = field(default_factory=list)


@dataclass
class TreeRegressorParams:
    min_leaf_examples: int = MIN_LEAF_EXAMPLES

    def __post_init__(self) -> None:
        if self.min_leaf_examples < 1:
            raise ValueError("min_leaf_examples must be at least 1")


class TreeRegressor:
    """Grows one regression tree best-first over histogram split candidates.

    Every candidate lives in ``self.splits``; the frontier holds indices of
    the unexpanded ones. A regressor instance serves a single ``get_tree``
    call and is not thread safe.
    """

    def __init__(
        self,
        dataset: EncodedDataset,
        targets: np.ndarray,
        fun: LeafValueFunction,
        params: TreeRegressorParams | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.dataset = dataset
        self.targets = np.asarray(targets, dtype=np.float64)
        if self.targets.shape != (dataset.num_examples,):
            raise ValueError("targets must hold one value per example")
        self.fun = fun
        self.params = params or TreeRegressorParams()
        self.rng = rng if rng is not None else np.random.default_rng()

        self.splits: list[SplitNode] = []
        self.frontier: list[int] = []
        self.metrics = TreeBuildMetrics()

    @property
    def min_leaf_examples(self) -> int:
        return self.params.min_leaf_examples

    def split_examples(self, split: SplitNode) -> tuple[np.ndarray, np.ndarray]:
        feature = self.dataset.features[split.fid]
        check(
            feature.encoding in (FeatureEncoding.BYTE, FeatureEncoding.SHORT),
            f"cannot partition on feature {split.fid} with {feature.encoding.value} encoding",
        )
        go_left = feature.codes[split.subset] <= split.fv
        return split.subset[go_left], split.subset[~go_left]

    def evaluate_candidate(
        self,
        subset: np.ndarray,
        feature_sampling_rate: float,
        terminal: bool,
    ) -> int:
        """Create a split candidate over ``subset`` and return its arena index."""
        split = SplitNode(subset=subset)
        self.splits.append(split)
        index = len(self.splits) - 1
        self.metrics.candidates_created += 1
        if terminal:
            return index

        self.metrics.candidates_evaluated += 1
        best_fid = -1
        best_fv = 0
        # Starting at 0 rather than -inf: a degenerate split is worse than none.
        best_gain = 0.0

        total_sum = float(np.sum(self.targets[subset]))

        # TODO: features are independent here and could be evaluated in parallel
        # given one random stream per worker.
        for fid, feature in enumerate(self.dataset.features):
            if feature.encoding is FeatureEncoding.EMPTY:
                continue
            if not biased_coin_flip(self.rng, feature_sampling_rate):
                continue

            hist = build_histogram(subset, feature, self.targets, total_sum)
            self.metrics.histograms_built += 1
            fv, gain = best_split_from_histogram(hist, self.min_leaf_examples)

            if gain > best_gain:
                best_fid = fid
                best_fv = fv
                best_gain = gain

        split.fid = best_fid
        split.fv = best_fv
        split.gain = best_gain

        self.frontier.append(index)
        return index

    def _pop_best_frontier(self) -> int | None:
        best_gain = 0.0
        best_pos = None
        for pos, index in enumerate(self.frontier):
            if self.splits[index].gain > best_gain:
                best_gain = self.splits[index].gain
                best_pos = pos

        if best_pos is None:
            return None

        others = [self.splits[i].gain for p, i in enumerate(self.frontier) if p != best_pos]
        self.metrics.expansions.append(
            {
                "gain": best_gain,
                "frontier_size": len(self.frontier),
                "max_other_gain": max(others, default=0.0),
            }
        )
        return self.frontier.pop(best_pos)

    def best_splits(
        self,
        subset: np.ndarray,
        num_splits: int,
        feature_sampling_rate: float,
    ) -> int:
        """Grow the split tree over ``subset``; return the root's arena index."""
        check(subset is not None, "subset must not be None")

        root = self.evaluate_candidate(subset, feature_sampling_rate, terminal=False)

        num_selected = 0
        while num_selected < num_splits:
            # len(frontier) = #leaves = #internal nodes + 1
            check(
                len(self.frontier) == num_selected + 1,
                f"frontier holds {len(self.frontier)} candidates after {num_selected} splits",
            )

            best = self._pop_best_frontier()
            if best is None:
                # no gain from any split
                break

            split = self.splits[best]
            check(split.gain > 0.0, "selected split must have positive gain")
            split.selected = True
            num_selected += 1

            left, right = self.split_examples(split)
            check(
                min(left.size, right.size) >= self.min_leaf_examples,
                f"split on feature {split.fid} leaves fewer than {self.min_leaf_examples} examples",
            )
            terminal = num_selected == num_splits

            split.left = self.evaluate_candidate(left, feature_sampling_rate, terminal)
            split.right = self.evaluate_candidate(right, feature_sampling_rate, terminal)
            self.metrics.nodes_split += 1

        return root

    def materialize(self, index: int, importances: np.ndarray) -> TreeNode | None:
        """Convert the split tree rooted at ``index`` into inference nodes."""
        if index < 0:
            return None

        split = self.splits[index]
        if not split.selected:
            # leaf of decision tree
            vote = self.fun.leaf_value(split.subset, self.targets)
            logger.debug("leaf: %s, #examples: %d", vote, split.subset.size)
            check(
                split.subset.size >= self.min_leaf_examples,
                f"leaf holds {split.subset.size} examples, fewer than {self.min_leaf_examples}",
            )
            return LeafNode(vote=vote)

        left = self.splits[split.left]
        right = self.splits[split.right]
        logger.debug(
            "select split: %d:%d gain: %s, #examples: %d, min partition: %d",
            split.fid,
            split.fv,
            split.gain,
            split.subset.size,
            min(left.subset.size, right.subset.size),
        )

        importances[split.fid] += split.gain
        vote = self.fun.leaf_value(split.subset, self.targets)
        return PartitionNode(
            fid=split.fid,
            fv=split.fv,
            threshold=float(self.dataset.features[split.fid].transitions[split.fv]),
            vote=vote,
            left=self.materialize(split.left, importances),
            right=self.materialize(split.right, importances),
        )

    def get_tree(
        self,
        num_leaves: int,
        example_sampling_rate: float,
        feature_sampling_rate: float,
        importances: np.ndarray,
    ) -> TreeNode:
        """Sample rows, grow up to ``num_leaves`` leaves and materialize the tree.

        ``importances`` is updated in place with the gain of every split.
        """
        check(num_leaves >= 1, "num_leaves must be at least 1")
        check(
            importances.shape == (self.dataset.num_features,),
            "importances must hold one value per feature",
        )

        subset = sample_rows(self.rng, self.dataset.num_examples, example_sampling_rate)
        check(
            subset.size >= self.min_leaf_examples * num_leaves,
            f"sampled {subset.size} examples, need at least "
            f"{self.min_leaf_examples * num_leaves} for {num_leaves} leaves",
        )

        root = self.best_splits(subset, num_leaves - 1, feature_sampling_rate)
        tree = self.materialize(root, importances)
        check(tree is not None, "tree root must not be empty")
        return tree
