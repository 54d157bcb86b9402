from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import numpy as np

from data_structures.dataset import EncodedDataset, FeatureEncoding


@dataclass(frozen=True)
class LeafNode:
    vote: float

    def predict_codes(self, row_codes: np.ndarray) -> float:
        return self.vote

    def num_leaves(self) -> int:
        return 1

    def depth(self) -> int:
        return 0


@dataclass(frozen=True)
class PartitionNode:
    """Internal node: rows with ``code <= fv`` on feature ``fid`` go left.

    ``threshold`` is the raw-value boundary ``transitions[fv]``; a raw value
    goes left iff it is strictly below it.
    """

    fid: int
    fv: int
    threshold: float
    vote: float
    left: TreeNode
    right: TreeNode

    def predict_codes(self, row_codes: np.ndarray) -> float:
        node: TreeNode = self
        while isinstance(node, PartitionNode):
            node = node.left if int(row_codes[node.fid]) <= node.fv else node.right
        return node.vote

    def num_leaves(self) -> int:
        return self.left.num_leaves() + self.right.num_leaves()

    def depth(self) -> int:
        return 1 + max(self.left.depth(), self.right.depth())


TreeNode = Union[LeafNode, PartitionNode]


def predict_dataset(root: TreeNode, dataset: EncodedDataset) -> np.ndarray:
    """Predict every row of ``dataset`` by routing row-index arrays down the tree."""
    preds = np.zeros(dataset.num_examples, dtype=np.float64)
    stack = [(root, np.arange(dataset.num_examples, dtype=np.int64))]

    while stack:
        node, rows = stack.pop()
        if rows.size == 0:
            continue
        if isinstance(node, LeafNode):
            preds[rows] = node.vote
            continue

        feature = dataset.features[node.fid]
        if feature.encoding is FeatureEncoding.EMPTY:
            raise ValueError(f"tree splits on feature {node.fid}, which is empty in this dataset")
        go_left = feature.codes[rows] <= node.fv
        stack.append((node.right, rows[~go_left]))
        stack.append((node.left, rows[go_left]))

    return preds
