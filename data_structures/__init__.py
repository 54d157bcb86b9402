"""
Data structures for histogram regression trees.

Encoded feature columns and datasets, per-node histograms, and the immutable
inference tree produced by the tree regressor.
"""
from data_structures.dataset import (
    EncodedDataset,
    EncodedFeature,
    FeatureEncoding,
)
from data_structures.histogram import Histogram
from data_structures.tree import LeafNode, PartitionNode, TreeNode, predict_dataset

__all__ = [
    "EncodedDataset",
    "EncodedFeature",
    "FeatureEncoding",
    "Histogram",
    "LeafNode",
    "PartitionNode",
    "TreeNode",
    "predict_dataset",
]
