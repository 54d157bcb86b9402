"""
Best-first histogram regression trees

Grows the regression tree used in each round of gradient boosting. Split
search runs over per-feature bin histograms, and the leaf with the highest
variance-reduction gain is expanded first until the leaf budget runs out.

See tree_builder.py for the grower and gbdt_trainer.py for the boosting loop.
"""
