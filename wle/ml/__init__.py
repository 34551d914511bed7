"""
wle.ml — Model Selection Pipeline for Weight Lifting Exercise Data
===================================================================

This package classifies how a barbell lift was performed (classe A–E)
from body-worn accelerometer windows, by comparing several classifiers
and applying the best one to an unlabeled test set.

Architecture:
    pml-training.csv / pml-testing.csv (HTTP)
                     ↓
              Data Loader
                     ↓
    Model Selection Pipeline:
      1. Stratified 70/30 Partition
      2. Feature Reduction (identifiers, near-zero variance, missing)
      3. Exploratory Tree Ranking (top 14)
      4. Candidate Bank (LDA, tree, forest, boosting; 14 → top 5 refit)
      5. Stacking (forest + boosting → meta forest)
      6. Validation and Selection
      7. Test Prediction
                     ↓
    report.md + plots, predictions.csv, selected_model.pkl

Modules:
    config        — Data sources, seeds, thresholds, output paths
    errors        — Pipeline exception hierarchy
    data_loader   — CSV retrieval
    partition     — Stratified build / validation split
    preprocessing — Feature reduction and imputation
    features      — Named feature subsets
    ranking       — Exploratory importance ranking
    model         — Candidate classifier wrappers and the candidate bank
    stacking      — Meta-model over base predictions
    evaluation    — Accuracy, confusion matrices, model selection
    predict       — Test-set prediction
    pipeline      — End-to-end run on in-memory tables
    report        — Markdown report and plots
    train         — Batch entry point
    utils         — Logging setup and shared helpers
"""

__version__ = "1.0.0"
__author__ = "WLE Analysis Team"
