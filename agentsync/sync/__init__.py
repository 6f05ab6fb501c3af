"""Reconciliation: keeping agent tool configs in line with canonical project state.

This package provides the primitives for:
- Autodetection: folding what already exists on disk into a project
- Sync: fanning canonical state out to every agent's native files
- Drift detection: classifying divergence between canonical state and disk
- Local skills and templates: project-scoped replication and template merges
"""
