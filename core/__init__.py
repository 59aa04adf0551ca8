# Path: core/__init__.py
# Purpose: Package initializer for core application layer.
# Layer: core.
# Details: Aggregates subpackages for embedders, frame extraction, caching, indexing, similarity, and clustering.
