# Path: config/__init__.py
# Purpose: Package initializer for configuration module.
# Layer: config.
# Details: Exposes settings models and logging setup for application-wide configuration.

from .logging_config import get_logger, setup_logging
from .settings import AppSettings, CacheSettings, ClusteringSettings, EmbedderSettings, IndexingSettings

__all__ = [
    "AppSettings",
    "CacheSettings",
    "ClusteringSettings",
    "EmbedderSettings",
    "IndexingSettings",
    "get_logger",
    "setup_logging",
]
