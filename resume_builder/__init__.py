"""Resume Builder - résumé documents with owner-scoped storage and image assets."""

__version__ = "0.1.0"
