"""Post Catalog - structured records from channel announcement posts."""

__version__ = "0.1.0"
