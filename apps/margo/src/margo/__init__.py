from margo.bundled import load_bundled_catalog

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "load_bundled_catalog",
]
