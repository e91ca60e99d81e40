"""Read-only attachment of forensic disk images (E01, dd, raw) with guaranteed teardown."""

from .__version__ import __version__


__all__ = ["__version__"]
