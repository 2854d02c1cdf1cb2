"""Classify and extract release assets, verify checksums and signatures, and query release APIs."""

__version__ = "1.0.0"