"""Tools for MOBI e-book data: buffers, decompression, tamper-proof keys and index parsing."""

__version__ = "0.1.0"