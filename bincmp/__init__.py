"""Compare symbol, section and file sizes of two compiled binaries."""

__version__ = "0.3.0"
