"""Buffered JSON stream writer with typed value and record encoders."""

__version__ = "0.1.0"
__all__ = ["stream", "codecs", "structs"]