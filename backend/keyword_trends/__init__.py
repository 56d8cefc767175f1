"""Keyword trend forecasting backend."""

__version__ = "0.1.0"
