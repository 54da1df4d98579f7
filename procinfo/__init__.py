"""Parsers for kernel statistics exposed through /proc, /sys and configfs."""

__version__ = "0.1.0"