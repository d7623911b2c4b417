"""Incrementally archive tagged mail items into a dated file tree."""

__version__ = "0.1.0"
