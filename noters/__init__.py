"""Noters: a terminal note manager with cross-referencing notes."""

__version__ = "0.1.0"
