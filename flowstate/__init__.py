"""Finite-state workflow engine with a Flask REST API."""

__version__ = "0.1.0"
