"""Tipster AI - football picks generated and settled by a language model."""

__version__ = "1.0.0"
