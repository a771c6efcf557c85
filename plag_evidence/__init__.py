"""Originality evidence engine: fingerprinting, cross-document matching and coverage scoring."""

__version__ = "0.1.0"
