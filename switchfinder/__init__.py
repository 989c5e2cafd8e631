"""Foot switch finder: product-matching service for the selection wizard."""

__version__ = "1.0.0"
