"""Fedwork Stage: federation service for the Fedwork professional network."""

__version__ = "0.1.0"
