"""Spending insights: CSV transaction import and spending analytics."""

__version__ = "0.1.0"
