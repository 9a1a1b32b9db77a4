"""Shared helpers for dates, amounts, merchants and logging."""
