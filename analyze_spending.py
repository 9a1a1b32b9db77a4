#!/usr/bin/env python3
"""Spending insights: bank CSV import and spending analytics.

This is the main entry point script for the spending insights engine.
It wraps the package CLI for convenient execution.

Usage:
    python analyze_spending.py import statement.csv --date-col 0 --description-col 1 --amount-col 2
    python analyze_spending.py insights --month 3 --year 2024

For full documentation and options:
    python analyze_spending.py --help
"""

import sys
from pathlib import Path

# Add src to path for development installs
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from spending_insights.cli import main

if __name__ == "__main__":
    sys.exit(main())
