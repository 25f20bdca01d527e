#!/usr/bin/env python3
"""Personal Finance Dashboard for Google Sheets.

This is the main entry point script for the sheet finance dashboard.
It wraps the package CLI for convenient execution.

Usage:
    python sheet_finance_dashboard.py connect "https://docs.google.com/spreadsheets/d/e/.../pub?output=csv"
    python sheet_finance_dashboard.py summary --mode year --year 2024

For full documentation and options:
    python sheet_finance_dashboard.py --help
"""

import sys
from pathlib import Path

# Add src to path for development installs
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from sheet_finance.cli import main

if __name__ == "__main__":
    sys.exit(main())
