"""Seat roster CSV import/export tool.

Parses roster and backup CSV files, validates them against the required header
contracts and writes the resulting records to PostgreSQL in fixed-size batches.
"""

__version__ = "0.1.0"
