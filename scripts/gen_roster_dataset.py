#!/usr/bin/env python3
"""Synthetic roster CSV generator for performance testing.

Writes either an import file (9 roster columns) or a backup file (roster +
provenance columns, as produced by ``seatroster backup``) with a configurable
number of employees spread over several lines of business.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

LINES_OF_BUSINESS = ["Centralized Operations", "Engineering", "Finance", "Human Resources", "Support"]
DESIGNATIONS = ["Engineer", "Senior Engineer", "Analyst", "Project Manager", "Team Lead"]
LOCATIONS = ["FTC", "HQ", "Remote"]
CITIES = ["Karachi", "Lahore", "Islamabad"]
REASONS = ["Critical", "Backup", "Client Facing", "NOT_SELECTED"]

BASE_COLUMNS = ["id", "name", "email", "designation", "manager", "department", "lineOfBusiness", "location", "city"]
PROVENANCE_COLUMNS = ["modifierName", "modifierEmail", "reason", "modifiedAt"]


def generate_roster(rows: int, *, backup: bool = False, seed: int = 42) -> pd.DataFrame:
    """Build a roster DataFrame with ``rows`` employees.

    In backup mode roughly a third of the employees carry an allocation
    (modifier, reason and timestamp); the rest have empty provenance cells.
    """
    rng = np.random.default_rng(seed)
    ids = np.arange(1, rows + 1)
    lobs = rng.choice(LINES_OF_BUSINESS, rows)

    frame = pd.DataFrame(
        {
            "id": ids,
            "name": [f"Employee {i}" for i in ids],
            "email": [f"employee{i}@example.com" for i in ids],
            "designation": rng.choice(DESIGNATIONS, rows),
            "manager": [f"Manager {m}" for m in rng.integers(1, 50, rows)],
            "department": [f"{lob} Dept {d}" for lob, d in zip(lobs, rng.integers(1, 4, rows))],
            "lineOfBusiness": lobs,
            "location": rng.choice(LOCATIONS, rows),
            "city": rng.choice(CITIES, rows),
        }
    )
    if not backup:
        return frame[BASE_COLUMNS]

    allocated = rng.random(rows) < 0.33
    frame["modifierName"] = np.where(allocated, "Group Head", "")
    frame["modifierEmail"] = np.where(allocated, "group.head@example.com", "")
    frame["reason"] = np.where(allocated, rng.choice(REASONS, rows), "")
    frame["modifiedAt"] = np.where(allocated, "2024-01-01T09:00:00.000Z", "")
    return frame[BASE_COLUMNS + PROVENANCE_COLUMNS]


def write_roster_csv(frame: pd.DataFrame, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(output_path, index=False, lineterminator="\n")
    print(f"Created roster CSV: {output_path}")
    print(f"  Rows: {len(frame):,}")
    print(f"  Columns: {len(frame.columns)}")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate synthetic roster CSV files for performance testing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --rows 5000 --output data/roster.csv
  %(prog)s --rows 20000 --backup --output data/backup.csv
        """,
    )
    parser.add_argument("--rows", type=int, default=1000, help="Number of employees (default: 1000)")
    parser.add_argument("--output", type=Path, default=Path("data/perf_roster.csv"), help="Output CSV path")
    parser.add_argument("--backup", action="store_true", help="Include provenance columns (restore layout)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--dry-run", action="store_true", help="Show the plan without writing a file")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1

    print("Dataset generation plan:")
    print(f"  Output file: {args.output}")
    print(f"  Rows: {args.rows:,}")
    print(f"  Layout: {'backup' if args.backup else 'import'}")
    print(f"  Random seed: {args.seed}")

    if args.dry_run:
        print("\n[DRY RUN] Would generate the file but not create it.")
        return 0

    try:
        write_roster_csv(generate_roster(args.rows, backup=args.backup, seed=args.seed), args.output)
    except OSError as e:
        print(f"\nError generating dataset: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
