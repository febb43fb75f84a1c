"""Main entry point for running studycalc_pkg as a module.

This allows running StudyCalc with:
    python -m studycalc_pkg
    python -m studycalc_pkg -e "sin(30) + 2^3"
    python -m studycalc_pkg gpa --course "Math:5:88"

This is equivalent to running:
    python -m studycalc_pkg.cli
    python studycalc.py
"""

from __future__ import annotations

import sys

from .cli import main_entry

if __name__ == "__main__":
    sys.exit(main_entry())
