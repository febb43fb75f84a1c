#!/usr/bin/env python3
"""
StudyCalc - Academic Calculators

Thin launcher that delegates all functionality to the studycalc_pkg package.

Usage:
    python studycalc.py                      # Interactive scientific calculator
    python studycalc.py -e "5! / 2"          # Evaluate expression
    python studycalc.py grade --reg-term 80 --final 70
    python studycalc.py --help               # Show help
"""

from __future__ import annotations

import sys


def main() -> int:
    """
    Main entry point for StudyCalc.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    from studycalc_pkg.cli import main_entry

    try:
        return main_entry(sys.argv[1:])
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
